"""In-process publish/subscribe used to fan out accepted balance updates."""

import asyncio
from collections import defaultdict
from typing import Any, Callable

from .utils.logging import get_logger

log = get_logger(__name__)

Subscriber = Callable[[Any], Any]


class EventBus:
    """Topic based bus; subscribers may be plain callables or coroutines.

    A subscriber raising does not prevent delivery to the others, the error
    is logged instead.
    """

    def __init__(self):
        self._subs: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, topic: str, cb: Subscriber):
        self._subs[topic].append(cb)

    def unsubscribe(self, topic: str, cb: Subscriber):
        if cb in self._subs.get(topic, []):
            self._subs[topic].remove(cb)

    async def publish(self, topic: str, msg: Any):
        for cb in list(self._subs.get(topic, [])):
            try:
                res = cb(msg)
                if asyncio.iscoroutine(res):
                    await res
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("subscriber %r failed on topic %s", cb, topic)
