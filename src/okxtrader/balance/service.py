"""Wiring of push subscription, periodic refresh and coordinator."""

from __future__ import annotations

import asyncio

from ..bus import EventBus
from ..config import settings
from ..core.exceptions import ChannelSubscriptionError
from ..utils.aio import call_with_timeout
from ..utils.logging import get_logger
from ..utils.metrics import BALANCE_SUBSCRIBE_FAILURES
from .base import BalanceChannel, BalancePuller
from .coordinator import BalanceSyncCoordinator
from .refresher import BalanceRefresher, PullOutcome

log = get_logger(__name__)


class BalanceSubscriptionService:
    """Keep an account balance current from two independent sources.

    * the push ``channel`` delivers balance changes (OKX ``account`` topic);
    * a :class:`BalanceRefresher` pulls a full snapshot from ``puller`` every
      ``interval_ms`` so staleness stays bounded if pushes silently stop.

    Both feed one :class:`BalanceSyncCoordinator`.  Failures on either side
    are logged and never stop the other.

    Examples
    --------
    >>> service = BalanceSubscriptionService(ws_adapter, rest_adapter)
    >>> await service.init()
    >>> service.coordinator.current
    """

    def __init__(
        self,
        channel: BalanceChannel,
        puller: BalancePuller,
        coordinator: BalanceSyncCoordinator | None = None,
        *,
        bus: EventBus | None = None,
        topic: str | None = None,
        interval_ms: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.channel = channel
        self.puller = puller
        self.coordinator = coordinator or BalanceSyncCoordinator(bus=bus)
        self.topic = topic or settings.balance_topic
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.refresher = BalanceRefresher(
            puller, self.coordinator, interval_ms=interval_ms, timeout=self.timeout
        )
        self.last_subscription_error: ChannelSubscriptionError | None = None
        self.channel.set_handler(self.coordinator.on_push)

    async def init(self) -> ChannelSubscriptionError | None:
        """Start the pull schedule and subscribe to the push channel.

        The refresher is started first so a slow or failing subscription
        never delays the first pull.
        """
        self.refresher.start()
        return await self.subscribe_balance_channel()

    async def subscribe_balance_channel(self) -> ChannelSubscriptionError | None:
        """Subscribe to the balance topic.

        Returns ``None`` on success or the :class:`ChannelSubscriptionError`
        describing the failure, which is also logged.  Calling it again is
        safe: the channel treats an existing subscription as a no-op.
        """
        log.info("subscribing to balance channel topic=%s", self.topic)
        try:
            await call_with_timeout(self.channel.subscribe(self.topic), self.timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            err = (
                exc
                if isinstance(exc, ChannelSubscriptionError)
                else ChannelSubscriptionError(self.topic, str(exc) or exc.__class__.__name__)
            )
            self.last_subscription_error = err
            BALANCE_SUBSCRIBE_FAILURES.inc()
            log.error("failed to subscribe to balance channel: %s", err, exc_info=exc)
            return err
        self.last_subscription_error = None
        log.info("balance channel subscribed topic=%s", self.topic)
        return None

    async def refresh_balance_info(self) -> PullOutcome:
        """Run one pull cycle outside the schedule."""
        return await self.refresher.tick()

    async def close(self) -> None:
        """Stop pulling, drop the subscription and release both sources."""
        await self.refresher.stop()
        try:
            await call_with_timeout(self.channel.unsubscribe(self.topic), self.timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.warning("unsubscribe from %s failed: %s", self.topic, exc)
        for resource in (self.channel, self.puller):
            try:
                await resource.close()
            except Exception as exc:  # pragma: no cover - best effort
                log.warning("%s close failed: %s", resource.__class__.__name__, exc)


__all__ = ["BalanceSubscriptionService"]
