from typing import AsyncIterator, Awaitable, Callable
import asyncio
import contextlib
import logging
import time
import random

import websockets

from ..config import settings
from ..utils.aio import call_with_timeout
from ..utils.metrics import WS_FAILURES, WS_RECONNECTS

OnConnect = Callable[[object], Awaitable[None]]


class ExchangeAdapter:
    """Base class for exchange adapters.

    Provides REST request rate limiting with an explicit timeout, and a
    reconnecting websocket message iterator so individual adapters can
    remain small.
    """

    name: str = "exchange"
    # Application level heartbeat; ``None`` uses websocket protocol pings.
    ping_payload: str | None = None

    def __init__(
        self,
        rate_limit_per_sec: float | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._rate_limit_per_sec = rate_limit_per_sec or settings.rate_limit_per_sec
        self.request_timeout = request_timeout or settings.request_timeout
        self._lock = asyncio.Lock()
        self._last_request = 0.0
        self.log = logging.getLogger(f"okxtrader.adapters.{self.name}")
        self.ping_interval = settings.adapter_ping_interval
        self.max_backoff = settings.adapter_max_backoff

    # ------------------------------------------------------------------
    # Rate limiting helpers
    async def _throttle(self) -> None:
        """Ensure a minimum delay between REST requests."""
        async with self._lock:
            now = time.monotonic()
            wait = 1.0 / self._rate_limit_per_sec - (now - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = time.monotonic()

    async def _request(self, fn, *args, **kwargs):
        """Execute ``fn`` respecting rate limits and ``request_timeout``.

        ``ccxt.async_support`` exposes coroutine based HTTP methods which are
        awaited; plain callables (used by tests) return directly.
        """

        await self._throttle()
        try:
            res = fn(*args, **kwargs)
            if asyncio.iscoroutine(res):
                return await call_with_timeout(res, self.request_timeout)
            return res
        except asyncio.TimeoutError:
            self.log.error("%s request timed out after %.1fs", self.name, self.request_timeout)
            raise
        except Exception as e:
            self.log.error("%s request failed: %s", self.name, e)
            raise

    async def close(self) -> None:
        """Close underlying REST client if it exposes ``close``."""
        rest = getattr(self, "rest", None)
        if rest and hasattr(rest, "close"):
            try:
                res = rest.close()
                if asyncio.iscoroutine(res):
                    await res
            except Exception as e:  # pragma: no cover - best effort
                self.log.warning("%s close failed: %s", self.name, e)

    # ------------------------------------------------------------------
    # Websocket helpers
    async def _ping(self, ws) -> None:
        while True:
            try:
                await asyncio.sleep(self.ping_interval)
                if self.ping_payload is not None:
                    await ws.send(self.ping_payload)
                else:
                    await ws.ping()
            except asyncio.CancelledError:  # pragma: no cover - task cancelled
                break
            except Exception:  # pragma: no cover - network issues
                break

    async def _ws_messages(
        self, url: str, on_connect: OnConnect | None = None
    ) -> AsyncIterator[str]:
        """Yield raw messages from ``url`` forever, reconnecting on failure.

        ``on_connect`` runs after every (re)connection before messages are
        yielded, e.g. to log in and restore subscriptions.  Heartbeat replies
        (``"pong"``) are swallowed.
        """
        backoff = 1.0
        successes = 0
        while True:
            try:
                async with websockets.connect(url, ping_interval=None) as ws:
                    if on_connect is not None:
                        await on_connect(ws)
                    successes += 1
                    if successes >= 3:
                        backoff = 1.0
                        successes = 0
                    ping_task = asyncio.create_task(self._ping(ws))
                    try:
                        while True:
                            msg = await ws.recv()
                            if msg == "pong":
                                continue
                            yield msg
                    finally:
                        ping_task.cancel()
                        with contextlib.suppress(asyncio.CancelledError, Exception):
                            await ping_task
            except asyncio.CancelledError:
                raise
            except Exception as e:
                WS_FAILURES.labels(adapter=self.name).inc()
                WS_RECONNECTS.labels(adapter=self.name).inc()
                successes = 0
                delay = backoff * random.uniform(0.5, 1.5)
                self.log.warning(
                    "WS disconnected (%s). Reconnecting in %.1fs ...", e, delay
                )
                await asyncio.sleep(delay)
                backoff = min(backoff * 2, self.max_backoff)
