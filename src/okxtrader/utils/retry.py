from __future__ import annotations

import asyncio
import inspect
import logging
import random

import ccxt.async_support as ccxt

log = logging.getLogger(__name__)

_RETRYABLE_HINTS = (
    "ratelimit",
    "network",
    "timeout",
    "ddos",
    "temporarily",
    "too many requests",
    "50011",  # OKX: request too frequent
)


def _is_retryable(exc: BaseException) -> bool:
    # AuthenticationError and friends subclass ExchangeError, never NetworkError
    if isinstance(exc, (ccxt.NetworkError, asyncio.TimeoutError)):
        return True
    if isinstance(exc, ccxt.ExchangeError):
        return False
    name = exc.__class__.__name__.lower()
    msg = str(exc).lower()
    return any(k in name or k in msg for k in _RETRYABLE_HINTS)


async def _run_fn(fn, *args, **kwargs):
    """Run ``fn`` regardless of it being sync or async.

    Synchronous callables are executed in a thread via ``asyncio.to_thread`` to
    avoid blocking the event loop.  If a synchronous callable returns an
    awaitable, it is awaited before returning the final result.
    """

    if inspect.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)

    res = await asyncio.to_thread(fn, *args, **kwargs)
    if inspect.isawaitable(res):
        return await res
    return res


async def with_retry(fn, *args, retries: int = 3, base_delay: float = 0.5,
                     max_delay: float = 4.0, **kwargs):
    """Execute ``fn`` with jittered exponential backoff on transient errors.

    Authentication and request errors are raised immediately; only network
    failures, timeouts and rate limits are retried, at most ``retries`` times.
    """
    attempt = 0
    while True:
        try:
            return await _run_fn(fn, *args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            attempt += 1
            if attempt > retries or not _is_retryable(e):
                raise
            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            delay *= 0.85 + random.random() * 0.3
            log.warning(
                "retry %d/%d after error: %s (sleep %.2fs)",
                attempt,
                retries,
                e,
                delay,
            )
            await asyncio.sleep(delay)
