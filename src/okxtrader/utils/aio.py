"""Asyncio helpers shared by the adapters and the balance service."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


def _consume(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


async def call_with_timeout(aw: Awaitable[T], timeout: float) -> T:
    """Await ``aw`` for at most ``timeout`` seconds.

    ``aw`` runs in its own task.  On expiry the task is cancelled and
    :class:`asyncio.TimeoutError` is raised.  A cancellation of the caller
    always propagates, even when it coincides with ``aw`` finishing, which
    ``asyncio.wait_for`` does not guarantee before Python 3.12.
    """

    task = asyncio.ensure_future(aw)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_consume)
        raise
    if not done:
        task.cancel()
        task.add_done_callback(_consume)
        raise asyncio.TimeoutError(f"timed out after {timeout:.1f}s")
    return task.result()


__all__ = ["call_with_timeout"]
