"""Periodic balance pull acting as a staleness bound for the push channel."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from ..config import settings
from ..core.exceptions import PullCycleError
from ..core.models import BalanceUpdateEvent, UpdateSource
from ..utils.aio import call_with_timeout
from ..utils.logging import get_logger
from ..utils.metrics import BALANCE_PULL_FAILURES
from .base import BalancePuller
from .coordinator import BalanceSyncCoordinator

log = get_logger(__name__)


@dataclass(frozen=True)
class PullOutcome:
    """Result of one refresh cycle.

    Exactly one of ``event`` and ``error`` is set.  ``accepted`` tells
    whether the pulled snapshot became authoritative.
    """

    event: BalanceUpdateEvent | None = None
    accepted: bool = False
    error: PullCycleError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BalanceRefresher:
    """Fixed-rate scheduler pulling balance snapshots into a coordinator.

    The schedule is owned by this object: :meth:`start` launches a task on the
    running loop, :meth:`stop` cancels it and :meth:`tick` runs a single cycle
    on demand.  Ticks are spaced ``interval_ms`` apart measured from their
    scheduled start, so a slow request does not shift later cycles.  A failed
    cycle is logged and the schedule carries on.
    """

    def __init__(
        self,
        puller: BalancePuller,
        coordinator: BalanceSyncCoordinator,
        *,
        interval_ms: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.puller = puller
        self.coordinator = coordinator
        self.interval_ms = settings.balance_pull_interval_ms if interval_ms is None else interval_ms
        self.timeout = settings.request_timeout if timeout is None else timeout
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()
        self.cycles = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> PullOutcome:
        """Run one refresh cycle and report its outcome."""
        self.cycles += 1
        log.info("refreshing account balance (cycle %d)", self.cycles)
        try:
            snapshot = await call_with_timeout(self.puller.request_snapshot(), self.timeout)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            return self._failed(
                PullCycleError(f"balance request timed out after {self.timeout:.1f}s")
            )
        except Exception as exc:
            err = PullCycleError(f"balance request failed: {exc}")
            err.__cause__ = exc
            return self._failed(err)

        # stamped on arrival, not when the request was issued
        event = self.coordinator.stamp(UpdateSource.PULL, snapshot)
        accepted = await self.coordinator.publish(event)
        log.info("account balance refreshed seq=%d accepted=%s", event.arrival_seq, accepted)
        return PullOutcome(event=event, accepted=accepted)

    def _failed(self, err: PullCycleError) -> PullOutcome:
        self.failures += 1
        BALANCE_PULL_FAILURES.inc()
        log.error("balance refresh failed: %s", err, exc_info=err.__cause__ or err)
        return PullOutcome(error=err)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        period = self.interval_ms / 1000
        next_at = loop.time()
        stopping = loop.create_task(self._stopping.wait())
        try:
            while not self._stopping.is_set():
                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except Exception:  # pragma: no cover - tick already reports failures
                    log.exception("unexpected error in balance refresh cycle")
                next_at += period
                now = loop.time()
                if next_at < now:
                    # skip cycles missed while a request hung
                    missed = int((now - next_at) // period) + 1
                    next_at += missed * period
                await asyncio.wait({stopping}, timeout=next_at - now)
        finally:
            stopping.cancel()

    def start(self) -> None:
        """Start the schedule on the running loop; the first tick is immediate."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.get_running_loop().create_task(self._run())
        log.info("balance refresher started interval=%dms", self.interval_ms)

    async def stop(self) -> None:
        """Stop the schedule and wait until the loop has exited.

        The stop flag ends the loop at its next check even if the
        cancellation is lost while a request completes.
        """
        task, self._task = self._task, None
        if task is None:
            return
        self._stopping.set()
        task.cancel()
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            log.error("balance refresher ended with an error", exc_info=task.exception())
        log.info("balance refresher stopped after %d cycles", self.cycles)


__all__ = ["BalanceRefresher", "PullOutcome"]
