"""Single authoritative account balance fed by push and pull updates."""

from __future__ import annotations

from threading import Lock

from ..bus import EventBus
from ..core.models import BalanceSnapshot, BalanceUpdateEvent, SyncState, UpdateSource
from ..utils.logging import get_logger
from ..utils.metrics import BALANCE_SEQ, BALANCE_UPDATES

log = get_logger(__name__)

BALANCE_TOPIC = "balance"


class BalanceSyncCoordinator:
    """Merge websocket pushes and periodic pulls into one balance view.

    Every incoming snapshot is stamped with a local arrival sequence number
    when it is ingested.  A stamped update replaces the current snapshot only
    if its sequence number is greater than the one of the snapshot currently
    held, so whichever update arrived last wins regardless of its channel and
    regardless of the order in which stamped updates reach :meth:`apply`.

    The counter and the ``(snapshot, seq)`` pair are guarded by a single lock,
    making the coordinator safe to call from the pull scheduler, the
    websocket reader and worker threads at the same time.

    Accepted updates are published on ``bus`` under the ``"balance"`` topic.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self.bus = bus
        self._lock = Lock()
        self._next_seq = 0
        self._current: BalanceUpdateEvent | None = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> SyncState:
        with self._lock:
            return SyncState.UNINITIALIZED if self._current is None else SyncState.SYNCED

    @property
    def current(self) -> BalanceSnapshot | None:
        """The authoritative snapshot, ``None`` until the first update."""
        with self._lock:
            return self._current.snapshot if self._current else None

    @property
    def current_event(self) -> BalanceUpdateEvent | None:
        with self._lock:
            return self._current

    @property
    def current_seq(self) -> int:
        """Arrival sequence of the authoritative snapshot (``0`` if none)."""
        with self._lock:
            return self._current.arrival_seq if self._current else 0

    # ------------------------------------------------------------------
    def stamp(self, source: UpdateSource, snapshot: BalanceSnapshot) -> BalanceUpdateEvent:
        """Assign the next arrival sequence number to ``snapshot``."""
        with self._lock:
            self._next_seq += 1
            return BalanceUpdateEvent(source=UpdateSource(source), snapshot=snapshot, arrival_seq=self._next_seq)

    def apply(self, event: BalanceUpdateEvent) -> bool:
        """Make ``event`` authoritative unless a later arrival already is.

        Returns ``True`` when the snapshot was accepted.  Stale and duplicate
        events are dropped and return ``False``.
        """
        with self._lock:
            current_seq = self._current.arrival_seq if self._current else 0
            accepted = event.arrival_seq > current_seq
            if accepted:
                self._current = event
                BALANCE_SEQ.set(event.arrival_seq)
        outcome = "accepted" if accepted else "stale"
        BALANCE_UPDATES.labels(source=event.source.value, outcome=outcome).inc()
        if accepted:
            log.debug(
                "balance update accepted source=%s seq=%d as_of=%s",
                event.source.value,
                event.arrival_seq,
                event.snapshot.as_of.isoformat(),
            )
        else:
            log.info(
                "dropping stale %s balance update seq=%d (current seq=%d)",
                event.source.value,
                event.arrival_seq,
                current_seq,
            )
        return accepted

    async def publish(self, event: BalanceUpdateEvent) -> bool:
        """Apply ``event`` and notify bus subscribers when it is accepted."""
        accepted = self.apply(event)
        if accepted and self.bus is not None:
            await self.bus.publish(BALANCE_TOPIC, event)
        return accepted

    async def on_push(self, snapshot: BalanceSnapshot) -> bool:
        return await self.publish(self.stamp(UpdateSource.PUSH, snapshot))

    async def on_pull(self, snapshot: BalanceSnapshot) -> bool:
        return await self.publish(self.stamp(UpdateSource.PULL, snapshot))


__all__ = ["BalanceSyncCoordinator", "BALANCE_TOPIC"]
