"""Interfaces of the two balance update sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from ..core.models import BalanceSnapshot

BalanceHandler = Callable[[BalanceSnapshot], Awaitable[None]]


class BalanceChannel(ABC):
    """Push source delivering balance changes as they happen."""

    @abstractmethod
    def set_handler(self, handler: BalanceHandler) -> None:
        """Register the coroutine receiving every pushed snapshot."""

    @abstractmethod
    async def subscribe(self, topic: str) -> None:
        """Subscribe to ``topic``.

        Must be safe to call repeatedly; subscribing an already subscribed
        topic never results in duplicate deliveries.
        """

    @abstractmethod
    async def unsubscribe(self, topic: str) -> None:
        ...

    async def close(self) -> None:
        """Release network resources.  Default is a no-op."""


class BalancePuller(ABC):
    """Pull source answering on-demand balance requests."""

    @abstractmethod
    async def request_snapshot(self) -> BalanceSnapshot:
        ...

    async def close(self) -> None:
        """Release network resources.  Default is a no-op."""
