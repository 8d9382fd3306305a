"""Candle source interface used by the band builder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..core.models import Candle

# Candle intervals supported by OKX, mapped to their length in milliseconds.
INTERVALS: dict[str, int] = {
    "1m": 60_000,
    "3m": 3 * 60_000,
    "5m": 5 * 60_000,
    "15m": 15 * 60_000,
    "30m": 30 * 60_000,
    "1h": 3_600_000,
    "2h": 2 * 3_600_000,
    "4h": 4 * 3_600_000,
    "6h": 6 * 3_600_000,
    "12h": 12 * 3_600_000,
    "1d": 86_400_000,
    "1w": 7 * 86_400_000,
}


def interval_ms(interval: str) -> int:
    """Return the length of ``interval`` in milliseconds.

    Raises ``ValueError`` for intervals outside :data:`INTERVALS`.
    """
    try:
        return INTERVALS[interval]
    except KeyError:
        choices = ", ".join(INTERVALS)
        raise ValueError(f"unsupported interval {interval!r} (choose one of: {choices})") from None


class CandleSource(ABC):
    """Supplier of historical candles for a ``(symbol, interval)`` pair."""

    @abstractmethod
    async def fetch(self, symbol: str, interval: str, count: int) -> List[Candle]:
        """Return up to ``count`` most recent candles, oldest first.

        The result is shorter than ``count`` when the instrument does not
        have that much history.
        """
