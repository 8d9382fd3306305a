"""Domain models shared by the band builder and the balance service.

Exchange facing records (:class:`Candle`, :class:`AssetBalance`,
:class:`BalanceSnapshot`) are Pydantic models so raw payload values (strings,
floats) are validated and coerced to :class:`~decimal.Decimal`.  Values the
project computes itself are plain frozen dataclasses.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class Candle(BaseModel):
    model_config = ConfigDict(frozen=True)

    open_time: datetime
    close: Decimal
    open: Optional[Decimal] = None
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    volume: Optional[Decimal] = None


@dataclass(frozen=True)
class Bands:
    """Middle/upper/lower values of one rolling window."""

    middle: Decimal
    upper: Decimal
    lower: Decimal


@dataclass(frozen=True)
class BandPoint:
    """Bollinger bands aligned to a single candle.

    ``percent_b`` and ``bandwidth`` are ``None`` when their denominator is
    zero.
    """

    timestamp: datetime
    price: Decimal
    middle: Decimal
    upper: Decimal
    lower: Decimal
    percent_b: Decimal | None = None
    bandwidth: Decimal | None = None


@dataclass(frozen=True)
class IndicatorParams:
    period: int = 20
    std_dev_multiplier: float = 2.0
    output_limit: int = 500

    def __post_init__(self) -> None:
        if self.period < 1:
            raise ValueError("period must be a positive integer")
        if self.std_dev_multiplier <= 0:
            raise ValueError("std_dev_multiplier must be positive")
        if self.output_limit < 1:
            raise ValueError("output_limit must be a positive integer")

    @property
    def fetch_count(self) -> int:
        """Candles to request so ``output_limit`` points can be produced."""
        return self.output_limit + self.period


class AssetBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str
    available: Decimal = Decimal("0")
    frozen: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    usd_value: Optional[Decimal] = None


class BalanceSnapshot(BaseModel):
    """Account balances as reported by the exchange at ``as_of``."""

    model_config = ConfigDict(frozen=True)

    as_of: datetime
    balances: Dict[str, AssetBalance] = {}
    total_equity: Optional[Decimal] = None

    def amounts(self) -> dict[str, Decimal]:
        """Return the ``currency -> total`` mapping."""
        return {ccy: bal.total for ccy, bal in self.balances.items()}

    def get(self, currency: str) -> AssetBalance | None:
        return self.balances.get(currency.upper())


class UpdateSource(str, enum.Enum):
    PUSH = "push"
    PULL = "pull"


@dataclass(frozen=True)
class BalanceUpdateEvent:
    """A snapshot tagged with its channel and local arrival order."""

    source: UpdateSource
    snapshot: BalanceSnapshot
    arrival_seq: int


class SyncState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    SYNCED = "synced"


__all__ = [
    "Candle",
    "Bands",
    "BandPoint",
    "IndicatorParams",
    "AssetBalance",
    "BalanceSnapshot",
    "UpdateSource",
    "BalanceUpdateEvent",
    "SyncState",
]
