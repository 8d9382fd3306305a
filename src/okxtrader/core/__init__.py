"""Core models, exceptions and symbol helpers."""
from .symbols import normalize, to_ccxt_symbol
from .exceptions import (
    OKXTraderError,
    InsufficientDataError,
    ChannelSubscriptionError,
    PullCycleError,
)
from .models import (
    Candle,
    Bands,
    BandPoint,
    IndicatorParams,
    AssetBalance,
    BalanceSnapshot,
    UpdateSource,
    BalanceUpdateEvent,
    SyncState,
)

__all__ = [
    "normalize",
    "to_ccxt_symbol",
    "OKXTraderError",
    "InsufficientDataError",
    "ChannelSubscriptionError",
    "PullCycleError",
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
