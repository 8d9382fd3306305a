"""Market data: candle sources, indicators and band series."""
from .candles import CandleSource, INTERVALS, interval_ms
from .features import bollinger_bands, bollinger_frame
from .bands import BandSeriesBuilder, to_frame

__all__ = [
    "CandleSource",
    "INTERVALS",
    "interval_ms",
    "bollinger_bands",
    "bollinger_frame",
    "BandSeriesBuilder",
    "to_frame",
]
