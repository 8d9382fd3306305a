"""Bollinger band series aligned to exchange candles."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, List

import pandas as pd

from ..config import settings
from ..core.models import BandPoint, Bands, Candle, IndicatorParams
from ..utils.logging import get_logger
from ..utils.metrics import BAND_REQUESTS
from .candles import CandleSource, interval_ms
from .features import _CONTEXT, bollinger_bands

log = get_logger(__name__)

_RATIO_QUANTUM = Decimal("0.0001")


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal | None:
    if denominator == 0:
        return None
    return (numerator / denominator).quantize(_RATIO_QUANTUM, rounding=ROUND_HALF_UP)


def band_point(candle: Candle, bands: Bands) -> BandPoint:
    """Combine ``candle`` and its window's ``bands`` into a :class:`BandPoint`."""

    price = candle.close
    # independent of the caller's decimal context
    with localcontext(_CONTEXT):
        width = bands.upper - bands.lower
        percent_b = _ratio(price - bands.lower, width)
        bandwidth = _ratio(width, bands.middle)
    return BandPoint(
        timestamp=candle.open_time,
        price=price,
        middle=bands.middle,
        upper=bands.upper,
        lower=bands.lower,
        percent_b=percent_b,
        bandwidth=bandwidth,
    )


class BandSeriesBuilder:
    """Fetch candles and turn them into a window of :class:`BandPoint`.

    Parameters
    ----------
    source:
        Candle supplier, usually :class:`okxtrader.adapters.OKXRestAdapter`.
    scale:
        Fractional digits used by the indicator engine; defaults to
        ``settings.bands_scale``.
    """

    def __init__(self, source: CandleSource, *, scale: int | None = None) -> None:
        self.source = source
        self.scale = settings.bands_scale if scale is None else scale

    def params(
        self,
        period: int | None = None,
        std_dev_multiplier: float | None = None,
        output_limit: int | None = None,
    ) -> IndicatorParams:
        return IndicatorParams(
            period=settings.bands_period if period is None else period,
            std_dev_multiplier=(
                settings.bands_std_dev if std_dev_multiplier is None else std_dev_multiplier
            ),
            output_limit=settings.bands_limit if output_limit is None else output_limit,
        )

    async def build(
        self,
        symbol: str,
        interval: str,
        period: int | None = None,
        std_dev_multiplier: float | None = None,
        output_limit: int | None = None,
    ) -> List[BandPoint]:
        """Return the most recent ``output_limit`` band points for a market.

        An empty list means the market does not have ``period`` candles of
        history yet.
        """

        interval_ms(interval)
        params = self.params(period, std_dev_multiplier, output_limit)
        candles = await self.source.fetch(symbol, interval, params.fetch_count)

        if len(candles) < params.period:
            log.warning(
                "not enough candles for bollinger bands symbol=%s interval=%s "
                "required=%d available=%d",
                symbol,
                interval,
                params.period,
                len(candles),
            )
            BAND_REQUESTS.labels(interval=interval, outcome="insufficient").inc()
            return []

        bands = bollinger_bands(
            [c.close for c in candles],
            params.period,
            params.std_dev_multiplier,
            self.scale,
        )
        offset = params.period - 1
        points = [band_point(candles[j + offset], b) for j, b in enumerate(bands)]

        if len(points) > params.output_limit:
            points = points[-params.output_limit:]
        BAND_REQUESTS.labels(interval=interval, outcome="ok").inc()
        log.debug(
            "built %d band points for %s %s (period=%d)",
            len(points),
            symbol,
            interval,
            params.period,
        )
        return points


def to_frame(points: Iterable[BandPoint]) -> pd.DataFrame:
    """Tabulate ``points`` indexed by timestamp.

    Decimal values are kept as-is (``object`` dtype) so exporting to CSV
    does not introduce float rounding.
    """

    rows = [
        {
            "timestamp": p.timestamp,
            "price": p.price,
            "middle": p.middle,
            "upper": p.upper,
            "lower": p.lower,
            "percent_b": p.percent_b,
            "bandwidth": p.bandwidth,
        }
        for p in points
    ]
    columns = ["timestamp", "price", "middle", "upper", "lower", "percent_b", "bandwidth"]
    return pd.DataFrame(rows, columns=columns).set_index("timestamp")


__all__ = ["BandSeriesBuilder", "band_point", "to_frame"]
