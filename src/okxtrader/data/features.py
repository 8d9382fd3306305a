"""Rolling-window indicators.

Two flavours of Bollinger bands live here:

* :func:`bollinger_bands` computes with :class:`~decimal.Decimal` arithmetic
  under a fixed context so results are reproducible to the last digit on
  every platform.  This is what the band series served to callers uses.
* :func:`bollinger_frame` is a vectorised ``pandas`` variant working on
  floats, convenient for strategy research on a ``DataFrame``.

Both use the population standard deviation of the window (divide by the
period), matching the usual definition of the indicator.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, localcontext
from typing import Any, Iterable, List, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from ..core.exceptions import InsufficientDataError
from ..core.models import Bands

DataLike = Union[pd.DataFrame, pd.Series, Iterable[Mapping[str, Any]], Sequence[Any]]

# Wide enough for exchange prices with 8+ fractional digits and large sums.
_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


def _quantum(scale: int) -> Decimal:
    return Decimal(1).scaleb(-scale)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps the shortest repr of floats instead of their binary expansion
    return Decimal(str(value))


def _closes(data: DataLike) -> List[Decimal]:
    """Normalise ``data`` into a list of close prices.

    Parameters
    ----------
    data:
        A ``DataFrame`` with a ``close`` column, a ``Series``, an iterable of
        mappings exposing ``close`` (e.g. raw candles) or a plain sequence of
        numbers.
    """

    if isinstance(data, pd.DataFrame):
        values = data["close"].tolist()
    elif isinstance(data, pd.Series):
        values = data.tolist()
    else:
        values = [v.get("close") if isinstance(v, Mapping) else v for v in data]
    return [_to_decimal(v) for v in values]


def sma(prices: Sequence[Decimal], scale: int = 8) -> Decimal:
    """Simple mean of ``prices`` rounded half-up to ``scale`` digits."""

    if not prices:
        raise ValueError("prices must not be empty")
    with localcontext(_CONTEXT):
        total = sum(prices, Decimal(0))
        return (total / len(prices)).quantize(_quantum(scale))


def population_stddev(prices: Sequence[Decimal], mean: Decimal, scale: int = 8) -> Decimal:
    """Population standard deviation of ``prices`` around ``mean``.

    The variance keeps ten extra digits before the square root so the
    final rounding to ``scale`` is not affected by intermediate truncation.
    """

    if not prices:
        raise ValueError("prices must not be empty")
    with localcontext(_CONTEXT) as ctx:
        squares = sum(((p - mean) * (p - mean) for p in prices), Decimal(0))
        variance = (squares / len(prices)).quantize(_quantum(scale + 10))
        return variance.sqrt(ctx).quantize(_quantum(scale))


def bollinger_bands(
    prices: DataLike,
    period: int = 20,
    std_dev_multiplier: float | Decimal = 2.0,
    scale: int = 8,
) -> List[Bands]:
    """Bollinger bands for every complete window of ``prices``.

    Parameters
    ----------
    prices:
        Close prices ordered oldest first (see :func:`_closes` for the
        accepted shapes).
    period:
        Window length.
    std_dev_multiplier:
        Width of the bands in standard deviations.
    scale:
        Fractional digits kept for middle, deviation and band values.

    Returns
    -------
    list[Bands]
        ``len(prices) - period + 1`` entries; entry ``j`` covers the window
        ending at ``prices[j + period - 1]``.

    Raises
    ------
    InsufficientDataError
        When fewer than ``period`` prices are supplied.
    """

    if period < 1:
        raise ValueError("period must be at least 1")
    closes = _closes(prices)
    if len(closes) < period:
        raise InsufficientDataError(period, len(closes))

    mult = _to_decimal(std_dev_multiplier)
    q = _quantum(scale)
    out: List[Bands] = []
    with localcontext(_CONTEXT):
        for end in range(period, len(closes) + 1):
            window = closes[end - period:end]
            middle = sma(window, scale)
            width = population_stddev(window, middle, scale) * mult
            out.append(
                Bands(
                    middle=middle,
                    upper=(middle + width).quantize(q),
                    lower=(middle - width).quantize(q),
                )
            )
    return out


def bollinger_frame(data: DataLike, n: int = 20, mult: float = 2.0) -> pd.DataFrame:
    """Vectorised float Bollinger bands.

    Returns a DataFrame with ``middle``, ``upper``, ``lower``, ``percent_b``
    and ``bandwidth`` columns aligned with the input rows.  Rows before the
    first complete window, and ratios with a zero denominator, are ``NaN``.
    """

    if isinstance(data, pd.DataFrame):
        close = data["close"].astype(float)
    elif isinstance(data, pd.Series):
        close = data.astype(float)
    else:
        close = pd.Series([float(v) for v in _closes(data)], name="close")

    roll = close.rolling(n)
    middle = roll.mean()
    std = roll.std(ddof=0)
    upper = middle + mult * std
    lower = middle - mult * std
    width = (upper - lower).replace(0, np.nan)
    return pd.DataFrame(
        {
            "middle": middle,
            "upper": upper,
            "lower": lower,
            "percent_b": (close - lower) / width,
            "bandwidth": (upper - lower) / middle.replace(0, np.nan),
        },
        index=close.index,
    )


__all__ = [
    "sma",
    "population_stddev",
    "bollinger_bands",
    "bollinger_frame",
]
