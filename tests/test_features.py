from decimal import Decimal

import pandas as pd
import pytest

from okxtrader.core import InsufficientDataError
from okxtrader.data.features import (
    bollinger_bands,
    bollinger_frame,
    population_stddev,
    sma,
)


def test_output_length_matches_complete_windows():
    prices = list(range(1, 31))
    assert len(bollinger_bands(prices, period=20)) == 11
    assert len(bollinger_bands(prices[:20], period=20)) == 1


def test_insufficient_prices_raise():
    with pytest.raises(InsufficientDataError) as exc:
        bollinger_bands([1, 2, 3], period=5)
    assert exc.value.required == 5
    assert exc.value.available == 3


def test_invalid_period_rejected():
    with pytest.raises(ValueError):
        bollinger_bands([1, 2, 3], period=0)


def test_constant_series_collapses_bands():
    bands = bollinger_bands([Decimal("42.5")] * 6, period=3)
    assert all(b.middle == b.upper == b.lower == Decimal("42.5") for b in bands)


def test_window_with_spike(flat_then_spike):
    bands = bollinger_bands(flat_then_spike, period=5, std_dev_multiplier=2)
    assert len(bands) == 6
    assert bands[0].middle == Decimal("10")
    spike = bands[1]
    assert spike.middle == Decimal("10.4")
    assert spike.upper == Decimal("12.0")
    assert spike.lower == Decimal("8.8")
    # every window ending at the spike or the four candles after it holds the 12
    assert all(b == spike for b in bands[1:])


def test_values_are_quantized_to_scale():
    bands = bollinger_bands([1, 2, 4], period=3, scale=4)
    # mean 7/3, population std sqrt(14/9)
    assert bands[0].middle == Decimal("2.3333")
    assert bands[0].middle.as_tuple().exponent == -4
    assert bands[0].upper == Decimal("2.3333") + Decimal("1.2472") * 2


def test_bands_are_ordered():
    prices = [100, 101.5, 99.25, 102, 98.75, 103.1, 97.9, 100.2]
    for b in bollinger_bands(prices, period=4, std_dev_multiplier=1.5):
        assert b.lower < b.middle < b.upper


def test_accepts_dataframe_and_candle_mappings():
    closes = [1.1, 1.2, 1.3, 1.4]
    df = pd.DataFrame({"close": closes})
    rows = [{"close": c} for c in closes]
    assert bollinger_bands(df, period=2) == bollinger_bands(rows, period=2)
    assert bollinger_bands(df, period=2) == bollinger_bands(closes, period=2)


def test_sma_and_stddev_helpers():
    prices = [Decimal(p) for p in ("2", "4", "4", "4", "5", "5", "7", "9")]
    mean = sma(prices)
    assert mean == Decimal("5")
    assert population_stddev(prices, mean) == Decimal("2")
    with pytest.raises(ValueError):
        sma([])


def test_frame_matches_decimal_engine():
    prices = [100, 101.5, 99.25, 102, 98.75, 103.1, 97.9, 100.2]
    frame = bollinger_frame(pd.DataFrame({"close": prices}), n=4, mult=2.0)
    exact = bollinger_bands(prices, period=4, std_dev_multiplier=2.0)

    assert frame["middle"].iloc[:3].isna().all()
    for j, b in enumerate(exact):
        row = frame.iloc[j + 3]
        assert row["middle"] == pytest.approx(float(b.middle), abs=1e-6)
        assert row["upper"] == pytest.approx(float(b.upper), abs=1e-6)
        assert row["lower"] == pytest.approx(float(b.lower), abs=1e-6)


def test_frame_zero_width_gives_nan_percent_b():
    frame = bollinger_frame(pd.Series([5.0] * 4), n=2)
    assert frame["percent_b"].iloc[1:].isna().all()
    assert frame["bandwidth"].iloc[-1] == 0
