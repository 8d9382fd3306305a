"""Builders and dummy collaborators shared by the test-suite."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from okxtrader.core import AssetBalance, BalanceSnapshot, Candle


def make_candles(closes, start=None, step=timedelta(hours=1)):
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Candle(open_time=start + i * step, close=Decimal(str(c)))
        for i, c in enumerate(closes)
    ]


def make_snapshot(usdt="100", as_of=None, **extra):
    as_of = as_of or datetime(2024, 1, 1, tzinfo=timezone.utc)
    balances = {"USDT": AssetBalance(currency="USDT", available=Decimal(usdt), total=Decimal(usdt))}
    for ccy, amount in extra.items():
        balances[ccy] = AssetBalance(currency=ccy, available=Decimal(amount), total=Decimal(amount))
    return BalanceSnapshot(as_of=as_of, balances=balances)


class DummySource:
    """Candle source returning the newest ``count`` of a fixed history."""

    def __init__(self, candles):
        self.candles = candles
        self.requests = []

    async def fetch(self, symbol, interval, count):
        self.requests.append((symbol, interval, count))
        return self.candles[-count:]


class DummyChannel:
    def __init__(self, fail=None):
        self.fail = fail
        self.handler = None
        self.subscribed = []
        self.unsubscribed = []
        self.closed = False

    def set_handler(self, handler):
        self.handler = handler

    async def subscribe(self, topic):
        if self.fail is not None:
            raise self.fail
        if topic not in self.subscribed:
            self.subscribed.append(topic)

    async def unsubscribe(self, topic):
        self.unsubscribed.append(topic)

    async def close(self):
        self.closed = True


class DummyPuller:
    def __init__(self, snapshots=None, fail=None):
        self.snapshots = list(snapshots or [])
        self.fail = fail
        self.calls = 0
        self.closed = False

    async def request_snapshot(self):
        self.calls += 1
        if self.fail is not None:
            raise self.fail
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]

    async def close(self):
        self.closed = True


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest.fixture
def flat_then_spike():
    return [10, 10, 10, 10, 10, 12, 10, 10, 10, 10]
