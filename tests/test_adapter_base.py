import asyncio

import pytest

from okxtrader.adapters import base as base_mod
from okxtrader.adapters.base import ExchangeAdapter
from okxtrader.utils.metrics import WS_RECONNECTS


class DummyAdapter(ExchangeAdapter):
    name = "dummy"


@pytest.mark.asyncio
async def test_request_runs_sync_and_async_callables():
    ad = DummyAdapter(rate_limit_per_sec=1000)

    async def coro(x):
        return x + 1

    assert await ad._request(lambda x: x * 2, 4) == 8
    assert await ad._request(coro, 4) == 5


@pytest.mark.asyncio
async def test_request_timeout():
    ad = DummyAdapter(rate_limit_per_sec=1000, request_timeout=0.01)

    async def hang():
        await asyncio.sleep(1)

    with pytest.raises(asyncio.TimeoutError):
        await ad._request(hang)


class FakeConn:
    def __init__(self, messages):
        self.messages = list(messages)
        self.sent = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def recv(self):
        if not self.messages:
            raise ConnectionError("closed by peer")
        return self.messages.pop(0)

    async def send(self, data):
        self.sent.append(data)


@pytest.mark.asyncio
async def test_ws_messages_reconnects_and_skips_pong(monkeypatch):
    conns = [FakeConn(["a", "pong"]), FakeConn(["b"])]
    monkeypatch.setattr(base_mod.websockets, "connect", lambda url, **kw: conns.pop(0))

    async def no_sleep(_):
        return None

    monkeypatch.setattr(base_mod.asyncio, "sleep", no_sleep)
    connected = []

    async def on_connect(ws):
        connected.append(ws)

    ad = DummyAdapter()
    before = WS_RECONNECTS.labels(adapter="dummy")._value.get()
    gen = ad._ws_messages("wss://example.invalid", on_connect)
    received = [await gen.__anext__(), await gen.__anext__()]
    await gen.aclose()

    assert received == ["a", "b"]
    assert len(connected) == 2
    assert WS_RECONNECTS.labels(adapter="dummy")._value.get() == before + 1
