import asyncio
import json
from decimal import Decimal

import pytest

from okxtrader.adapters import OKXPrivateWSAdapter
from okxtrader.balance import BalanceSubscriptionService
from okxtrader.config import settings
from okxtrader.core import ChannelSubscriptionError
from fixtures.okx import DummyPuller, make_snapshot


class FakeWS:
    def __init__(self, incoming=()):
        self.sent = []
        self.incoming = list(incoming)

    async def send(self, data):
        self.sent.append(data)

    async def recv(self):
        return self.incoming.pop(0)


def _adapter(monkeypatch):
    adapter = OKXPrivateWSAdapter("key", "secret", "pass", ws_url="wss://example.invalid")
    # the connection loop is exercised separately; keep tests offline
    monkeypatch.setattr(adapter, "_ensure_running", lambda: None)
    return adapter


def _ack(channel):
    return json.dumps({"event": "subscribe", "arg": {"channel": channel}})


@pytest.mark.asyncio
async def test_subscribe_waits_for_ack(monkeypatch):
    adapter = _adapter(monkeypatch)
    ws = FakeWS()
    adapter._ws = ws

    task = asyncio.create_task(adapter.subscribe("account"))
    await asyncio.sleep(0)
    assert json.loads(ws.sent[0]) == {"op": "subscribe", "args": [{"channel": "account"}]}
    assert not task.done()

    await adapter._dispatch(_ack("account"))
    await asyncio.wait_for(task, 1)
    assert adapter.subscribed == {"account"}


@pytest.mark.asyncio
async def test_subscribe_twice_sends_once(monkeypatch):
    adapter = _adapter(monkeypatch)
    ws = FakeWS()
    adapter._ws = ws

    task = asyncio.create_task(adapter.subscribe("account"))
    await asyncio.sleep(0)
    await adapter._dispatch(_ack("account"))
    await task
    await adapter.subscribe("account")

    assert len(ws.sent) == 1
    assert adapter.topics == {"account"}


@pytest.mark.asyncio
async def test_error_event_fails_subscription(monkeypatch):
    adapter = _adapter(monkeypatch)
    adapter._ws = FakeWS()

    task = asyncio.create_task(adapter.subscribe("account"))
    await asyncio.sleep(0)
    await adapter._dispatch(json.dumps({"event": "error", "code": "60018", "msg": "Invalid channel"}))

    with pytest.raises(ChannelSubscriptionError) as exc:
        await task
    assert "60018" in str(exc.value)
    assert adapter.topics == set()


@pytest.mark.asyncio
async def test_missing_credentials(monkeypatch):
    monkeypatch.setattr(settings, "okx_api_key", None)
    monkeypatch.setattr(settings, "okx_api_secret", None)
    monkeypatch.setattr(settings, "okx_api_passphrase", None)
    adapter = OKXPrivateWSAdapter(ws_url="wss://example.invalid")
    with pytest.raises(ChannelSubscriptionError):
        await adapter.subscribe("account")


@pytest.mark.asyncio
async def test_account_push_reaches_handler(monkeypatch):
    adapter = _adapter(monkeypatch)
    received = []

    async def handler(snapshot):
        received.append(snapshot)

    adapter.set_handler(handler)
    await adapter._dispatch(
        json.dumps(
            {
                "arg": {"channel": "account", "uid": "44705892343619584"},
                "data": [
                    {"uTime": "1705474164160", "details": [{"ccy": "USDT", "availBal": "10", "eq": "12"}]}
                ],
            }
        )
    )
    await adapter._dispatch(json.dumps({"arg": {"channel": "orders"}, "data": [{}]}))
    await adapter._dispatch("not json")

    assert len(received) == 1
    assert received[0].get("USDT").total == Decimal("12")


@pytest.mark.asyncio
async def test_handler_errors_are_contained(monkeypatch):
    adapter = _adapter(monkeypatch)

    async def handler(snapshot):
        raise RuntimeError("downstream broke")

    adapter.set_handler(handler)
    await adapter._dispatch(json.dumps({"arg": {"channel": "account"}, "data": [{"details": []}]}))


@pytest.mark.asyncio
async def test_reconnect_logs_in_and_restores_topics(monkeypatch):
    adapter = _adapter(monkeypatch)
    adapter._topics = {"account", "balance_and_position"}
    adapter._acked = {"account"}
    ws = FakeWS(["pong", json.dumps({"event": "login", "code": "0", "msg": ""})])

    await adapter._on_connect(ws)

    login = json.loads(ws.sent[0])
    assert login["op"] == "login"
    assert login["args"][0]["apiKey"] == "key"
    assert json.loads(ws.sent[1]) == {
        "op": "subscribe",
        "args": [{"channel": "account"}, {"channel": "balance_and_position"}],
    }
    assert adapter.subscribed == set()
    assert adapter._ws is ws


@pytest.mark.asyncio
async def test_login_rejected(monkeypatch):
    adapter = _adapter(monkeypatch)
    ws = FakeWS([json.dumps({"event": "error", "code": "60009", "msg": "Login failed."})])
    with pytest.raises(ConnectionError):
        await adapter._on_connect(ws)
    assert adapter._ws is None


@pytest.mark.asyncio
async def test_unsubscribe_and_close(monkeypatch):
    adapter = _adapter(monkeypatch)
    ws = FakeWS()
    adapter._ws = ws
    task = asyncio.create_task(adapter.subscribe("account"))
    await asyncio.sleep(0)
    await adapter._dispatch(_ack("account"))
    await task

    await adapter.unsubscribe("account")
    assert json.loads(ws.sent[-1])["op"] == "unsubscribe"
    assert adapter.topics == set()

    await adapter.close()
    assert adapter._ws is None


@pytest.mark.asyncio
async def test_double_subscribe_delivers_push_once(monkeypatch):
    adapter = _adapter(monkeypatch)
    ws = FakeWS()
    adapter._ws = ws
    service = BalanceSubscriptionService(adapter, DummyPuller([make_snapshot()]), interval_ms=60_000)

    async def sent_once():
        while not ws.sent:
            await asyncio.sleep(0)

    first = asyncio.create_task(service.subscribe_balance_channel())
    await asyncio.wait_for(sent_once(), 1)
    await adapter._dispatch(_ack("account"))
    assert await first is None
    assert await service.subscribe_balance_channel() is None

    await adapter._dispatch(
        json.dumps(
            {
                "arg": {"channel": "account"},
                "data": [{"uTime": "1705474164160", "details": [{"ccy": "USDT", "eq": "5"}]}],
            }
        )
    )

    assert len(ws.sent) == 1
    assert service.coordinator.current_seq == 1
    assert service.coordinator.current.get("USDT").total == Decimal("5")
