# src/okxtrader/adapters/okx_ws.py
"""Websocket adapter for OKX's v5 private channels.

The adapter logs in with the account's API key, keeps track of the private
topics the caller asked for and restores them after every reconnect.  The
underlying connection reuses :meth:`ExchangeAdapter._ws_messages` which
already implements heartbeats and jittered exponential backoff reconnects.

Only the ``account`` channel is decoded: each record is turned into a
:class:`~okxtrader.core.models.BalanceSnapshot` and handed to the registered
balance handler.
"""

from __future__ import annotations

import asyncio
import json
import time

from ..balance.base import BalanceChannel, BalanceHandler
from ..config import settings
from ..core.exceptions import ChannelSubscriptionError
from ..utils.aio import call_with_timeout
from .base import ExchangeAdapter
from .okx_payloads import channel_message, login_message, parse_account_balance

ACCOUNT_CHANNEL = "account"


class OKXPrivateWSAdapter(ExchangeAdapter, BalanceChannel):
    """Balance push channel backed by the OKX private websocket."""

    name = "okx_private_ws"
    ping_payload = "ping"

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        passphrase: str | None = None,
        *,
        testnet: bool | None = None,
        ws_url: str | None = None,
    ) -> None:
        testnet = settings.okx_testnet if testnet is None else testnet
        if testnet:
            self.name = "okx_private_ws_testnet"
        super().__init__()
        self.api_key = api_key or settings.okx_api_key
        self.api_secret = api_secret or settings.okx_api_secret
        self.passphrase = passphrase or settings.okx_api_passphrase
        if ws_url:
            self.ws_url = ws_url
        else:
            self.ws_url = (
                settings.okx_ws_private_testnet_url if testnet else settings.okx_ws_private_url
            )
        self._handler: BalanceHandler | None = None
        self._topics: set[str] = set()
        self._acked: set[str] = set()
        self._pending: dict[str, asyncio.Future] = {}
        self._ws = None
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    def set_handler(self, handler: BalanceHandler) -> None:
        self._handler = handler

    @property
    def topics(self) -> frozenset[str]:
        """Topics the adapter keeps subscribed across reconnects."""
        return frozenset(self._topics)

    @property
    def subscribed(self) -> frozenset[str]:
        """Topics acknowledged by the server on the current connection."""
        return frozenset(self._acked)

    def _has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret and self.passphrase)

    def _ensure_running(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _send(self, payload: dict) -> None:
        if self._ws is None:
            raise ConnectionError("private websocket not connected")
        await self._ws.send(json.dumps(payload))

    # ------------------------------------------------------------------
    async def subscribe(self, topic: str) -> None:
        """Subscribe ``topic`` and wait for the server acknowledgement.

        Already acknowledged topics are a no-op.  When the socket is down the
        request is sent as soon as the connection (re)opens.
        """
        if topic in self._acked:
            self.log.debug("topic %s already subscribed", topic)
            return
        if not self._has_credentials():
            raise ChannelSubscriptionError(topic, "missing OKX API credentials")

        self._topics.add(topic)
        fut = self._pending.get(topic)
        if fut is None or fut.done():
            fut = asyncio.get_running_loop().create_future()
            self._pending[topic] = fut
            if self._ws is not None:
                try:
                    await self._send(channel_message("subscribe", [topic]))
                except Exception as exc:
                    self._topics.discard(topic)
                    self._pending.pop(topic, None)
                    raise ChannelSubscriptionError(topic, str(exc)) from exc
        self._ensure_running()
        await asyncio.shield(fut)

    async def unsubscribe(self, topic: str) -> None:
        if topic not in self._topics:
            return
        self._topics.discard(topic)
        self._acked.discard(topic)
        fut = self._pending.pop(topic, None)
        if fut is not None and not fut.done():
            fut.cancel()
        if self._ws is not None:
            try:
                await self._send(channel_message("unsubscribe", [topic]))
            except Exception as exc:
                self.log.warning("unsubscribe %s failed: %s", topic, exc)
        self.log.info("unsubscribed private topic %s", topic)

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.wait({task})
        self._ws = None
        self._acked.clear()
        for fut in self._pending.values():
            if not fut.done():
                fut.cancel()
        self._pending.clear()
        await super().close()

    # ------------------------------------------------------------------
    def _fail_pending(self, reason: str) -> None:
        for topic, fut in list(self._pending.items()):
            if not fut.done():
                fut.set_exception(ChannelSubscriptionError(topic, reason))
            self._pending.pop(topic, None)

    async def _login(self, ws) -> None:
        timestamp = str(int(time.time()))
        await ws.send(
            json.dumps(login_message(self.api_key, self.api_secret, self.passphrase, timestamp))
        )
        while True:
            raw = await ws.recv()
            if raw == "pong":
                continue
            msg = json.loads(raw)
            event = msg.get("event")
            if event == "login" and str(msg.get("code", "0")) == "0":
                return
            if event in {"login", "error"}:
                reason = f"login rejected ({msg.get('code')}): {msg.get('msg')}"
                self._fail_pending(reason)
                raise ConnectionError(reason)

    async def _on_connect(self, ws) -> None:
        self._ws = None
        self._acked.clear()
        await call_with_timeout(self._login(ws), self.request_timeout)
        self._ws = ws
        self.log.info("logged in to %s", self.ws_url)
        if self._topics:
            await self._send(channel_message("subscribe", sorted(self._topics)))

    async def _run(self) -> None:
        try:
            async for raw in self._ws_messages(self.ws_url, self._on_connect):
                await self._dispatch(raw)
        finally:
            self._ws = None

    async def _dispatch(self, raw: str) -> None:
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            self.log.debug("ignoring non JSON message: %s", raw)
            return

        event = msg.get("event")
        if event is not None:
            self._handle_event(event, msg)
            return

        arg = msg.get("arg") or {}
        if arg.get("channel") != ACCOUNT_CHANNEL:
            return
        for record in msg.get("data") or []:
            try:
                snapshot = parse_account_balance(record)
            except Exception as exc:
                self.log.warning("unparseable account push: %s", exc)
                continue
            if self._handler is None:
                continue
            try:
                await self._handler(snapshot)
            except Exception:
                self.log.exception("balance handler failed")

    def _handle_event(self, event: str, msg: dict) -> None:
        channel = (msg.get("arg") or {}).get("channel")
        if event == "subscribe" and channel:
            self._acked.add(channel)
            fut = self._pending.pop(channel, None)
            if fut is not None and not fut.done():
                fut.set_result(None)
            self.log.info("subscribed private topic %s", channel)
        elif event == "unsubscribe" and channel:
            self._acked.discard(channel)
        elif event == "error":
            reason = f"{msg.get('code')}: {msg.get('msg')}"
            self.log.error("OKX private channel error %s", reason)
            failed = [t for t in self._pending if t not in self._acked]
            self._fail_pending(reason)
            for topic in failed:
                self._topics.discard(topic)
        elif event == "channel-conn-count":
            self.log.debug("connection count update: %s", msg)
        else:
            self.log.debug("unhandled event %s: %s", event, msg)


__all__ = ["OKXPrivateWSAdapter", "ACCOUNT_CHANNEL"]
