"""Helpers shared by the OKX REST and websocket adapters.

OKX reports balances in the same shape on the ``account`` websocket channel
and on ``GET /api/v5/account/balance``::

    {"uTime": "1705474164160", "totalEq": "41624.32",
     "details": [{"ccy": "USDT", "availBal": "4834.3", "frozenBal": "0",
                  "eq": "4992.89", "eqUsd": "4991.9"}, ...]}

Numbers are strings and empty strings mean "not applicable".
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from ..core.models import AssetBalance, BalanceSnapshot

LOGIN_PATH = "/users/self/verify"


def _dec(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _ts(value: Any) -> datetime:
    ms = _dec(value)
    if ms is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)


def parse_account_balance(data: Mapping[str, Any]) -> BalanceSnapshot:
    """Build a :class:`BalanceSnapshot` from one OKX balance record."""

    balances: dict[str, AssetBalance] = {}
    for detail in data.get("details") or []:
        ccy = (detail.get("ccy") or "").upper()
        if not ccy:
            continue
        available = _dec(detail.get("availBal"))
        if available is None:
            available = _dec(detail.get("availEq")) or Decimal("0")
        frozen = _dec(detail.get("frozenBal")) or Decimal("0")
        total = _dec(detail.get("eq"))
        if total is None:
            total = _dec(detail.get("cashBal")) or available + frozen
        balances[ccy] = AssetBalance(
            currency=ccy,
            available=available,
            frozen=frozen,
            total=total,
            usd_value=_dec(detail.get("eqUsd")),
        )
    return BalanceSnapshot(
        as_of=_ts(data.get("uTime")),
        balances=balances,
        total_equity=_dec(data.get("totalEq")),
    )


def login_signature(secret: str, timestamp: str) -> str:
    """Signature of the websocket ``login`` operation."""

    message = f"{timestamp}GET{LOGIN_PATH}".encode()
    digest = hmac.new(secret.encode(), message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def login_message(api_key: str, secret: str, passphrase: str, timestamp: str) -> dict:
    return {
        "op": "login",
        "args": [
            {
                "apiKey": api_key,
                "passphrase": passphrase,
                "timestamp": timestamp,
                "sign": login_signature(secret, timestamp),
            }
        ],
    }


def channel_message(op: str, topics) -> dict:
    """``subscribe``/``unsubscribe`` request for private ``topics``."""

    return {"op": op, "args": [{"channel": t} for t in topics]}


__all__ = [
    "parse_account_balance",
    "login_signature",
    "login_message",
    "channel_message",
]
