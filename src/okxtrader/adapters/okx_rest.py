# src/okxtrader/adapters/okx_rest.py
"""REST adapter for OKX built on CCXT.

It serves two roles:

* :class:`~okxtrader.data.candles.CandleSource`: historical candles for the
  band builder via ``fetch_ohlcv``;
* :class:`~okxtrader.balance.base.BalancePuller`: on-demand account balance
  snapshots via ``fetch_balance``.

Every call goes through :meth:`ExchangeAdapter._request` (rate limit and
timeout) wrapped in :func:`~okxtrader.utils.retry.with_retry` for transient
network errors.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

import ccxt.async_support as ccxt

from ..balance.base import BalancePuller
from ..config import settings
from ..core.models import BalanceSnapshot, Candle
from ..core.symbols import to_ccxt_symbol
from ..data.candles import CandleSource, interval_ms
from ..utils.retry import with_retry
from .base import ExchangeAdapter
from .okx_payloads import parse_account_balance

# Maximum candles OKX returns per ``/market/candles`` page
PAGE_LIMIT = 300


class OKXRestAdapter(ExchangeAdapter, CandleSource, BalancePuller):
    """Candle source and balance puller for OKX."""

    name = "okx_rest"

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        passphrase: str | None = None,
        *,
        testnet: bool | None = None,
        rest=None,
        rate_limit_per_sec: float | None = None,
        request_timeout: float | None = None,
    ) -> None:
        testnet = settings.okx_testnet if testnet is None else testnet
        if testnet:
            self.name = "okx_rest_testnet"
        super().__init__(rate_limit_per_sec, request_timeout)
        if rest is None:
            rest = ccxt.okx(
                {
                    "enableRateLimit": True,
                    "apiKey": api_key or settings.okx_api_key,
                    "secret": api_secret or settings.okx_api_secret,
                    "password": passphrase or settings.okx_api_passphrase,
                    "timeout": int(self.request_timeout * 1000),
                }
            )
            if testnet:
                rest.set_sandbox_mode(True)
        self.rest = rest

    # ------------------------------------------------------------------
    async def _call(self, fn, *args, **kwargs):
        return await with_retry(self._request, fn, *args, **kwargs)

    async def fetch(self, symbol: str, interval: str, count: int) -> List[Candle]:
        """Return up to ``count`` most recent candles, oldest first.

        Pages forward from ``now - count * interval`` in chunks of
        :data:`PAGE_LIMIT` until the present is reached.
        """
        if count < 1:
            raise ValueError("count must be positive")
        step = interval_ms(interval)
        market = to_ccxt_symbol(symbol)
        since = int(time.time() * 1000) - count * step

        rows: dict[int, list] = {}
        while len(rows) < count:
            page = await self._call(
                self.rest.fetch_ohlcv,
                market,
                timeframe=interval,
                since=since,
                limit=min(PAGE_LIMIT, count - len(rows)),
            )
            if not page:
                break
            for row in page:
                rows[int(row[0])] = row
            last = int(page[-1][0])
            if last + step <= since:
                break
            since = last + step

        ordered = [rows[ts] for ts in sorted(rows)][-count:]
        self.log.debug("fetched %d %s candles for %s", len(ordered), interval, market)
        return [self._parse_ohlcv(r) for r in ordered]

    @staticmethod
    def _parse_ohlcv(row: list) -> Candle:
        ts, o, h, l, c, v = row[:6]
        return Candle(
            open_time=datetime.fromtimestamp(int(ts) / 1000, tz=timezone.utc),
            open=None if o is None else Decimal(str(o)),
            high=None if h is None else Decimal(str(h)),
            low=None if l is None else Decimal(str(l)),
            close=Decimal(str(c)),
            volume=None if v is None else Decimal(str(v)),
        )

    async def request_snapshot(self) -> BalanceSnapshot:
        """Fetch the trading account balance as a :class:`BalanceSnapshot`."""
        data = await self._call(self.rest.fetch_balance)
        raw = ((data or {}).get("info") or {}).get("data") or []
        if raw:
            return parse_account_balance(raw[0])
        return self._from_unified(data or {})

    @staticmethod
    def _from_unified(data: dict) -> BalanceSnapshot:
        """Fallback for responses without the raw OKX payload."""
        details = []
        for ccy, total in (data.get("total") or {}).items():
            if total is None:
                continue
            details.append(
                {
                    "ccy": ccy,
                    "availBal": (data.get("free") or {}).get(ccy),
                    "frozenBal": (data.get("used") or {}).get(ccy),
                    "eq": total,
                }
            )
        return parse_account_balance({"uTime": data.get("timestamp"), "details": details})


__all__ = ["OKXRestAdapter", "PAGE_LIMIT"]
