"""Symbol normalisation between internal and CCXT notations.

Internally symbols are compact (``BTCUSDT``, ``BTCUSD-SWAP``) as produced by
:func:`normalize`.  CCXT wants unified symbols (``BTC/USDT``) which
:func:`to_ccxt_symbol` produces.

Examples
--------
>>> normalize("btc/usdt")
'BTCUSDT'
>>> to_ccxt_symbol("BTC-USDT")
'BTC/USDT'
"""
from __future__ import annotations

__all__ = ["normalize", "split_base_quote", "to_ccxt_symbol"]

_QUOTES = ("USDT", "USDC", "USD", "BTC", "ETH", "EUR")


def normalize(symbol: str) -> str:
    """Return the internal representation for ``symbol``."""
    if not symbol:
        return symbol

    s = symbol.upper().replace("/", "-")
    parts: list[str] = [p for p in s.split("-") if p]
    if not parts:
        return s
    if len(parts) == 1:
        return parts[0]

    base, quote, *rest = parts
    norm = base + quote
    if rest:
        norm += "-" + "-".join(rest)
    return norm


def split_base_quote(symbol: str) -> tuple[str, str, str | None]:
    """Split ``symbol`` into ``(base, quote, suffix)``.

    Raises ``ValueError`` when no known quote currency terminates the pair.
    """
    sym = normalize(symbol)
    pair, _, suffix = sym.partition("-")
    quote = next((q for q in _QUOTES if pair.endswith(q) and len(pair) > len(q)), None)
    if quote is None:
        raise ValueError(f"cannot determine quote currency of {symbol!r}")
    return pair[: -len(quote)], quote, suffix or None


def to_ccxt_symbol(symbol: str) -> str:
    base, quote, suffix = split_base_quote(symbol)
    if suffix == "SWAP":
        # CCXT unified notation for linear/inverse perpetuals
        settle = quote if quote != "USD" else base
        return f"{base}/{quote}:{settle}"
    return f"{base}/{quote}"
