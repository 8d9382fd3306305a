"""Market data related CLI commands."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from ...logging_conf import setup_logging

def bands(
    symbol: str = typer.Argument(..., help="Market symbol, e.g. BTC-USDT or BTC/USDT"),
    interval: str = typer.Option("1h", "--interval", help="Candle interval like 1m, 15m, 1h, 1d"),
    period: Optional[int] = typer.Option(None, "--period", help="Window length in candles"),
    std_dev: Optional[float] = typer.Option(None, "--std-dev", help="Band width multiplier"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Number of points to return"),
    csv: Optional[Path] = typer.Option(None, "--csv", help="Write the series to this CSV file"),
) -> None:
    """Fetch candles from OKX and print the Bollinger band series."""

    setup_logging()

    from ...adapters import OKXRestAdapter
    from ...core import InsufficientDataError
    from ...data.bands import BandSeriesBuilder, to_frame
    from ...data.candles import interval_ms

    try:
        interval_ms(interval)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--interval") from exc

    async def _run():
        adapter = OKXRestAdapter()
        try:
            builder = BandSeriesBuilder(adapter)
            return await builder.build(symbol, interval, period, std_dev, limit)
        finally:
            await adapter.close()

    try:
        points = asyncio.run(_run())
    except (ValueError, InsufficientDataError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not points:
        typer.echo(f"not enough history for {symbol} {interval}", err=True)
        raise typer.Exit(1)

    frame = to_frame(points)
    if csv is not None:
        frame.to_csv(csv)
        typer.echo(f"wrote {len(frame)} rows to {csv}")
    else:
        typer.echo(frame.to_string())
