"""CLI command running the balance subscription service."""
from __future__ import annotations

import asyncio
from typing import Optional

import typer

from ...logging_conf import setup_logging

def balance_sync(
    minutes: Optional[float] = typer.Option(
        None, "--minutes", help="Stop after this many minutes (default: run until interrupted)"
    ),
    metrics_port: Optional[int] = typer.Option(
        None, "--metrics-port", help="Expose Prometheus metrics on this port"
    ),
    testnet: bool = typer.Option(False, "--testnet", help="Use the OKX demo trading endpoints"),
) -> None:
    """Keep the OKX account balance synced from push updates and periodic pulls."""

    setup_logging()

    from prometheus_client import start_http_server

    from ...adapters import OKXPrivateWSAdapter, OKXRestAdapter
    from ...balance import BALANCE_TOPIC, BalanceSubscriptionService
    from ...bus import EventBus
    from ...core import BalanceUpdateEvent

    if metrics_port is not None:
        start_http_server(metrics_port)
        typer.echo(f"metrics exposed on :{metrics_port}")

    def _print(event: BalanceUpdateEvent) -> None:
        snap = event.snapshot
        amounts = ", ".join(f"{ccy}={amt}" for ccy, amt in sorted(snap.amounts().items()))
        typer.echo(
            f"[{event.source.value} #{event.arrival_seq}] {snap.as_of.isoformat()} {amounts}"
        )

    async def _run() -> None:
        bus = EventBus()
        bus.subscribe(BALANCE_TOPIC, _print)
        service = BalanceSubscriptionService(
            OKXPrivateWSAdapter(testnet=testnet or None),
            OKXRestAdapter(testnet=testnet or None),
            bus=bus,
        )
        err = await service.init()
        if err is not None:
            typer.echo(f"push channel unavailable ({err}); relying on periodic pulls", err=True)
        try:
            if minutes is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(minutes * 60)
        finally:
            await service.close()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:  # pragma: no cover - interactive
        typer.echo("stopped")
