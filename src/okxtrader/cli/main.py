"""Command line entry point for okxtrader.

This module registers the commands defined under
:mod:`okxtrader.cli.commands`.
"""
from __future__ import annotations

import sys

import typer

from .commands import balance, market

app = typer.Typer(add_completion=False, help="Utilities for OKX market data and balances")

# Register subcommands
app.command("bands")(market.bands)
app.command("balance-sync")(balance.balance_sync)


def main() -> int:
    """Entry point used by ``python -m okxtrader.cli``."""
    try:
        app(standalone_mode=False)
        return 0
    except typer.Exit as exc:
        return exc.exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
