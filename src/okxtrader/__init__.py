"""OKX market bands and account balance synchronisation."""

__all__ = [
    "config",
    "core",
    "data",
    "adapters",
    "balance",
    "cli",
]
