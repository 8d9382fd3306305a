"""Command line interface for okxtrader."""
