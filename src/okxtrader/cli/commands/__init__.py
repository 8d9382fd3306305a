"""Subcommands for the okxtrader CLI.

Each module exposes plain command functions which :mod:`okxtrader.cli.main`
registers on the top level Typer app.
"""
