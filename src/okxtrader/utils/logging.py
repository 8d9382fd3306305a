"""Common logging utilities.

All loggers live below the ``okxtrader`` namespace so a single call to
:func:`okxtrader.logging_conf.setup_logging` (or a test's ``caplog``) can
control them together.  Modules obtain a logger via ``get_logger(__name__)``.
"""

from __future__ import annotations

import logging

ROOT_LOGGER = "okxtrader"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger nested under :data:`ROOT_LOGGER`.

    Parameters
    ----------
    name:
        Optional logger name.  Names already inside the ``okxtrader``
        namespace are used verbatim, anything else is nested below it.  When
        ``None`` the root project logger is returned.
    """

    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


__all__ = ["ROOT_LOGGER", "get_logger"]
