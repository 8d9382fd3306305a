import logging, sys
from logging.handlers import RotatingFileHandler

import sentry_sdk
from pythonjsonlogger import jsonlogger

from .config import settings

# Third party loggers that are chatty at DEBUG/INFO level
_NOISY_LOGGERS = ("websockets", "ccxt", "asyncio")


def setup_logging(level: str | None = None) -> None:
    """Configure root handlers from :data:`okxtrader.config.settings`.

    ``level`` overrides ``settings.log_level`` (used by the CLI flag).
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.log_file:
        handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
            )
        )

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    if settings.log_json:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )

    for handler in handlers:
        handler.setFormatter(formatter)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env)
