"""Centralized logging configuration for the application."""
from __future__ import annotations

import logging
import logging.handlers
import os
import time

from app.core.config import settings

EOD_LOGGER_NAME = "app.eod"

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5


def _rotating_handler(filename: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        os.path.join(settings.LOG_DIR, filename),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Configure service, snapshot-job and uvicorn loggers.

    Everything goes to ``app.log`` and stderr. The end-of-day snapshot job
    runs unattended, so its records are also kept in ``eod_snapshot.log``
    for the operators who audit missed or partial days.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    formatter = logging.Formatter(
        "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logging.Formatter.converter = time.gmtime

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [_rotating_handler("app.log", formatter), stream_handler]

    eod_logger = logging.getLogger(EOD_LOGGER_NAME)
    eod_logger.setLevel(log_level)
    for handler in list(eod_logger.handlers):
        eod_logger.removeHandler(handler)
        handler.close()
    eod_logger.addHandler(_rotating_handler("eod_snapshot.log", formatter))
    eod_logger.propagate = True

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)

    # SQL echo is controlled by DEBUG on the engine; keep the pool quiet.
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


__all__ = ["EOD_LOGGER_NAME", "setup_logging"]
