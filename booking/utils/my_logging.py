# booking/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from typing import Dict, Optional

from booking.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def library_log_levels(settings: Settings) -> Dict[str, int]:
    """
    Levels for the third-party loggers this service runs alongside.

    uvicorn's access log repeats what request_logging_middleware already
    records with a correlation id, so it stays quiet outside DEBUG.
    SQL statements are only shown when DB_ECHO is on.
    """
    chatty = logging.INFO if settings.DEBUG else logging.WARNING
    return {
        "uvicorn.access": chatty,
        "sqlalchemy.engine": logging.INFO if settings.DB_ECHO else logging.WARNING,
        "sqlalchemy.pool": chatty,
        "alembic": logging.INFO,
        "httpx": logging.WARNING,
    }


def setup_logging(settings: Optional[Settings] = None) -> int:
    """Configure application logging, returns the root level"""
    settings = settings or get_settings()

    level = getattr(logging, settings.LOG_LEVEL.upper(), None)
    if not isinstance(level, int):
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.getLogger().setLevel(level)

    for name, library_level in library_log_levels(settings).items():
        logging.getLogger(name).setLevel(library_level)

    return level
