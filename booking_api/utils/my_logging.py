# booking_api/utils/my_logging.py
"""Logging configuration shared by the API process and the Celery worker"""
import logging
import sys
from typing import Optional

from booking_api.config.settings import get_settings


def setup_logging(level: Optional[str] = None, verbose: bool = True):
    """Configure application logging; `level` overrides LOG_LEVEL"""
    settings = get_settings()

    if verbose:
        level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Library loggers stay at WARNING even when the app logs at DEBUG
    noisy_loggers = [
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "httpx",
        "uvicorn.access",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING if verbose else logging.ERROR)
