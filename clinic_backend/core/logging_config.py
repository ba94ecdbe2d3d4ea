"""Logging configuration."""

import logging
import sys

from clinic_backend.core import config

NOISY_LOGGERS = (
    'sqlalchemy',
    'sqlalchemy.engine',
    'sqlalchemy.pool',
    'sqlalchemy.orm',
    'uvicorn.access',
)


def configure_logging(level: str | None = None) -> None:
    resolved_level = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(
        level=resolved_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if not config.SQL_ECHO:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
