from __future__ import annotations

import logging
from logging.config import dictConfig

from helpdesk.core.config import settings


_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_KEYVALUE_FORMAT = 'ts=%(asctime)s level=%(levelname)s logger=%(name)s msg="%(message)s"'

_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return

    resolved = (level or settings.log_level or "INFO").strip().upper()
    if resolved not in logging.getLevelNamesMapping():
        resolved = "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": _KEYVALUE_FORMAT if settings.log_format == "keyvalue" else _PLAIN_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "helpdesk": {"level": resolved, "handlers": ["console"], "propagate": False},
                "uvicorn.access": {"level": "WARNING"},
                # SQL echo is handled by DATABASE_ECHO.
                "sqlalchemy.engine": {"level": "WARNING"},
            },
            "root": {"level": resolved, "handlers": ["console"]},
        }
    )
    _configured = True
