"""Central logging configuration for the workout converters."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from krd.config import get_settings

_configured = False


def _default_config(log_dir: Path | None, level: str) -> dict:
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": level,
        },
    }
    if log_dir is not None:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": str(log_dir / "krd.log"),
            "encoding": "utf-8",
            "formatter": "standard",
            "level": level,
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": fmt,
            },
        },
        "handlers": handlers,
        "root": {
            "level": level,
            "handlers": list(handlers),
        },
    }


def configure_logging() -> None:
    """Configure logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir = settings.log_dir
        level = settings.log_level
    except ValidationError:
        # A malformed KRD_LOG_LEVEL should not stop conversions.
        log_dir = None
        level = "INFO"

    dictConfig(_default_config(log_dir, level))
    _configured = True
