"""
Centralized logging configuration for the API process.

Importing this module configures logging once (``from app.core import
logging`` in main.py). The level comes from LOG_LEVEL.
"""
import logging.config
import os
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv, find_dotenv

# Load .env file (walks up directories to find it)
load_dotenv(find_dotenv())

SERVICE_LOGGERS = ("app", "uvicorn", "uvicorn.error")


def get_log_level() -> int:
    """Get log level from environment variable."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(log_level: Optional[int] = None) -> None:
    """
    Configure console logging for the service.

    Args:
        log_level: Logging level (defaults to environment LOG_LEVEL)
    """
    if log_level is None:
        log_level = get_log_level()

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": sys.stdout,
            }
        },
        "loggers": {
            **{name: {"level": log_level, "handlers": ["console"], "propagate": False} for name in SERVICE_LOGGERS},
            # Third-party library loggers (quieter)
            "httpx": {"level": logging.WARNING, "handlers": ["console"], "propagate": False},
            "httpcore": {"level": logging.WARNING, "handlers": ["console"], "propagate": False},
            "backoff": {"level": logging.WARNING, "handlers": ["console"], "propagate": False},
        },
        "root": {"level": log_level, "handlers": ["console"]},
    }

    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug(f"Logging configured - Level: {logging.getLevelName(log_level)}")


setup_logging()
