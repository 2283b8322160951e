# salon/logging_config.py
"""Logging configuration for the application."""
import logging
import logging.config
import sys

from .config import settings


def setup_logging():
    """Setup logging configuration."""

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    detailed_format = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": log_format,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "detailed": {
                "format": detailed_format,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "detailed" if settings.ENVIRONMENT == "development" else "simple",
                "stream": sys.stdout
            },
        },
        "loggers": {
            "": {
                "level": settings.LOG_LEVEL.upper(),
                "handlers": ["console"],
                "propagate": False
            },
            "salon": {
                "level": settings.LOG_LEVEL.upper(),
                "handlers": ["console"],
                "propagate": False
            },
            "sqlalchemy": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
        }
    }

    logging.config.dictConfig(logging_config)
    logging.getLogger(__name__).debug("Logging configured at %s", settings.LOG_LEVEL.upper())
