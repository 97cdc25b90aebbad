import logging
import logging.config
import sys
from typing import Any, Dict

from app.core.config import settings


def setup_logging() -> logging.Logger:
    """Configure console logging for the API and uvicorn."""

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.LOG_LEVEL,
                "formatter": "detailed",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "": {
                "level": settings.LOG_LEVEL,
                "handlers": ["console"],
            },
            "uvicorn.access": {
                "level": "WARNING",
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
            },
        },
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger("app")
    logger.info("Logging configured with level: %s", settings.LOG_LEVEL)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
