"""Logging configuration for the StoryWeaver personalization service."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

ROOT_LOGGER_NAME = "storyweaver"


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON-formatted log string.
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


def configure_logging(debug: bool = False) -> logging.Logger:
    """
    Configure application logging.

    Args:
        debug: Enable debug logging.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Remove existing handlers
    logger.handlers.clear()

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())

    logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module.

    Args:
        name: Logger name (usually __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
