"""JSON logger for chart study computations.

Emits one JSON object per line on stdout so study runs can be grepped
and shipped to any log collector without a custom parser.
"""

import json
import logging
import sys
from typing import Any


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured study logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted log string.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Callers pass structured context as logger.info(msg, extra={"extra": {...}})
        if hasattr(record, "extra"):
            log_data.update(record.extra)  # type: ignore[arg-type]

        return json.dumps(log_data, default=str)


def get_logger(name: str, level: int | str = logging.INFO) -> logging.Logger:
    """Create a JSON-formatted logger.

    Args:
        name: Logger name (typically __name__).
        level: Logging level as int or name, e.g. "DEBUG" (default: INFO).

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)
    return logger
