"""Logging configuration with structured JSON formatter.

This module provides a JSON formatter and a `dictConfig` layout for the
fixture loggers. Test suites opt in with `configure_logging()`; the fixture
itself only ever logs through module loggers.
"""

import json
import logging
import logging.config
from typing import Any

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "asctime",
        "taskName",
        "error",
    }
)


class CustomJSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging.

    This formatter converts log records to JSON format, including:
    - Standard log fields (time, level, message, etc.)
    - Exception traces, under the `error` key
    - All extra attributes passed via the extra parameter (image, endpoint,
      index, ...)
    """

    def __init__(self, fmt: str) -> None:
        """Initialize the formatter.

        Args:
            fmt: Format string (used for asctime, but output is JSON).
        """
        logging.Formatter.__init__(self, fmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON string representation of the log record.
        """
        logging.Formatter.format(self, record)
        return json.dumps(self.get_log(record), indent=None, default=str)

    def get_log(self, record: logging.LogRecord) -> dict[str, Any]:
        """Extract log data from record into a dictionary.

        Args:
            record: The log record to extract data from.

        Returns:
            Dictionary containing log data.
        """
        d: dict[str, Any] = {
            "time": record.asctime,
            "thread_name": record.threadName,
            "level": record.levelname,
            "logger_name": record.name,
            "pathname": record.pathname,
            "line": record.lineno,
            "message": record.message,
        }

        error_data = getattr(record, "error", None)
        if isinstance(error_data, dict):
            d["error"] = error_data.copy()
        elif error_data is not None:
            d["error"] = {"message": str(error_data)}

        if record.exc_info:
            error_dict: dict[str, Any] = d.setdefault("error", {})
            exc = record.exc_info[1]
            if exc is not None:
                error_dict.setdefault("type", type(exc).__name__)
                error_dict.setdefault("message", str(exc))
            error_dict["trace"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                d[key] = value

        return d


LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,  # Keep existing loggers, just configure them
    "formatters": {
        "standard": {"()": lambda: CustomJSONFormatter(fmt="%(asctime)s")},
    },
    "handlers": {
        "default": {
            "formatter": "standard",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    # Named loggers only set levels and propagate to the root handler, so pytest's
    # caplog still sees fixture records after configure_logging().
    "loggers": {
        "storage_fixture": {"level": "INFO"},
        "testcontainers": {"level": "WARNING"},
        "docker": {"level": "WARNING"},
        "urllib3": {"level": "WARNING"},
    },
    "root": {
        "handlers": ["default"],
        "level": "INFO",
    },
}


def configure_logging(level: str = "INFO") -> None:
    """Apply `LOGGING_CONFIG` with the fixture loggers at `level`.

    Args:
        level: Level name for the `storage_fixture` loggers and the root logger.
    """
    config = {
        **LOGGING_CONFIG,
        "loggers": {**LOGGING_CONFIG["loggers"]},
        "root": {**LOGGING_CONFIG["root"], "level": level},
    }
    config["loggers"]["storage_fixture"] = {**config["loggers"]["storage_fixture"], "level": level}
    logging.config.dictConfig(config)
