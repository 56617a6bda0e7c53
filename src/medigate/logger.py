"""Structured logger configuration.

Every record is emitted as one JSON object per line so the gateway logs
can be shipped to any aggregator without a parser. Extra fields passed
with ``logger.info(..., extra={...})`` end up as top-level keys.

Usage:
    ```python
    from medigate.logger import logger

    logger.info("Cache hit", extra={"store": "clinicaltrials", "key": key})
    ```
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from medigate.config import settings

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRIBUTES = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "taskName", "message",
    }
)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects."""

    # Never written to the log stream
    SENSITIVE_KEYS = frozenset(
        {"password", "api_key", "secret", "token", "authorization", "x-subscription-token", "xi-api-key"}
    )

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.lower() in self.SENSITIVE_KEYS:
                continue
            log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_obj, default=str)


def setup_logger(name: str = "medigate", level: str = "INFO") -> logging.Logger:
    """Configure and return the gateway logger.

    Args:
        name: Logger name.
        level: Log level name (DEBUG, INFO, ...).

    Returns:
        Logger writing JSON lines to stdout.
    """
    log = logging.getLogger(name)
    log.setLevel(level)

    # Avoid duplicate handlers on reimport
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        log.addHandler(handler)

    return log


# Global logger instance
logger = setup_logger(level=settings.log_level)
