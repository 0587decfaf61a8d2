"""Structured Logging — JSON formatter and setup for collection-sync consumers.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (operation, url, status_code, error_code, ...) surfaced when present
    - JSON format by default, human-readable "text" format for local development

Design Decisions:
    - setup_logging configures the `collection_sync` logger only; the host
      application's root logger is left alone
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "operation", "url", "status_code", "error_code", "attempt",
    "snapshot_size", "subscriber_count",
)


class JSONFormatter(logging.Formatter):
    """Format logs as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class LibraryHandler(logging.StreamHandler):
    """Stream handler installed by setup_logging; replaced on each call."""


def setup_logging(
    level: str = "INFO", fmt: str = "json", logger_name: str = "collection_sync",
) -> logging.Logger:
    """Attach one stream handler to the library logger. Idempotent."""
    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        if isinstance(existing, LibraryHandler):
            logger.removeHandler(existing)

    handler = LibraryHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
