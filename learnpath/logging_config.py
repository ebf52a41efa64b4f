"""
Central logging configuration.

Graph mutations log with structured fields (``pathway_id``, ``module_key``,
counts) passed through ``extra=``. Both formatters render those fields:
production emits one JSON object per line, development appends them as
``key=value`` pairs.

Usage:
    from learnpath.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Module created", extra={"pathway_id": str(pid), "module_key": key})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Set by RequestIdMiddleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "request_id", "taskName"}

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore")


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Structured fields attached to a record via ``extra=``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None
    }


class RequestIdFilter(logging.Filter):
    """Stamp the current request id (or "-") onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, extra fields merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            entry["request_id"] = request_id
        entry.update(extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class KeyValueFormatter(logging.Formatter):
    """Human-readable line with extra fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = extra_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        environment: "production" selects JSON output
        debug: Force DEBUG regardless of log_level
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # Replace handlers left by an earlier call (uvicorn reload)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else KeyValueFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
