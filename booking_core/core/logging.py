"""
Logging Setup

Root logger configuration for the scheduling engine, with three output
formats (json for shipping to a collector, pretty for a terminal, simple for
plain files) and ``LogContext`` for request-scoped correlation fields.

Correlation fields live in a ``ContextVar``, so concurrent bookings running
in different threads never see each other's request ids.
"""

import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar, Token
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Configuration
# =============================================================================


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    PRETTY = "pretty"
    SIMPLE = "simple"


DEFAULT_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEFAULT_LOG_FORMAT = os.getenv("LOG_FORMAT", "pretty")
SERVICE_NAME = os.getenv("SERVICE_NAME", "booking-core")

# Pulled to the top level of JSON records; everything else goes under "context"
CORRELATION_FIELDS = ("request_id", "actor_id", "provider_id", "appointment_id")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_context: ContextVar[Dict[str, Any]] = ContextVar("booking_log_context", default={})


def _fields(record: logging.LogRecord) -> Dict[str, Any]:
    """``extra`` fields of a record merged over the active LogContext."""
    fields = dict(_context.get())
    fields.update(
        (key, value)
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    )
    return fields


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.utcfromtimestamp(record.created)


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _fields(record)

        payload: Dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
        }
        for key in CORRELATION_FIELDS:
            if fields.get(key) is not None:
                payload[key] = fields.pop(key)
            else:
                fields.pop(key, None)
        if fields:
            payload["context"] = fields

        if record.exc_info and record.exc_info[0] is not None:
            payload["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stack_trace": "".join(traceback.format_exception(*record.exc_info)),
            }

        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    """Aligned, colored lines for a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    DIM = "\033[90m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        parts = [
            _timestamp(record).strftime("%H:%M:%S.%f")[:-3],
            f"{color}{record.levelname:<8}{self.RESET}",
            f"{self.DIM}{record.name}{self.RESET}",
            record.getMessage(),
        ]

        fields = _fields(record)
        if fields:
            parts.append(
                self.DIM + " ".join(f"{k}={v}" for k, v in sorted(fields.items())) + self.RESET
            )

        line = "  ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class SimpleFormatter(logging.Formatter):
    """Plain ``timestamp level logger: message`` lines."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")


_FORMATTERS = {
    LogFormat.JSON: JSONFormatter,
    LogFormat.PRETTY: PrettyFormatter,
    LogFormat.SIMPLE: SimpleFormatter,
}


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    format: str = DEFAULT_LOG_FORMAT,
    service_name: Optional[str] = None,
) -> None:
    """
    Send all records to stdout in the requested format.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        level: Log level name, case-insensitive
        format: json, pretty or simple
        service_name: Service name stamped on JSON records
    """
    global SERVICE_NAME

    if service_name:
        SERVICE_NAME = service_name

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    try:
        formatter_cls = _FORMATTERS[LogFormat(format)]
    except ValueError:
        raise ValueError(f"Unknown log format: {format}")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter_cls())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric_level)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={level} format={format} service={SERVICE_NAME}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


# =============================================================================
# Context
# =============================================================================


class LogContext:
    """
    Adds correlation fields to every record logged inside the block.

    Usage:
        with LogContext(request_id="req_123", actor_id="2"):
            logger.info("Booking appointment")

    Blocks nest; inner values shadow outer ones until the inner block exits.
    """

    def __init__(self, **fields: Any):
        self._fields = fields
        self._tokens: List[Token] = []

    def __enter__(self) -> "LogContext":
        merged = dict(_context.get())
        merged.update(self._fields)
        self._tokens.append(_context.set(merged))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _context.reset(self._tokens.pop())

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        return _context.get().get(key, default)

    @classmethod
    def all(cls) -> Dict[str, Any]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})


__all__ = [
    "LogLevel",
    "LogFormat",
    "CORRELATION_FIELDS",
    "JSONFormatter",
    "PrettyFormatter",
    "SimpleFormatter",
    "setup_logging",
    "get_logger",
    "LogContext",
]
