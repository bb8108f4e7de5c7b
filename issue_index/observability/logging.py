"""
Structured Logging: JSON Lines with Request-Scoped Context

Provides:
- JSON-formatted log output (one object per line)
- Context propagation through contextvars (e.g. the refresh trigger)
- Plain-text fallback for terminals

Modules log through ``logging.getLogger(__name__)`` with ``extra={...}``;
the formatter lifts those extras into top-level JSON fields.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional, TextIO

from issue_index.core.config import LoggingConfig


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


# Context variable for request-scoped fields
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
    "thread", "threadName", "taskName", "message", "asctime",
})


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "@timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        data.update(_log_context.get())

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                data[key] = value

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class StructuredLogger:
    """
    Thin wrapper that turns keyword arguments into structured fields.

    Usage:
        logger = StructuredLogger("issue_index.cli")

        with logger.context(command="top"):
            logger.info("Listing urgent issues", count=5)
    """

    __slots__ = ("_logger", "_default_extra")

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)
        self._default_extra: dict[str, Any] = {}

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, **kwargs)

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        extra = {**self._default_extra, **kwargs}
        self._logger.log(level.value, message, extra=extra)

    def with_extra(self, **kwargs: Any) -> StructuredLogger:
        """Child logger with additional default fields."""
        child = StructuredLogger(self._logger.name)
        child._default_extra = {**self._default_extra, **kwargs}
        return child

    @staticmethod
    def context(**kwargs: Any) -> _LogContext:
        """Context manager adding fields to every log line inside it."""
        return _LogContext(kwargs)


class _LogContext:
    """Context manager for adding fields to all logs."""

    __slots__ = ("_fields", "_token")

    def __init__(self, fields: dict[str, Any]) -> None:
        self._fields = fields
        self._token = None

    def __enter__(self) -> _LogContext:
        self._token = _log_context.set({**_log_context.get(), **self._fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def setup_logging(
    config: Optional[LoggingConfig] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        config: Level and output format (defaults: INFO, JSON)
        stream: Output stream (default: stderr)
    """
    config = config or LoggingConfig()
    level = LogLevel[config.level.upper()]

    root = logging.getLogger()
    root.setLevel(level.value)
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level.value)
    if config.json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))
    root.addHandler(handler)
