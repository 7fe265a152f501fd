"""Structured logging for magistr.

Module loggers (`logging.getLogger(__name__)`) everywhere; the root handler
is installed by `configure_logging()`:
- JSON lines in production, one object per record
- a single readable line per record in dev

Both formats carry the request and correlation ids bound by the HTTP
middleware (or `log_context()` outside requests) and the current trace and
span ids.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

import orjson
from opentelemetry import trace

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Attributes every LogRecord has; anything else came in through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


def _context() -> dict[str, str]:
    """Ids bound to the current task, leaving out the empty ones."""
    ids = {
        "request_id": request_id_var.get(),
        "correlation_id": correlation_id_var.get(),
    }
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        ids["trace_id"] = format(span_context.trace_id, "032x")
        ids["span_id"] = format(span_context.span_id, "016x")
    return {key: value for key, value in ids.items() if value}


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    {"timestamp": "...", "level": "INFO", "logger": "magistr.service",
     "message": "Created quote 4", "request_id": "...", "trace_id": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(_context())
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(entry, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """`2026-01-10 12:34:56 | INFO     | magistr.service | Created quote 4 | req=abcdef12`"""

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record, '%Y-%m-%d %H:%M:%S')} | {record.levelname:<8} | "
            f"{record.name} | {record.getMessage()}"
        )
        ids = _context()
        tags = [f"req={ids['request_id'][:8]}"] if "request_id" in ids else []
        if "trace_id" in ids:
            tags.append(f"trace={ids['trace_id'][:8]}")
        if tags:
            line += " | " + " ".join(tags)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Replace the root handlers with one stderr handler in the chosen format."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "opentelemetry"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@contextmanager
def log_context(request_id: str, correlation_id: str | None = None) -> Iterator[None]:
    """Bind ids to every record logged inside the block.

    The correlation id defaults to the request id.
    """
    request_token = request_id_var.set(request_id)
    correlation_token = correlation_id_var.set(correlation_id or request_id)
    try:
        yield
    finally:
        correlation_id_var.reset(correlation_token)
        request_id_var.reset(request_token)
