"""Logging helpers: contextual fields and the JSON/dev formatters.

Pipeline code logs through plain module loggers and passes structured
fields with ``extra={...}``. Fields bound with :func:`bind_log_context`
(e.g. ``media_kind`` during an ingest) are copied onto every record by
:class:`MediaContextFilter`, so nested helpers don't have to repeat them.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else on the record is an extra.
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
    | {"message", "asctime", "taskName"}
)

_log_context: contextvars.ContextVar[Mapping[str, Any] | None] = contextvars.ContextVar(
    "pressroom_log_context", default=None
)


def bind_log_context(**fields: Any) -> contextvars.Token:
    """Merge ``fields`` into the current logging context and return a reset token.

    Empty values are dropped so callers can pass optional fields unconditionally.
    """
    merged = dict(_log_context.get(None) or {})
    merged.update(
        {key: value for key, value in fields.items() if value is not None and value != ""}
    )
    return _log_context.set(merged)


def reset_log_context(token: contextvars.Token) -> None:
    """Restore the context that was active before the matching bind."""
    with contextlib.suppress(ValueError, RuntimeError):
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    """Return a copy of the bound fields."""
    return dict(_log_context.get(None) or {})


class MediaContextFilter(logging.Filter):
    """Copy bound context fields onto each record that passes through."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in (_log_context.get(None) or {}).items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return the user-supplied fields of a record."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line, extras included, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in record_extras(record).items():
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            payload[key] = value

        return json.dumps(payload)


class DevFormatter(logging.Formatter):
    """Readable single-line format with ``key=value`` extras appended."""

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record, '%H:%M:%S')} {record.levelname:8} "
            f"{record.name} {record.getMessage()}"
        )
        extras = record_extras(record)
        if extras:
            line += " | " + " ".join(f"{key}={value!r}" for key, value in extras.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
