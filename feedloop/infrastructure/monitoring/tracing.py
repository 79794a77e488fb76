"""Correlation (trace) id context.

The feed loop sets a trace id when it starts, unless the caller already
set one, and clears it when it stops. `TraceIdFilter` stamps it on every
log record.
"""

import contextvars
import logging
import uuid
from typing import Optional

_trace_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("feedloop_trace_id", default=None)

NO_TRACE_ID = "-"


def has_trace_id() -> bool:
    return _trace_id.get() is not None


def get_trace_id() -> Optional[str]:
    return _trace_id.get()


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Sets the trace id for the current context, generating one if omitted."""
    value = trace_id or uuid.uuid4().hex[:16]
    _trace_id.set(value)
    return value


def clear() -> None:
    _trace_id.set(None)


class TraceIdFilter(logging.Filter):
    """Adds a `trace_id` attribute to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id.get() or NO_TRACE_ID
        return True
