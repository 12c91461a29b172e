"""Unified event schema and module-level emit helpers.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  The ``emit()``
family of functions is safe to call from any context -- failures are
swallowed and printed to stderr.
"""

from __future__ import annotations

import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    # Content
    cell_edit = "cell_edit"
    formula_evaluated = "formula_evaluated"
    formula_fallback = "formula_fallback"
    drag_fill = "drag_fill"

    # Formatting
    style_applied = "style_applied"

    # Grid shape
    grid_resized = "grid_resized"
    grid_resize_rejected = "grid_resize_rejected"

    # History
    undo = "undo"
    redo = "redo"
    history_empty = "history_empty"

    # Selection
    selection_changed = "selection_changed"

    # Integration
    observer_failed = "observer_failed"
    server_request = "server_request"


# ---------------------------------------------------------------------------
# Context clipping
# ---------------------------------------------------------------------------

_MAX_VALUE_LEN = 256
_MAX_LIST_LEN = 50


def clip_context(context: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *context* safe to write to a log line.

    Rules:
    - String values longer than 256 chars are truncated.
    - Lists longer than 50 items (e.g. a large selection) keep the first
      50 items plus a count of the rest.
    - Nested dicts are clipped recursively.
    """
    out: dict[str, Any] = {}
    for k, v in context.items():
        out[k] = _clip_value(v)
    return out


def _clip_value(v: Any) -> Any:
    if isinstance(v, dict):
        return clip_context(v)
    if isinstance(v, (list, tuple)):
        items = [_clip_value(item) for item in v[:_MAX_LIST_LEN]]
        if len(v) > _MAX_LIST_LEN:
            items.append(f"...[{len(v) - _MAX_LIST_LEN} more]")
        return items
    if isinstance(v, str) and len(v) > _MAX_VALUE_LEN:
        return v[:_MAX_VALUE_LEN] + "...[truncated]"
    return v


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class GridEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Module-level sink reference
# ---------------------------------------------------------------------------

# Set by ``configure_sink``; ``emit()`` discards events while it is None.
_sink: Any = None  # EventSink | MemorySink | None


def configure_sink(sink: Any) -> Any:
    """Install *sink* as the destination for ``emit()``.

    Any object with a ``write(event)`` method works.  Passing ``None``
    disables event output.  Returns the previously installed sink so
    callers can restore it.
    """
    global _sink
    previous = _sink
    _sink = sink
    return previous


def get_sink() -> Any:
    """Return the module-level sink, or None."""
    return _sink


# ---------------------------------------------------------------------------
# Rate-limited stderr warnings
# ---------------------------------------------------------------------------

_last_stderr_ts: float = 0.0
_STDERR_INTERVAL_SECS = 60.0


def _stderr_warning(msg: str) -> None:
    """Print a warning to stderr, rate-limited to one per 60 seconds."""
    global _last_stderr_ts
    now = time.monotonic()
    if _last_stderr_ts and now - _last_stderr_ts < _STDERR_INTERVAL_SECS:
        return
    _last_stderr_ts = now
    try:
        print(f"[cellgrid] {msg}", file=sys.stderr)
    except Exception:
        pass


# ---------------------------------------------------------------------------
# Safe emit helpers
# ---------------------------------------------------------------------------


def emit(event: GridEvent) -> None:
    """Write an event to the configured sink.

    **Never raises.**  On failure, prints a rate-limited warning to stderr.
    """
    try:
        sink = get_sink()
        if sink is None:
            return
        event = event.model_copy(update={"context": clip_context(event.context)})
        sink.write(event)
    except Exception:
        _stderr_warning(f"logging failed: {traceback.format_exc()}")


def emit_info(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Convenience: emit an info-level event."""
    emit(
        GridEvent(
            level=EventLevel.info,
            event_type=event_type,
            message=message,
            context=context or {},
        )
    )


def emit_warning(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit a warning-level event."""
    emit(
        GridEvent(
            level=EventLevel.warning,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        )
    )


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit an error-level event."""
    emit(
        GridEvent(
            level=EventLevel.error,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        )
    )
