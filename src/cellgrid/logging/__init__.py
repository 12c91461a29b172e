"""Structured event logging for cellgrid.

Provides a unified event schema, an NDJSON file sink, an in-memory sink,
and safe emit helpers that never raise uncaught exceptions.
"""

from cellgrid.logging.events import (
    EventLevel,
    EventType,
    GridEvent,
    clip_context,
    configure_sink,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    get_sink,
)
from cellgrid.logging.sink import EventSink, MemorySink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "GridEvent",
    "MemorySink",
    "clip_context",
    "configure_sink",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_sink",
]
