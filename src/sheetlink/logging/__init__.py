"""Structured event logging for sheetlink.

Provides an event schema, a filesystem NDJSON sink, and safe emit
helpers that never raise uncaught exceptions.
"""

from sheetlink.logging.events import (
    EventLevel,
    EventType,
    SheetEvent,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    get_sink,
    redact_context,
    set_log_dir,
)
from sheetlink.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "SheetEvent",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_sink",
    "redact_context",
    "set_log_dir",
]
