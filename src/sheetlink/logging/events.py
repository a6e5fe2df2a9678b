"""Sheet event schema and the module-level emit helpers.

Timestamps are UTC ISO-8601 with a ``Z`` suffix.  Emitting never raises:
a sink failure is logged through :mod:`logging` and the event is dropped.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

log = logging.getLogger(__name__)


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    fetch_started = "fetch_started"
    fetch_completed = "fetch_completed"
    fetch_failed = "fetch_failed"
    parse_failed = "parse_failed"
    cache_evicted = "cache_evicted"
    search_completed = "search_completed"
    search_failed = "search_failed"


# Error codes carried by warning and error events.
SHEET_NOT_FOUND = "sheet_not_found"
SHEET_FETCH_FAILED = "sheet_fetch_failed"
SHEET_PARSE_FAILED = "sheet_parse_failed"
FILTER_PARSE_FAILED = "filter_parse_failed"


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------

_SECRET_KEY_RE = re.compile(r"token|secret|password|authorization|api_?key", re.IGNORECASE)

_MAX_VALUE_LEN = 256


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *context* that is safe to write to disk.

    Values under secret-looking keys become ``"[REDACTED]"`` at any depth.
    Sheet URLs lose their credentials and query string, since a private
    repository token can ride along in either.  Long strings are cut to
    256 characters.
    """
    return {
        key: "[REDACTED]" if _SECRET_KEY_RE.search(str(key)) else _redact(value)
        for key, value in context.items()
    }


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return redact_context(value)
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    if not isinstance(value, str):
        return value
    if value.startswith(("http://", "https://")):
        parts = urlsplit(value)
        value = f"{parts.scheme}://{parts.hostname or ''}{parts.path}"
        if parts.query:
            value += "?[REDACTED]"
    if len(value) > _MAX_VALUE_LEN:
        value = value[:_MAX_VALUE_LEN] + "...[truncated]"
    return value


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class SheetEvent(BaseModel):
    """One line of the sheet event log."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


_sink: Any = None  # EventSink | None; events are discarded while unset


def set_log_dir(log_dir: Path | str | None, *, fsync: bool = False) -> None:
    """Send events to ``<log_dir>/events.ndjson``; ``None`` turns logging off."""
    global _sink
    if log_dir is None:
        _sink = None
        return

    from sheetlink.logging.sink import EventSink

    _sink = EventSink(Path(log_dir), fsync=fsync)


def get_sink() -> Any:
    return _sink


def emit(event: SheetEvent) -> None:
    """Redact *event* and append it to the configured sink.  Never raises."""
    sink = _sink
    if sink is None:
        return
    try:
        sink.write(event.model_copy(update={"context": redact_context(event.context)}))
    except Exception:
        log.warning("could not write %s event", event.event_type.value, exc_info=True)


def _emit_at(
    level: EventLevel,
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None,
    error_code: str | None = None,
) -> None:
    emit(SheetEvent(
        level=level,
        event_type=event_type,
        message=message,
        context=context or {},
        error_code=error_code,
    ))


def emit_info(event_type: EventType, message: str, context: dict[str, Any] | None = None) -> None:
    _emit_at(EventLevel.info, event_type, message, context)


def emit_warning(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    _emit_at(EventLevel.warning, event_type, message, context, error_code)


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    _emit_at(EventLevel.error, event_type, message, context, error_code)
