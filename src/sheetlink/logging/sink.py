"""Filesystem NDJSON event sink with locked appends.

Events are appended to ``<log_dir>/events.ndjson``, one JSON object per
line, written with ``sort_keys=True`` for deterministic output.  Appends
take an exclusive ``fcntl.flock`` and reads a shared one; on platforms
without ``fcntl`` locking is skipped.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from sheetlink.logging.events import SheetEvent

try:
    import fcntl

    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False

_LOG_NAME = "events.ndjson"

# Default tail-read size (2 MB)
_DEFAULT_TAIL_BYTES = 2 * 1024 * 1024


class EventSink:
    """Append-only NDJSON log writer."""

    def __init__(self, log_dir: Path, *, fsync: bool = False, tail_bytes: int | None = None) -> None:
        self.log_dir = log_dir
        self.path = log_dir / _LOG_NAME
        self._fsync = fsync
        self._tail_bytes = tail_bytes if tail_bytes is not None else _DEFAULT_TAIL_BYTES
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, event: SheetEvent) -> None:
        """Append *event* to the log."""
        line = json.dumps(event.model_dump(mode="json"), sort_keys=True, default=str) + "\n"
        self._append(line)

    def read_events(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        sheet: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Read events most-recent-first, optionally filtered.

        Only the tail of the file is read to bound memory use.
        """
        limit = min(limit, 2000)
        events = self._read_ndjson()

        if level:
            events = [e for e in events if e.get("level") == level]
        if event_type:
            events = [e for e in events if e.get("event_type") == event_type]
        if sheet:
            events = [
                e for e in events
                if e.get("context", {}).get("sheet") == sheet
            ]

        events.reverse()
        return events[:limit]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _append(self, line: str) -> None:
        if _HAS_FCNTL:
            fd = os.open(str(self.path), os.O_WRONLY | os.O_CREAT | os.O_APPEND)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                os.write(fd, line.encode("utf-8"))
                if self._fsync:
                    os.fsync(fd)
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
        else:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
                if self._fsync:
                    f.flush()
                    os.fsync(f.fileno())

    def _read_ndjson(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        events: list[dict[str, Any]] = []
        for line in self._read_tail().splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return events

    def _read_tail(self) -> str:
        """Read up to the last ``self._tail_bytes`` of the log."""
        if _HAS_FCNTL:
            fd = os.open(str(self.path), os.O_RDONLY)
            try:
                fcntl.flock(fd, fcntl.LOCK_SH)
                file_size = os.fstat(fd).st_size
                if file_size <= self._tail_bytes:
                    data = os.read(fd, file_size)
                else:
                    os.lseek(fd, file_size - self._tail_bytes, os.SEEK_SET)
                    data = os.read(fd, self._tail_bytes)
                    # Drop the first (likely partial) line
                    idx = data.find(b"\n")
                    if idx >= 0:
                        data = data[idx + 1:]
                return data.decode("utf-8", errors="replace")
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)

        with open(self.path, "rb") as f:
            size = f.seek(0, os.SEEK_END)
            f.seek(max(0, size - self._tail_bytes))
            data = f.read()
        if size > self._tail_bytes:
            idx = data.find(b"\n")
            if idx >= 0:
                data = data[idx + 1:]
        return data.decode("utf-8", errors="replace")
