"""Per-resolver cache of parsed sheets with time-to-live expiry."""

from __future__ import annotations

import time
from typing import Callable

from sheetlink.schema import SheetData


class SheetCache:
    """Maps sheet names to parsed :class:`SheetData` with lazy expiry.

    Entries are stored before materialization, so callers asking for
    different recursion depths share one entry per sheet.  An entry
    expires ``ttl`` seconds after it was stored; ``ttl == 0`` keeps
    entries for the lifetime of the cache.
    """

    def __init__(self, ttl: float = 600, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the cache.

        Args:
            ttl: Seconds an entry stays valid; ``0`` disables expiry.
            clock: Monotonic time source, injectable for tests.
        """
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[SheetData, float | None]] = {}

    def get(self, name: str) -> SheetData | None:
        """Return the cached sheet, or ``None`` if absent or expired.

        An expired entry is evicted as a side effect.
        """
        entry = self._entries.get(name)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[name]
            return None
        return data

    def put(self, name: str, data: SheetData) -> None:
        """Store *data* under *name*, replacing any existing entry."""
        expires_at = self._clock() + self.ttl if self.ttl else None
        self._entries[name] = (data, expires_at)

    def invalidate(self, name: str) -> bool:
        """Drop the entry for *name*.  Returns whether one was present."""
        return self._entries.pop(name, None) is not None

    def evict_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        if not self.ttl:
            return 0
        now = self._clock()
        expired = [
            name for name, (_, expires_at) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for name in expired:
            del self._entries[name]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def names(self) -> list[str]:
        """Names of all entries currently held, expired or not."""
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._entries)
