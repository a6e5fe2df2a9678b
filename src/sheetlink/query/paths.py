"""Dotted field-path traversal over materialized rows.

``"ItemUICategory.Name"`` walks into the nested row stored under
``ItemUICategory``; an integer segment indexes into an array field
(``"Materia.0"``).  Traversal is lenient: a segment that does not exist,
including one below an unresolved (``None``) reference, yields
:data:`MISSING` instead of raising.
"""

from __future__ import annotations

from typing import Any, Mapping


class _Missing:
    """Marker for a path that does not exist on a row."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def split_path(path: str) -> list[str]:
    return path.split(".")


def step(value: Any, segment: str) -> Any:
    """Descend one segment from *value*, or return :data:`MISSING`."""
    if isinstance(value, Mapping):
        return value.get(segment, MISSING)
    if isinstance(value, list) and segment.isdigit():
        index = int(segment)
        if index < len(value):
            return value[index]
    return MISSING


def lookup_path(row: Mapping[str, Any], path: str) -> Any:
    """Return the value at dotted *path* in *row*, or :data:`MISSING`."""
    value: Any = row
    for segment in split_path(path):
        value = step(value, segment)
        if value is MISSING:
            break
    return value
