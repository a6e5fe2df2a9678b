"""Column projection: keep only selected (possibly nested) fields of a row."""

from __future__ import annotations

from typing import Any, Mapping

from sheetlink.query.paths import MISSING, split_path, step


def shove(row: Mapping[str, Any], columns: list[str]) -> dict[str, Any]:
    """Return a new row holding only the fields named in *columns*.

    A single-segment column copies the top-level value as is (nested rows
    and arrays included, by reference).  A dotted column such as
    ``"ItemUICategory.Name"`` rebuilds only that chain of objects; columns
    sharing a prefix are merged into the same nested object.

    Paths missing from *row* are lenient: intermediate objects are still
    created, but the missing leaf is left out.
    """
    out: dict[str, Any] = {}
    for column in columns:
        segments = split_path(column)
        if len(segments) == 1:
            value = step(row, column)
            if value is not MISSING:
                out[column] = value
            continue

        src: Any = row
        dst = out
        for segment in segments[:-1]:
            src = step(src, segment)
            nested = dst.get(segment)
            # copy: the object may have been taken by reference from *row*
            nested = dict(nested) if isinstance(nested, dict) else {}
            dst[segment] = nested
            dst = nested
        value = step(src, segments[-1])
        if value is not MISSING:
            dst[segments[-1]] = value
    return out
