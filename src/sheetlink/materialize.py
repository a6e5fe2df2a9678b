"""Building typed rows from raw sheet cells.

A materialized row maps field names to coerced values.  Indexed columns
(``Materia[0]``, ``Materia[1]``) are folded into one list, and columns
whose type names a linkable sheet are replaced by the referenced row of
that sheet while recursion depth remains.
"""

from __future__ import annotations

import asyncio
import math
import re
from typing import Any, Awaitable, Callable, Collection

from sheetlink.schema import SheetData
from sheetlink.values import coerce_value, parse_array_field

Row = dict[str, Any]

# Scalar column types used by the sheet repositories; never sheet names.
_PRIMITIVE_TYPE_RE = re.compile(
    r"^(?:u?int(?:8|16|32|64)|s?byte|bool|bit(?:&[0-9A-Fa-f]+)?|str|string"
    r"|single|float|double|Image|Color)$"
)

# (sheet_name, raw_index, remaining_depth) -> referenced row or None
ResolveFn = Callable[[str, Any, int], Awaitable["Row | None"]]


def is_linkable(type_name: str, linkable_types: Collection[str] | None) -> bool:
    """Whether a column of *type_name* links into another sheet.

    With no configured allow-list, any non-empty type that is not a scalar
    type such as ``int32``, ``str`` or ``bit&01`` is taken as a sheet name.
    """
    if not type_name:
        return False
    if linkable_types is None:
        return _PRIMITIVE_TYPE_RE.match(type_name) is None
    return type_name in linkable_types


def to_row_index(value: Any) -> int | None:
    """Interpret a cell value as a row position, or ``None`` if it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer() or value < 0:
            return None
        return int(value)
    return None


async def build_row(
    cells: list[str] | None,
    data: SheetData,
    depth: int,
    resolve: ResolveFn,
    linkable_types: Collection[str] | None = None,
) -> Row | None:
    """Materialize one data row.

    Args:
        cells: Raw cells of the row, or ``None`` for an absent row.
        data: The sheet the row belongs to (field names and types).
        depth: Remaining reference hops; ``0`` leaves links as raw indices.
        resolve: Coroutine used to fetch a referenced row.
        linkable_types: Allow-list of linkable type names, or ``None``.

    Returns:
        The typed row, or ``None`` when *cells* is ``None``.
    """
    if cells is None:
        return None

    row: Row = {}
    pending: list[tuple[Any, Any, str, Any]] = []

    for col, name in enumerate(data.field_names):
        if not name:
            continue

        value = coerce_value(cells[col])
        base, index = parse_array_field(name)
        if base is None or index is None:
            row[name] = value
            slot: tuple[Any, Any] = (row, name)
        else:
            members = row.get(base)
            if not isinstance(members, list):
                members = []
                row[base] = members
            if len(members) <= index:
                members.extend([None] * (index + 1 - len(members)))
            members[index] = value
            slot = (members, index)

        type_name = data.field_types[col]
        if depth > 0 and is_linkable(type_name, linkable_types):
            pending.append((slot[0], slot[1], type_name, value))

    if pending:
        targets = await asyncio.gather(
            *(resolve(sheet, raw_index, depth - 1) for _, _, sheet, raw_index in pending)
        )
        for (container, key, _, _), target in zip(pending, targets):
            container[key] = target

    return row
