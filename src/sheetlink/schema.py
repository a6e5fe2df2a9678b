"""Raw CSV tokenizing and header extraction for sheets.

A sheet's CSV carries three header rows before its data:

1. an index row (``key,0,1,2,...``), discarded
2. field names, first cell relabeled to ``ID``; one name may be
   brace-wrapped (``{Name}``) to mark the row's own key field
3. field types, empty or naming another sheet the column links into
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from sheetlink.errors import SheetParseError

ID_FIELD = "ID"

_HEADER_ROWS = 3


@dataclass(frozen=True)
class SheetData:
    """Parsed, not yet materialized, contents of one sheet.

    Attributes:
        rows: Data rows as raw string cells, aligned with ``field_names``.
        field_names: One name per column; ``""`` marks a skipped column.
        field_types: One type per column: ``""``, a scalar type such as
            ``int32``, or a linked sheet name.
        key_field: The brace-marked key field, if the sheet declares one.
    """

    rows: list[list[str]]
    field_names: list[str]
    field_types: list[str]
    key_field: str | None = None
    sheet_name: str | None = field(default=None, compare=False)

    def __len__(self) -> int:
        return len(self.rows)

    def row_at(self, index: int) -> list[str] | None:
        """Return the raw row at *index*, or ``None`` when out of range."""
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None


def parse_csv_text(text: str, sheet_name: str | None = None) -> list[list[str]]:
    """Tokenize raw CSV text into rows of string cells.

    Each row keeps the number of fields it actually has, so short or long
    records are left for :func:`extract_schema` to reject.  A blank line is
    a row with one empty cell; trailing blank lines are dropped.

    Raises:
        SheetParseError: If the text is empty or not well-formed CSV.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text.strip():
        raise SheetParseError("sheet is empty", sheet_name)
    try:
        rows = [row or [""] for row in csv.reader(io.StringIO(text), strict=True)]
    except csv.Error as exc:
        raise SheetParseError(f"malformed CSV: {exc}", sheet_name) from exc
    while rows and rows[-1] == [""]:
        rows.pop()
    return rows


def extract_schema(raw_rows: list[list[str]], sheet_name: str | None = None) -> SheetData:
    """Split a raw row matrix into data rows, field names and field types.

    The input is not mutated.

    Args:
        raw_rows: All CSV rows of the sheet, header rows included.
        sheet_name: Used for error messages only.

    Returns:
        The parsed :class:`SheetData`.

    Raises:
        SheetParseError: If header rows are missing or row widths disagree.
    """
    if len(raw_rows) < _HEADER_ROWS:
        raise SheetParseError(
            f"expected {_HEADER_ROWS} header rows, found {len(raw_rows)}", sheet_name
        )

    names_row = raw_rows[1]
    types_row = raw_rows[2]
    if not names_row:
        raise SheetParseError("field-name row is empty", sheet_name, row=1)
    if len(types_row) != len(names_row):
        raise SheetParseError(
            f"field-type row has {len(types_row)} columns, "
            f"field-name row has {len(names_row)}",
            sheet_name,
            row=2,
        )

    field_names: list[str] = []
    key_field: str | None = None
    for i, name in enumerate(names_row):
        if i == 0:
            name = ID_FIELD
        elif "{" in name:
            name = name.replace("{", "").replace("}", "")
            key_field = name
        field_names.append(name)

    width = len(field_names)
    rows: list[list[str]] = []
    for offset, row in enumerate(raw_rows[_HEADER_ROWS:]):
        if len(row) != width:
            raise SheetParseError(
                f"data row has {len(row)} columns, expected {width}",
                sheet_name,
                row=offset + _HEADER_ROWS,
            )
        rows.append(list(row))

    return SheetData(
        rows=rows,
        field_names=field_names,
        field_types=list(types_row),
        key_field=key_field,
        sheet_name=sheet_name,
    )


def parse_sheet(text: str, sheet_name: str | None = None) -> SheetData:
    """Tokenize and extract a sheet in one step."""
    return extract_schema(parse_csv_text(text, sheet_name), sheet_name)
