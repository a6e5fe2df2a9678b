"""Error types for sheet fetching, parsing and querying."""

from __future__ import annotations


class SheetError(Exception):
    """Base class for all sheetlink errors."""


class SheetFetchError(SheetError):
    """The sheet source failed to return a sheet.

    Attributes:
        sheet_name: The sheet that was requested.
        status_code: HTTP status returned upstream, if any.
        url: The address that was fetched, if known.
    """

    def __init__(
        self,
        sheet_name: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        self.sheet_name = sheet_name
        self.status_code = status_code
        self.url = url
        msg = message or f"Failed to fetch sheet {sheet_name!r}"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        super().__init__(msg)


class SheetNotFoundError(SheetFetchError):
    """The requested sheet does not exist upstream."""

    def __init__(
        self,
        sheet_name: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(
            sheet_name,
            f"Sheet not found: {sheet_name!r}",
            status_code=status_code,
            url=url,
        )


class SheetParseError(SheetError):
    """Raw sheet data could not be split into header rows and data rows.

    Attributes:
        sheet_name: The offending sheet, when known.
        row: Zero-based index of the offending row in the raw CSV, if any.
    """

    def __init__(self, message: str, sheet_name: str | None = None, row: int | None = None) -> None:
        self.sheet_name = sheet_name
        self.row = row
        full = message
        if sheet_name is not None:
            full = f"Sheet {sheet_name!r}: {full}"
        if row is not None:
            full += f" (at row {row})"
        super().__init__(full)


class FilterParseError(SheetError):
    """A filter expression could not be parsed.

    Attributes:
        expression: The raw filter text.
    """

    def __init__(self, expression: str, message: str | None = None) -> None:
        self.expression = expression
        msg = message or "no comparison operator found"
        super().__init__(f"Invalid filter {expression!r}: {msg}")

