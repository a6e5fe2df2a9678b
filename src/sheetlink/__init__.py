"""sheetlink -- typed, linked, queryable views over remote CSV sheets."""

__version__ = "0.3.0"

from sheetlink.cache import SheetCache
from sheetlink.errors import (
    FilterParseError,
    SheetError,
    SheetFetchError,
    SheetNotFoundError,
    SheetParseError,
)
from sheetlink.query import SearchOptions, SearchResult, validate_search_options
from sheetlink.resolver import SheetResolver
from sheetlink.schema import SheetData
from sheetlink.source import GitHubSheetSource, MemorySheetSource, SheetSource

__all__ = [
    "FilterParseError",
    "GitHubSheetSource",
    "MemorySheetSource",
    "SearchOptions",
    "SearchResult",
    "SheetCache",
    "SheetData",
    "SheetError",
    "SheetFetchError",
    "SheetNotFoundError",
    "SheetParseError",
    "SheetResolver",
    "SheetSource",
    "__version__",
    "validate_search_options",
]
