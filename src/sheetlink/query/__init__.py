"""Querying materialized sheets: options, filters, projection and search.

Public API::

    from sheetlink.query import run_search, parse_filters, shove
"""

from sheetlink.query.engine import Pagination, SearchResult, levenshtein, run_search
from sheetlink.query.filters import (
    OPERATORS,
    FilterPredicate,
    compare,
    evaluate_filters,
    parse_filter,
    parse_filters,
)
from sheetlink.query.options import SearchOptions, validate_search_options
from sheetlink.query.paths import MISSING, lookup_path
from sheetlink.query.projection import shove

__all__ = [
    "MISSING",
    "OPERATORS",
    "FilterPredicate",
    "Pagination",
    "SearchOptions",
    "SearchResult",
    "compare",
    "evaluate_filters",
    "levenshtein",
    "parse_filter",
    "parse_filters",
    "lookup_path",
    "run_search",
    "shove",
    "validate_search_options",
]
