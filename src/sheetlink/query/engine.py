"""Search over materialized rows: name similarity, filters, projection."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sheetlink.query.filters import FilterPredicate, evaluate_filters, parse_filters
from sheetlink.query.options import SearchOptions
from sheetlink.query.projection import shove

NAME_FIELD = "Name"


def levenshtein(a: str, b: str) -> int:
    """Edit distance between *a* and *b* (insert, delete, substitute)."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


class Pagination(BaseModel):
    """Single-page pagination block; every count equals the result count."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, alias="Page")
    page_next: int = Field(default=1, alias="PageNext")
    page_prev: int = Field(default=1, alias="PagePrev")
    page_total: int = Field(default=1, alias="PageTotal")
    results: int = Field(default=0, alias="Results")
    results_per_page: int = Field(default=0, alias="ResultsPerPage")
    results_total: int = Field(default=0, alias="ResultsTotal")

    @classmethod
    def single_page(cls, count: int) -> Pagination:
        return cls(results=count, results_per_page=count, results_total=count)


class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pagination: Pagination = Field(alias="Pagination")
    results: list[dict[str, Any]] = Field(alias="Results")

    def to_dict(self) -> dict[str, Any]:
        """Dump with the public ``Pagination`` / ``Results`` key names."""
        return self.model_dump(by_alias=True)


def name_matches(row: dict[str, Any], search_term: str | None, threshold: int) -> bool:
    if search_term is None:
        return True
    name = row.get(NAME_FIELD)
    if not isinstance(name, str):
        name = ""
    return levenshtein(name.lower(), search_term) <= threshold


def run_search(
    rows: list[dict[str, Any] | None],
    options: SearchOptions,
    predicates: list[FilterPredicate] | None = None,
) -> SearchResult:
    """Apply the name filter, structured filters and projection to *rows*.

    Row order is preserved.  Pre-parsed *predicates* take the place of
    ``options.filters`` when given.

    Raises:
        FilterParseError: If a filter expression is malformed.
    """
    if predicates is None:
        predicates = parse_filters(options.filters)
    term = options.search_term.lower().strip() if options.search_term else None

    results: list[dict[str, Any]] = []
    for row in rows:
        if row is None:
            continue
        if not name_matches(row, term, options.score_threshold):
            continue
        if not evaluate_filters(row, predicates):
            continue
        results.append(shove(row, options.columns) if options.columns else row)

    return SearchResult(pagination=Pagination.single_page(len(results)), results=results)
