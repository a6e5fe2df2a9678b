"""Sheet resolver: fetch, cache, materialize and search sheets.

Usage::

    async with SheetResolver("xivapi/ffxiv-datamining", "master", ttl=600) as sr:
        potion = await sr.get_sheet_item("Item", 4, recurse_depth=1)
        found = await sr.search("Item", {"searchTerm": "potion", "columns": ["ID", "Name"]})
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Collection

from sheetlink.cache import SheetCache
from sheetlink.errors import (
    FilterParseError,
    SheetFetchError,
    SheetNotFoundError,
    SheetParseError,
)
from sheetlink.logging.events import (
    FILTER_PARSE_FAILED,
    SHEET_FETCH_FAILED,
    SHEET_NOT_FOUND,
    SHEET_PARSE_FAILED,
    EventType,
    emit_error,
    emit_info,
    emit_warning,
)
from sheetlink.materialize import Row, build_row, to_row_index
from sheetlink.query.engine import SearchResult, run_search
from sheetlink.query.filters import parse_filters
from sheetlink.query.options import SearchOptions, validate_search_options
from sheetlink.schema import SheetData, parse_sheet
from sheetlink.source import DEFAULT_BRANCH, DEFAULT_REPO_ID, GitHubSheetSource, SheetSource


class SheetResolver:
    """Resolves named sheets into typed rows, following links between sheets.

    Each resolver owns its cache, so resolvers for different repositories
    or branches never share entries.
    """

    def __init__(
        self,
        repo_id: str = DEFAULT_REPO_ID,
        branch: str = DEFAULT_BRANCH,
        ttl: float = 600,
        *,
        source: SheetSource | None = None,
        cache: SheetCache | None = None,
        linkable_types: Collection[str] | None = None,
    ) -> None:
        """Initialize a resolver.

        Args:
            repo_id: Repository holding the sheets, e.g. ``"xivapi/ffxiv-datamining"``.
            branch: Branch of the repository.
            ttl: Seconds parsed sheets stay cached; ``0`` disables expiry.
            source: Sheet source; defaults to a :class:`GitHubSheetSource`.
            cache: Cache to use; defaults to a fresh :class:`SheetCache`.
            linkable_types: Type names that link to other sheets.  ``None``
                treats every non-empty type as a sheet name.
        """
        self.repo_id = repo_id
        self.branch = branch
        self.source: SheetSource = source if source is not None else GitHubSheetSource(repo_id, branch)
        self.cache = cache if cache is not None else SheetCache(ttl)
        self.linkable_types = frozenset(linkable_types) if linkable_types is not None else None
        self._inflight: dict[str, asyncio.Future[SheetData]] = {}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> SheetResolver:
        """Build a resolver from a config dict (see :mod:`sheetlink.config`)."""
        token_env = config.get("token_env")
        token = os.environ.get(token_env) if token_env else None
        source = GitHubSheetSource(
            config["repo_id"],
            config["branch"],
            base_url=config["base_url"],
            timeout=float(config["timeout"]),
            token=token or None,
        )
        return cls(
            config["repo_id"],
            config["branch"],
            float(config["ttl"]),
            source=source,
            linkable_types=config.get("linkable_types"),
        )

    async def __aenter__(self) -> SheetResolver:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Drop cached sheets and close the source if it holds a client."""
        self.cache.clear()
        closer = getattr(self.source, "aclose", None)
        if closer is not None:
            await closer()

    # ------------------------------------------------------------------
    # Raw sheet data
    # ------------------------------------------------------------------

    async def get_sheet_data(self, sheet_name: str) -> SheetData:
        """Return the parsed sheet, from cache or freshly fetched.

        Concurrent misses for the same sheet share one fetch.

        Raises:
            SheetFetchError: If the source cannot provide the sheet.
            SheetParseError: If the sheet's CSV is malformed.
        """
        evicted = self.cache.evict_expired()
        if evicted:
            emit_info(EventType.cache_evicted, f"Evicted {evicted} expired sheet(s)", {"count": evicted})

        cached = self.cache.get(sheet_name)
        if cached is not None:
            return cached

        future = self._inflight.get(sheet_name)
        if future is None:
            future = asyncio.ensure_future(self._load_once(sheet_name))
            self._inflight[sheet_name] = future
        return await asyncio.shield(future)

    async def _load_once(self, sheet_name: str) -> SheetData:
        try:
            return await self._load(sheet_name)
        finally:
            self._inflight.pop(sheet_name, None)

    async def _load(self, sheet_name: str) -> SheetData:
        ctx: dict[str, Any] = {"sheet": sheet_name, "repo_id": self.repo_id, "branch": self.branch}
        emit_info(EventType.fetch_started, f"Fetching sheet {sheet_name}", ctx)
        t0 = time.monotonic()

        try:
            text = await self.source.fetch(sheet_name)
        except SheetFetchError as exc:
            code = SHEET_NOT_FOUND if isinstance(exc, SheetNotFoundError) else SHEET_FETCH_FAILED
            emit_error(
                EventType.fetch_failed,
                str(exc),
                {**ctx, "status_code": exc.status_code, "url": exc.url},
                error_code=code,
            )
            raise

        try:
            data = parse_sheet(text, sheet_name)
        except SheetParseError as exc:
            emit_error(EventType.parse_failed, str(exc), {**ctx, "row": exc.row}, error_code=SHEET_PARSE_FAILED)
            raise

        self.cache.put(sheet_name, data)
        emit_info(
            EventType.fetch_completed,
            f"Loaded sheet {sheet_name} ({len(data)} rows)",
            {**ctx, "rows": len(data), "columns": len(data.field_names),
             "duration_ms": round((time.monotonic() - t0) * 1000, 1)},
        )
        return data

    # ------------------------------------------------------------------
    # Materialized rows
    # ------------------------------------------------------------------

    async def _resolve_reference(self, sheet_name: str, raw_index: Any, depth: int) -> Row | None:
        return await self.get_sheet_item(sheet_name, raw_index, depth)

    async def _build(self, cells: list[str] | None, data: SheetData, depth: int) -> Row | None:
        return await build_row(cells, data, depth, self._resolve_reference, self.linkable_types)

    async def get_sheet(self, sheet_name: str, recurse_depth: int = 1) -> list[Row]:
        """Return every row of *sheet_name*, links followed *recurse_depth* hops."""
        data = await self.get_sheet_data(sheet_name)
        rows = await asyncio.gather(*(self._build(cells, data, recurse_depth) for cells in data.rows))
        return [row for row in rows if row is not None]

    async def get_sheet_item(self, sheet_name: str, item_id: Any, recurse_depth: int = 1) -> Row | None:
        """Return the row at position *item_id*, or ``None`` if there is none.

        A null, negative, non-integral or out-of-range *item_id* yields
        ``None``; the sheet itself must still exist.
        """
        data = await self.get_sheet_data(sheet_name)
        index = to_row_index(item_id)
        cells = data.row_at(index) if index is not None else None
        if cells is None and item_id is not None:
            logging.getLogger(__name__).debug(
                "Sheet %s has no row for index %r", sheet_name, item_id
            )
        return await self._build(cells, data, recurse_depth)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        sheet_name: str,
        options: SearchOptions | dict[str, Any] | None = None,
    ) -> SearchResult:
        """Search *sheet_name* by fuzzy name, filters and column projection.

        Raises:
            FilterParseError: If a filter expression is malformed.
            SheetFetchError: If the sheet (or a linked sheet) cannot be fetched.
        """
        opts = validate_search_options(options)
        ctx: dict[str, Any] = {"sheet": sheet_name, "search_term": opts.search_term}

        try:
            predicates = parse_filters(opts.filters)
        except FilterParseError as exc:
            emit_warning(EventType.search_failed, str(exc), ctx, error_code=FILTER_PARSE_FAILED)
            raise

        rows = await self.get_sheet(sheet_name, opts.recurse_depth)
        result = run_search(rows, opts, predicates)

        emit_info(
            EventType.search_completed,
            f"Search on {sheet_name} matched {result.pagination.results_total} row(s)",
            {**ctx, "scanned": len(rows), "matched": result.pagination.results_total},
        )
        return result
