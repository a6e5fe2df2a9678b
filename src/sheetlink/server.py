"""FastAPI server exposing sheets and search over HTTP.

Routes are thin wrappers over a shared :class:`SheetResolver`.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Query

from sheetlink.errors import (
    FilterParseError,
    SheetError,
    SheetNotFoundError,
)
from sheetlink.resolver import SheetResolver

# Set at startup by ``create_app()``.
_resolver: SheetResolver | None = None


def create_app(resolver: SheetResolver) -> FastAPI:
    """Create the FastAPI application around *resolver*."""
    global _resolver
    _resolver = resolver

    from sheetlink import __version__

    app = FastAPI(title="sheetlink", version=__version__)
    app.include_router(_api_router())
    return app


def _res() -> SheetResolver:
    """Get the resolver, raising if not initialised."""
    if _resolver is None:
        raise HTTPException(500, "Resolver not initialised")
    return _resolver


def _http_error(exc: SheetError) -> HTTPException:
    if isinstance(exc, SheetNotFoundError):
        return HTTPException(404, str(exc))
    if isinstance(exc, FilterParseError):
        return HTTPException(400, str(exc))
    return HTTPException(502, str(exc))


def _api_router() -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health() -> dict[str, Any]:
        res = _res()
        describe = getattr(res.source, "describe", None)
        return {
            "status": "ok",
            "source": describe() if describe else {},
            "cached_sheets": res.cache.names(),
            "ttl": res.cache.ttl,
        }

    @router.get("/sheets/{name}")
    async def get_sheet(
        name: str,
        depth: int = Query(1, ge=0, le=5),
    ) -> list[dict[str, Any]]:
        try:
            return await _res().get_sheet(name, depth)
        except SheetError as exc:
            raise _http_error(exc)

    @router.get("/sheets/{name}/{item_id}")
    async def get_sheet_item(
        name: str,
        item_id: int,
        depth: int = Query(1, ge=0, le=5),
    ) -> dict[str, Any]:
        try:
            row = await _res().get_sheet_item(name, item_id, depth)
        except SheetError as exc:
            raise _http_error(exc)
        if row is None:
            raise HTTPException(404, f"Sheet {name!r} has no row {item_id}")
        return row

    @router.get("/search/{name}")
    async def search(
        name: str,
        searchTerm: str | None = Query(None),
        scoreThreshold: int | None = Query(None),
        columns: str | None = Query(None, description="Comma-separated dotted paths"),
        filters: list[str] = Query([], description="Repeatable field<op>value"),
        recurseDepth: int | None = Query(None, ge=0, le=5),
    ) -> dict[str, Any]:
        options: dict[str, Any] = {
            "searchTerm": searchTerm,
            "columns": columns,
            "filters": filters,
        }
        if scoreThreshold is not None:
            options["scoreThreshold"] = scoreThreshold
        if recurseDepth is not None:
            options["recurseDepth"] = recurseDepth
        try:
            result = await _res().search(name, options)
        except SheetError as exc:
            raise _http_error(exc)
        return result.to_dict()

    return router
