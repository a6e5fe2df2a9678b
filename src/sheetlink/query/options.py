"""Search options and their lenient validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SCORE_THRESHOLD = 1
DEFAULT_RECURSE_DEPTH = 1


def _as_int(value: Any, default: int, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return default
    try:
        number = int(float(value.strip()) if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return default
    return number if number >= minimum else default


def _as_str_list(value: Any) -> list[str] | None:
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    if not isinstance(value, (list, tuple)):
        return None
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


class SearchOptions(BaseModel):
    """Options accepted by :meth:`SheetResolver.search`.

    Field names are snake_case; the camelCase names (``searchTerm``,
    ``scoreThreshold``, ``columns``, ``filters``, ``recurseDepth``) are
    accepted as aliases.  Malformed values fall back to their defaults
    instead of failing validation.
    """

    model_config = ConfigDict(populate_by_name=True)

    search_term: str | None = Field(default=None, alias="searchTerm")
    score_threshold: int = Field(default=DEFAULT_SCORE_THRESHOLD, alias="scoreThreshold")
    columns: list[str] | None = None
    filters: list[str] = Field(default_factory=list)
    recurse_depth: int = Field(default=DEFAULT_RECURSE_DEPTH, alias="recurseDepth")

    @field_validator("search_term", mode="before")
    @classmethod
    def _normalize_term(cls, value: Any) -> str | None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            return None
        value = value.lower().strip()
        return value or None

    @field_validator("score_threshold", mode="before")
    @classmethod
    def _normalize_threshold(cls, value: Any) -> int:
        return _as_int(value, DEFAULT_SCORE_THRESHOLD)

    @field_validator("recurse_depth", mode="before")
    @classmethod
    def _normalize_depth(cls, value: Any) -> int:
        return _as_int(value, DEFAULT_RECURSE_DEPTH)

    @field_validator("columns", mode="before")
    @classmethod
    def _normalize_columns(cls, value: Any) -> list[str] | None:
        columns = _as_str_list(value)
        return columns or None

    @field_validator("filters", mode="before")
    @classmethod
    def _normalize_filters(cls, value: Any) -> list[str]:
        return _as_str_list(value) or []


def validate_search_options(options: SearchOptions | dict[str, Any] | None = None) -> SearchOptions:
    """Turn caller input into a complete :class:`SearchOptions`.

    Accepts ``None``, a mapping (camelCase or snake_case keys), or an
    existing instance.  Unknown keys are ignored.  Never raises.
    """
    if isinstance(options, SearchOptions):
        return options
    if not isinstance(options, dict):
        return SearchOptions()
    return SearchOptions.model_validate(options)
