"""Command-line interface for sheetlink."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click

from sheetlink import __version__
from sheetlink.errors import SheetError


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _build_resolver(config: dict[str, Any]):
    """Create the resolver for a command (patched in tests)."""
    from sheetlink.resolver import SheetResolver

    return SheetResolver.from_config(config)


def _run(coro_fn) -> Any:
    """Run ``coro_fn(resolver)`` on a fresh resolver, mapping errors to click."""
    ctx = click.get_current_context()
    config = ctx.obj["config"]

    async def _main() -> Any:
        resolver = _build_resolver(config)
        try:
            return await coro_fn(resolver)
        finally:
            await resolver.aclose()

    try:
        return asyncio.run(_main())
    except SheetError as e:
        raise click.ClickException(str(e))


def _echo_json(data: Any, compact: bool) -> None:
    click.echo(json.dumps(data, indent=None if compact else 2, ensure_ascii=False, default=str))


@click.group()
@click.version_option(version=__version__, prog_name="sheetlink")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="Config file or directory.")
@click.option("--repo", default=None, help="Repository id, e.g. xivapi/ffxiv-datamining.")
@click.option("--branch", default=None, help="Repository branch.")
@click.option("--ttl", default=None, type=float, help="Cache TTL in seconds (0 = never expire).")
@click.option("--link", "links", multiple=True, help="Restrict linkable column types (repeatable).")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    repo: str | None,
    branch: str | None,
    ttl: float | None,
    links: tuple[str, ...],
) -> None:
    """sheetlink -- resolve linked CSV sheets into typed, searchable rows."""
    from sheetlink.config import load_config
    from sheetlink.logging import set_log_dir

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ValueError as e:
        raise click.ClickException(str(e))
    if repo:
        config["repo_id"] = repo
    if branch:
        config["branch"] = branch
    if ttl is not None:
        if ttl < 0:
            raise click.ClickException("--ttl must be >= 0")
        config["ttl"] = ttl
    if links:
        config["linkable_types"] = list(links)

    if config.get("log_dir"):
        set_log_dir(config["log_dir"])

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ---------------------------------------------------------------------------
# Init
# ---------------------------------------------------------------------------


@main.command()
@click.argument("directory", type=click.Path(file_okay=False), default=".")
def init(directory: str) -> None:
    """Write a sample sheetlink.yaml into DIRECTORY."""
    from sheetlink.config import CONFIG_FILENAME, SAMPLE_CONFIG

    target = Path(directory) / CONFIG_FILENAME
    if target.exists():
        raise click.ClickException(f"{target} already exists")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(SAMPLE_CONFIG)
    click.echo(f"Created {target}")


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.option("--depth", default=1, type=click.IntRange(min=0), help="Link recursion depth.")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Print at most N rows.")
@click.option("--compact", is_flag=True, help="Single-line JSON.")
def sheet(name: str, depth: int, limit: int | None, compact: bool) -> None:
    """Print every row of sheet NAME as JSON."""
    rows = _run(lambda r: r.get_sheet(name, depth))
    _echo_json(rows[:limit] if limit else rows, compact)


@main.command()
@click.argument("name")
@click.argument("item_id", type=int)
@click.option("--depth", default=1, type=click.IntRange(min=0), help="Link recursion depth.")
@click.option("--compact", is_flag=True, help="Single-line JSON.")
def item(name: str, item_id: int, depth: int, compact: bool) -> None:
    """Print row ITEM_ID of sheet NAME as JSON."""
    row = _run(lambda r: r.get_sheet_item(name, item_id, depth))
    if row is None:
        raise click.ClickException(f"Sheet {name!r} has no row {item_id}")
    _echo_json(row, compact)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.option("--term", "search_term", default=None, help="Fuzzy match against the Name field.")
@click.option("--threshold", "score_threshold", default=1, type=click.IntRange(min=0), help="Max edit distance.")
@click.option("--column", "columns", multiple=True, help="Dotted field path to keep (repeatable).")
@click.option("--filter", "filters", multiple=True, help="Filter as field<op>value (repeatable).")
@click.option("--depth", "recurse_depth", default=1, type=click.IntRange(min=0), help="Link recursion depth.")
@click.option("--compact", is_flag=True, help="Single-line JSON.")
def search(
    name: str,
    search_term: str | None,
    score_threshold: int,
    columns: tuple[str, ...],
    filters: tuple[str, ...],
    recurse_depth: int,
    compact: bool,
) -> None:
    """Search sheet NAME and print the result set as JSON."""
    options = {
        "searchTerm": search_term,
        "scoreThreshold": score_threshold,
        "columns": list(columns) or None,
        "filters": list(filters),
        "recurseDepth": recurse_depth,
    }
    result = _run(lambda r: r.search(name, options))
    _echo_json(result.to_dict(), compact)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command()
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]))
@click.option("--type", "event_type", default=None, help="Only this event type.")
@click.option("--sheet", default=None, help="Only events for this sheet.")
@click.option("--limit", default=50, type=click.IntRange(min=1, max=2000))
@click.pass_context
def events(ctx: click.Context, level: str | None, event_type: str | None, sheet: str | None, limit: int) -> None:
    """Show recent events from the configured log directory."""
    from sheetlink.logging import EventSink

    log_dir = ctx.obj["config"].get("log_dir")
    if not log_dir:
        raise click.ClickException("No log_dir configured")
    sink = EventSink(Path(log_dir))
    for evt in sink.read_events(level=level, event_type=event_type, sheet=sheet, limit=limit):
        click.echo(f"{evt.get('ts', '')}  {evt.get('level', ''):7s}  {evt.get('event_type', ''):18s}  {evt.get('message', '')}")


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", default=8000, type=int, help="Port.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve the HTTP API."""
    import uvicorn

    from sheetlink.server import create_app

    app = create_app(_build_resolver(ctx.obj["config"]))
    click.echo(f"sheetlink API at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="warning")
