# ABOUTME: The `shelvery lookup` command for resolving one title through the catalog router.
# ABOUTME: Prints the matched record(s) as a Rich table, or as JSON with --json.

import asyncio
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelvery.catalog.config import CatalogSettings
from shelvery.catalog.registry import build_router
from shelvery.catalog.types import CanonicalResult, SearchCriteria
from shelvery.cli import options

logger = logging.getLogger(__name__)

console = Console()


async def _lookup(
    criteria: SearchCriteria, container: str, limit: int, config_path: Path | None
) -> list[CanonicalResult]:
    settings = CatalogSettings.from_env()
    async with options.create_http_client(settings) as http_client:
        router = build_router(settings, http_client, options.open_config_store(config_path))
        if not router.supports_container(container):
            raise click.UsageError(f"Unknown container: {container}")
        if limit > 1:
            return await router.lookup_many(criteria, container, limit)
        result = await router.lookup(criteria, container)
        return [result] if result else []


def render_results(results: list[CanonicalResult]) -> Table:
    table = Table()
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="bold")
    table.add_column("Creator")
    table.add_column("Year", width=6)
    table.add_column("Source")
    table.add_column("ID", style="dim")

    for index, result in enumerate(results, 1):
        table.add_row(
            str(index),
            result.title,
            result.primary_creator or "[dim]unknown[/dim]",
            str(result.year) if result.year else "?",
            ", ".join(result.sources_used) or result.source or result.provider or "?",
            result.external_id or "",
        )
    return table


@click.command("lookup")
@click.argument("title")
@click.option("--year", type=int, default=None, help="Release year hint.")
@click.option("--format", "fmt", default=None, help="Format hint (e.g. hardcover, 4K, PS5).")
@click.option("--creator", default=None, help="Author, director or developer hint.")
@click.option("--isbn", default=None, help="ISBN to try before title search (books).")
@click.option("--container", default="books", show_default=True, help="Media container or alias.")
@click.option("--limit", type=click.IntRange(min=1), default=1, show_default=True, help="Number of matches.")
@options.config_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Print records as JSON.")
def lookup(
    title: str,
    year: int | None,
    fmt: str | None,
    creator: str | None,
    isbn: str | None,
    container: str,
    limit: int,
    config_path: Path | None,
    as_json: bool,
) -> None:
    """Look up TITLE in the providers configured for a container."""
    identifiers = {"isbn": isbn} if isbn else {}
    criteria = SearchCriteria(title=title, year=year, format=fmt, creator=creator, identifiers=identifiers)

    results = asyncio.run(_lookup(criteria, container, limit, config_path))

    if as_json:
        payload = [r.to_dict() for r in results]
        click.echo(json.dumps(payload if limit > 1 else (payload[0] if payload else None), indent=2, default=str))
        return

    if not results:
        console.print("[yellow]No match found.[/yellow]")
        return

    console.print(render_results(results))
    best = results[0]
    if best.description:
        console.print(f"\n{best.description[:300]}")
    console.print(f"\n[dim]{len(results)} result(s)[/dim]")
