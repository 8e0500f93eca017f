# ABOUTME: The `shelvery discover` command printing bestseller, release, trending and upcoming lists.
# ABOUTME: Uses the providers' fetch_all rather than title lookup.

import asyncio
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from shelvery.catalog.config import CatalogSettings
from shelvery.catalog.parsers.bluray import FORMAT_4K, FORMAT_ALL, FORMAT_BLURAY
from shelvery.catalog.registry import build_default_adapters
from shelvery.catalog.types import CanonicalResult
from shelvery.cli import options

console = Console()

# Source -> credentials it needs, for the usage error.
_CREDENTIALS = {
    "nyt": "NYT_BOOKS_API_KEY",
    "tmdb": "TMDB_API_KEY",
    "tmdbTv": "TMDB_API_KEY",
    "igdb": "IGDB_CLIENT_ID / IGDB_CLIENT_SECRET",
}


async def _discover(source: str, fmt: str, limit: int) -> list[CanonicalResult]:
    settings = CatalogSettings.from_env()
    async with options.create_http_client(settings) as http_client:
        provider: Any = build_default_adapters(settings, http_client)[source]()
        if not provider.is_configured():
            raise click.UsageError(f"{_CREDENTIALS[source]} is not set")
        if source == "bluray":
            return await provider.fetch_all(fmt)
        if source == "nyt":
            return await provider.fetch_all()
        return await provider.fetch_all(limit)


@click.command("discover")
@click.argument("source", type=click.Choice(["nyt", "bluray", "tmdb", "tmdbTv", "igdb"]))
@click.option(
    "--format",
    "fmt",
    type=click.Choice([FORMAT_ALL, FORMAT_BLURAY, FORMAT_4K]),
    default=FORMAT_ALL,
    show_default=True,
    help="Release format filter (bluray only).",
)
@click.option("--limit", type=click.IntRange(min=1), default=25, show_default=True)
def discover(source: str, fmt: str, limit: int) -> None:
    """Print NYT bestsellers, blu-ray.com releases, or TMDB/IGDB trending and upcoming lists."""
    items = asyncio.run(_discover(source, fmt, limit))
    if not items:
        console.print("[yellow]Nothing found.[/yellow]")
        return

    table = Table()
    table.add_column("Title", style="bold")
    if source == "nyt":
        table.add_column("Author")
        table.add_column("List")
        table.add_column("Rank", width=5)
        for item in items[:limit]:
            table.add_row(
                item.title,
                item.primary_creator or "",
                item.extras.get("listName") or "",
                str(item.extras.get("rank") or ""),
            )
    elif source == "bluray":
        table.add_column("Format", width=8)
        table.add_column("Section")
        table.add_column("Release")
        for item in items[:limit]:
            table.add_row(
                item.title,
                ", ".join(item.formats),
                item.extras.get("section") or "",
                item.extras.get("releaseDate") or "?",
            )
    else:
        # Per-list limit already applied upstream; show every list.
        table.add_column("List")
        table.add_column("Release")
        table.add_column("Genre")
        for item in items:
            table.add_row(
                item.title,
                item.extras.get("itemType") or "",
                item.extras.get("releaseDate") or "?",
                ", ".join(item.genre[:3]),
            )

    console.print(table)
    console.print(f"\n[dim]{len(items)} item(s)[/dim]")
