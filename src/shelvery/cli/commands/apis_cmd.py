# ABOUTME: The `shelvery apis` command listing a container's providers in routing order.
# ABOUTME: Shows priority, mode, and whether each provider has its credentials.

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelvery.catalog.config import CatalogSettings
from shelvery.catalog.registry import build_default_adapters
from shelvery.cli import options

console = Console()


async def _configured_state(names: list[str]) -> dict[str, bool | None]:
    """Map each API name to whether its provider is configured (None if unknown)."""
    settings = CatalogSettings.from_env()
    async with options.create_http_client(settings) as http_client:
        factories = build_default_adapters(settings, http_client)
        return {name: factories[name]().is_configured() if name in factories else None for name in names}


@click.command("apis")
@click.argument("container")
@options.config_option
def apis(container: str, config_path: Path | None) -> None:
    """List the enabled APIs for CONTAINER in priority order."""
    store = options.open_config_store(config_path)
    config = store.snapshot().get_container(container)
    if config is None:
        console.print(f"[red]Unknown container:[/red] {container}")
        raise SystemExit(1)

    enabled = config.enabled_apis()
    if not enabled:
        console.print(f"[yellow]No enabled APIs for {config.key}.[/yellow]")
        return

    states = asyncio.run(_configured_state([api.name for api in enabled]))

    table = Table(title=f"{config.key} ({config.mode})")
    table.add_column("Priority", width=8)
    table.add_column("API", style="bold")
    table.add_column("Configured")

    for api in enabled:
        state = states.get(api.name)
        if state is None:
            label = "[red]unknown[/red]"
        else:
            label = "[green]yes[/green]" if state else "[yellow]no[/yellow]"
        table.add_row(str(api.priority) if api.priority is not None else "-", api.name, label)

    console.print(table)
