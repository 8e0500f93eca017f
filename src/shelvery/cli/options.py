# ABOUTME: Shared Click options and wiring helpers for Shelvery CLI commands.
# ABOUTME: Provides the --config option and the HTTP client factory tests replace.

from pathlib import Path

import click

from shelvery.catalog.config import CONFIG_PATH_ENV, CatalogSettings, ConfigStore
from shelvery.catalog.http import ShelveryHttpClient

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to the container config JSON (default: ${CONFIG_PATH_ENV} or the bundled file)",
)


def create_http_client(settings: CatalogSettings) -> ShelveryHttpClient:
    """Create the HTTP client shared by every provider for one command run."""
    return ShelveryHttpClient(user_agent=settings.user_agent)


def open_config_store(config_path: Path | None) -> ConfigStore:
    return ConfigStore(config_path)
