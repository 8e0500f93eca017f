# ABOUTME: CLI package for Shelvery, built on Click.
# ABOUTME: Defines the root command group, the --verbose logging switch, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from shelvery.cli.commands import apis_cmd, discover_cmd, lookup_cmd


@click.group()
@click.version_option(package_name="shelvery")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log provider calls to stderr.")
def cli(verbose: bool) -> None:
    """Shelvery - look up collectables across catalog providers."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )


cli.add_command(lookup_cmd.lookup)
cli.add_command(apis_cmd.apis)
cli.add_command(discover_cmd.discover)
