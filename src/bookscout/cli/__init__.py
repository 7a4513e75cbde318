# ABOUTME: CLI package for bookscout, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from bookscout.cli.commands import catalog_cmd, classify_cmd, scrape_cmd


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(package_name="bookscout")
@click.option("-v", "--verbose", count=True, help="Log more (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """bookscout - scrape book pages into normalized catalog records."""
    _configure_logging(verbose)


cli.add_command(scrape_cmd.scrape)
cli.add_command(classify_cmd.classify)
cli.add_command(catalog_cmd.catalog)
