# ABOUTME: The `bookscout catalog` command for listing reconciled catalog entities.
# ABOUTME: Displays Rich tables of authors, genres, and series with their IDs.

from contextlib import closing
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bookscout.cli.options import db_option
from bookscout.config import ScoutSettings
from bookscout.db.catalog import EntityCatalog
from bookscout.db.connection import open_catalog


@click.command()
@db_option
def catalog(db_path: Path | None) -> None:
    """List the authors, genres, and series in the catalog."""
    console = Console()
    path = db_path or ScoutSettings.from_env().db_path

    with closing(open_catalog(path)) as conn:
        entities = EntityCatalog(conn)
        sections = (
            ("Authors", entities.list_authors()),
            ("Genres", entities.list_genres()),
            ("Series", entities.list_series()),
        )

    if not any(rows for _, rows in sections):
        console.print("[yellow]The catalog is empty.[/yellow]")
        return

    for title, rows in sections:
        if not rows:
            continue
        table = Table(title=title)
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Name", style="bold")
        for entity_id, name in rows:
            table.add_row(str(entity_id), escape(name))
        console.print(table)
