# ABOUTME: Shared Click options for bookscout CLI commands.
# ABOUTME: Provides reusable decorators for common flags like --db.

from pathlib import Path

import click

from bookscout.config import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to catalog database (default: $BOOKSCOUT_DB or {DEFAULT_DB_PATH})",
)
