# ABOUTME: The `bookscout scrape` command for previewing or importing one book page.
# ABOUTME: Runs the scrape pipeline and shows the normalized record or the error envelope.

import json
from contextlib import closing
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bookscout.cli.options import db_option
from bookscout.config import ScoutSettings
from bookscout.core.pipeline import UNTITLED_SENTINEL, PipelineRun, build_pipeline
from bookscout.db.catalog import EntityCatalog
from bookscout.db.connection import open_catalog
from bookscout.metadata.types import BookFields, ReconciledEntityIds


def _none(label: str = "none") -> str:
    return f"[dim]{label}[/dim]"


def _fields_table(url: str, fields: BookFields) -> Table:
    # Scraped text is shown literally; brackets in it are not Rich markup.
    table = Table(title=escape(url), show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", escape(fields.title))
    table.add_row("Author", escape(fields.author) or _none("unknown"))
    if fields.publication_date is not None:
        date = fields.publication_date
        table.add_row("Published", f"{escape(date.value)} [dim]({date.kind.value})[/dim]")
    else:
        table.add_row("Published", _none("unknown"))
    table.add_row("Publisher", escape(fields.publisher or "") or _none("unknown"))
    table.add_row("Language", escape(fields.language or "") or _none("unknown"))
    table.add_row("Genres", escape(", ".join(fields.genres)) or _none())
    if fields.series_name:
        position = f" #{fields.series_position}" if fields.series_position else ""
        table.add_row("Series", escape(f"{fields.series_name}{position}"))
    else:
        table.add_row("Series", _none())
    if fields.number_of_pages is not None:
        table.add_row("Pages", str(fields.number_of_pages))
    if fields.average_rating is not None:
        ratings = f" from {fields.ratings_count:,} ratings" if fields.ratings_count else ""
        table.add_row("Rating", f"{fields.average_rating:.2f}{ratings}")
    table.add_row("Characters", escape(", ".join(fields.characters)) or _none())
    table.add_row("Cover", escape(fields.image_url or "") or _none())
    table.add_row("Summary", escape(fields.summary or "") or _none())
    return table


def _entities_table(ids: ReconciledEntityIds) -> Table:
    table = Table(title="Catalog entities")
    table.add_column("Kind", style="bold")
    table.add_column("Name")
    table.add_column("ID", justify="right")
    for kind, names in (("author", ids.authors), ("genre", ids.genres), ("series", ids.series)):
        for name, entity_id in names.items():
            table.add_row(kind, escape(name), str(entity_id))
    return table


def _run(
    settings: ScoutSettings, url: str, persist: bool, fallback_title: str | None
) -> PipelineRun:
    if not persist:
        with closing(build_pipeline(settings, fallback_title=fallback_title)) as pipeline:
            return pipeline.run(url)
    with closing(open_catalog(settings.db_path)) as conn:
        pipeline = build_pipeline(
            settings, store=EntityCatalog(conn), fallback_title=fallback_title
        )
        with closing(pipeline):
            return pipeline.run(url, persist=True)


@click.command()
@click.argument("url")
@click.option(
    "--persist",
    is_flag=True,
    default=False,
    help="Reconcile authors, genres, and series into the catalog (default: preview only).",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the JSON response body instead of a table.",
)
@click.option(
    "--fallback-title",
    default=None,
    help="Title to use when the page has none, instead of failing.",
)
@click.option(
    "--allow-untitled",
    is_flag=True,
    default=False,
    help=f"Shorthand for --fallback-title '{UNTITLED_SENTINEL}'.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="Seconds to wait for the source (default: $BOOKSCOUT_TIMEOUT or 30).",
)
@db_option
def scrape(
    url: str,
    persist: bool,
    as_json: bool,
    fallback_title: str | None,
    allow_untitled: bool,
    timeout: float | None,
    db_path: Path | None,
) -> None:
    """Scrape a Goodreads or Fandom book page into a normalized record."""
    console = Console()

    try:
        settings = ScoutSettings.from_env()
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(2) from exc
    if timeout is not None:
        settings = replace(settings, timeout=timeout)
    if db_path is not None:
        settings = replace(settings, db_path=db_path)
    if allow_untitled and not fallback_title:
        fallback_title = UNTITLED_SENTINEL

    run = _run(settings, url, persist, fallback_title)
    status, body = run.to_response()

    if as_json:
        click.echo(json.dumps(body, indent=2, ensure_ascii=False))
    elif run.fields is not None:
        console.print(_fields_table(url, run.fields))
        if run.entity_ids is not None:
            console.print(_entities_table(run.entity_ids))
    else:
        console.print(f"[red]Error:[/red] {escape(body['error'])}")
        console.print(f"  [dim]{body['reason']}:[/dim] {escape(body['details'])}")

    if status != 200:
        raise SystemExit(1)
