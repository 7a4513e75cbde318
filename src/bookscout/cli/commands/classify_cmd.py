# ABOUTME: The `bookscout classify` command for checking which source a URL belongs to.
# ABOUTME: Exits non-zero for URLs no extractor supports.

import click
from rich.console import Console
from rich.markup import escape

from bookscout.scraping.sources import SourceVariant, classify_url


@click.command()
@click.argument("url")
def classify(url: str) -> None:
    """Show which source family a book-page URL belongs to."""
    console = Console()
    variant = classify_url(url)
    if variant is SourceVariant.UNKNOWN:
        console.print(f"[red]Unsupported:[/red] {escape(url)}")
        raise SystemExit(1)
    console.print(variant.value)
