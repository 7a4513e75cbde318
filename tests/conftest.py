# ABOUTME: Shared pytest fixtures for bookscout tests.
# ABOUTME: Provides fixture HTML, fake external scraper scripts, and a temporary catalog.

import sqlite3
import sys
import textwrap
from collections.abc import Iterator
from pathlib import Path

import pytest

from bookscout.db.connection import open_catalog
from tests.fixtures.fakes import FakeScraperFactory


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def goodreads_html(fixtures_dir: Path) -> str:
    """A current-layout Goodreads book page."""
    return (fixtures_dir / "goodreads_book.html").read_text(encoding="utf-8")


@pytest.fixture
def goodreads_legacy_html(fixtures_dir: Path) -> str:
    """An old-layout Goodreads book page that only the fallback selectors match."""
    return (fixtures_dir / "goodreads_legacy.html").read_text(encoding="utf-8")


@pytest.fixture
def goodreads_empty_html(fixtures_dir: Path) -> str:
    """A page that matches none of the Goodreads selectors."""
    return (fixtures_dir / "goodreads_empty.html").read_text(encoding="utf-8")


@pytest.fixture
def fake_scraper(tmp_path: Path) -> FakeScraperFactory:
    """Write a Python script that behaves like an external scraper.

    Returns a factory taking the script body; the factory returns the
    command (interpreter + script) to hand to SubprocessExtractor.
    """
    counter = iter(range(1000))

    def _make(body: str) -> tuple[str, ...]:
        script = tmp_path / f"fake_scraper_{next(counter)}.py"
        script.write_text("import json, sys, time\n" + textwrap.dedent(body))
        return (sys.executable, str(script))

    return _make


@pytest.fixture
def catalog_conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    """An open catalog database in a temporary directory."""
    conn = open_catalog(tmp_path / "catalog.db")
    yield conn
    conn.close()
