# ABOUTME: SQLite connection management for the bookscout entity catalog.
# ABOUTME: Opens or creates the database, applies schema, and configures concurrent access.

import sqlite3
from pathlib import Path

from bookscout.config import DEFAULT_DB_PATH
from bookscout.db.schema import SCHEMA_V1

# Seconds a writer waits for another connection's lock before giving up.
_BUSY_TIMEOUT = 30.0


def _schema_exists(conn: sqlite3.Connection) -> bool:
    """Check if the schema has already been applied."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    return cursor.fetchone() is not None


def _apply_schema(conn: sqlite3.Connection) -> None:
    """Execute the DDL to create all tables and indexes.

    Runs inside an immediate transaction so two processes opening a fresh
    database at the same time do not both try to create it.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        if _schema_exists(conn):
            conn.rollback()
            return
        for statement in SCHEMA_V1.split(";"):
            if statement.strip():
                conn.execute(statement)
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise


def open_catalog(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the bookscout catalog database.

    Creates the database file and parent directories if they don't exist.
    Applies the schema on first creation. Sets WAL journal mode, a busy
    timeout for concurrent writers, and sqlite3.Row factory for dict-like
    column access.

    Args:
        path: Path to the database file. Defaults to ~/.bookscout/catalog.db.

    Returns:
        A configured sqlite3.Connection.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), timeout=_BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    if not _schema_exists(conn):
        _apply_schema(conn)

    return conn
