# ABOUTME: Find-by-name and create operations for catalog authors, genres, and series.
# ABOUTME: Unique name indexes turn a lost creation race into DuplicateEntityError.

import sqlite3


class DuplicateEntityError(Exception):
    """Raised when creating an entity whose name already exists."""


# Entity kind -> table name. Table names never come from callers.
_TABLES = {
    "author": "authors",
    "genre": "genres",
    "series": "series",
}


class EntityCatalog:
    """Wraps a sqlite3 connection and provides typed lookups for named entities."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _find(self, kind: str, name: str) -> int | None:
        cursor = self._conn.execute(
            f"SELECT id FROM {_TABLES[kind]} WHERE name = ?", (name,)
        )
        row = cursor.fetchone()
        return row[0] if row else None

    def _create(self, kind: str, name: str) -> int:
        """Insert a new entity and return its row ID.

        Raises:
            DuplicateEntityError: If an entity with this name already exists.
        """
        table = _TABLES[kind]
        try:
            cursor = self._conn.execute(f"INSERT INTO {table} (name) VALUES (?)", (name,))
            self._conn.commit()
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            if f"UNIQUE constraint failed: {table}.name" in str(exc):
                raise DuplicateEntityError(f"{kind} {name!r} already exists") from exc
            raise

        return cursor.lastrowid  # type: ignore[return-value]

    def _list(self, kind: str) -> list[tuple[int, str]]:
        cursor = self._conn.execute(f"SELECT id, name FROM {_TABLES[kind]} ORDER BY name")
        return [(row[0], row[1]) for row in cursor.fetchall()]

    def find_author_by_name(self, name: str) -> int | None:
        """Return the ID of the author with exactly this name, if any."""
        return self._find("author", name)

    def create_author(self, name: str) -> int:
        return self._create("author", name)

    def find_genre_by_name(self, name: str) -> int | None:
        """Return the ID of the genre with this name, ignoring case."""
        return self._find("genre", name)

    def create_genre(self, name: str) -> int:
        return self._create("genre", name)

    def find_series_by_name(self, name: str) -> int | None:
        """Return the ID of the series with exactly this name, if any."""
        return self._find("series", name)

    def create_series(self, name: str) -> int:
        return self._create("series", name)

    def list_authors(self) -> list[tuple[int, str]]:
        """All authors as (id, name), alphabetically."""
        return self._list("author")

    def list_genres(self) -> list[tuple[int, str]]:
        return self._list("genre")

    def list_series(self) -> list[tuple[int, str]]:
        return self._list("series")
