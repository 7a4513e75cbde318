# ABOUTME: Maps free-text author, genre, and series names to stable catalog IDs.
# ABOUTME: Find-or-create with refetch on unique-constraint conflicts, so it is race-safe.

import logging
import sqlite3
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from bookscout.db.catalog import DuplicateEntityError
from bookscout.errors import ReconciliationConflict
from bookscout.metadata.types import BookFields, ReconciledEntityIds

logger = logging.getLogger(__name__)

_DEFAULT_MAX_ATTEMPTS = 3


@runtime_checkable
class EntityStore(Protocol):
    """Persistence operations the reconciler relies on.

    ``create_*`` must raise DuplicateEntityError when the name is already
    taken; that unique constraint is what keeps concurrent reconciliations
    from creating the same entity twice.
    """

    def find_author_by_name(self, name: str) -> int | None: ...

    def create_author(self, name: str) -> int: ...

    def find_genre_by_name(self, name: str) -> int | None: ...

    def create_genre(self, name: str) -> int: ...

    def find_series_by_name(self, name: str) -> int | None: ...

    def create_series(self, name: str) -> int: ...


class EntityReconciler:
    """Resolves every name in a BookFields to a catalog ID, creating as needed.

    Holds no locks: the store's unique constraint arbitrates races, and the
    loser of a race refetches the winner's row.
    """

    def __init__(self, store: EntityStore, *, max_attempts: int = _DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._store = store
        self._max_attempts = max_attempts

    def reconcile(self, fields: BookFields) -> ReconciledEntityIds:
        """Find or create the authors, genres, and series named in fields.

        Raises:
            ReconciliationConflict: If a name kept colliding without a row
                becoming visible to refetch, or the catalog database failed.
        """
        ids = ReconciledEntityIds()
        try:
            for name in fields.authors:
                ids.authors[name] = self.resolve_author(name)
            for name in fields.genres:
                ids.genres[name] = self.resolve_genre(name)
            if fields.series_name:
                ids.series[fields.series_name] = self.resolve_series(fields.series_name)
        except sqlite3.Error as exc:
            logger.warning("Catalog error while reconciling %r: %s", fields.title, exc)
            raise ReconciliationConflict(f"catalog error: {exc}") from exc
        return ids

    def resolve_author(self, name: str) -> int:
        return self._resolve(
            "author", name, self._store.find_author_by_name, self._store.create_author
        )

    def resolve_genre(self, name: str) -> int:
        return self._resolve(
            "genre", name, self._store.find_genre_by_name, self._store.create_genre
        )

    def resolve_series(self, name: str) -> int:
        return self._resolve(
            "series", name, self._store.find_series_by_name, self._store.create_series
        )

    def _resolve(
        self,
        kind: str,
        name: str,
        find: Callable[[str], int | None],
        create: Callable[[str], int],
    ) -> int:
        for attempt in range(1, self._max_attempts + 1):
            existing = find(name)
            if existing is not None:
                return existing
            try:
                return create(name)
            except DuplicateEntityError:
                # Another reconciliation created it between our find and create.
                logger.debug(
                    "Lost creation race for %s %r (attempt %d/%d), refetching",
                    kind,
                    name,
                    attempt,
                    self._max_attempts,
                )

        logger.warning(
            "Giving up reconciling %s %r after %d attempts", kind, name, self._max_attempts
        )
        raise ReconciliationConflict(
            f"{kind} {name!r} still conflicting after {self._max_attempts} attempts"
        )
