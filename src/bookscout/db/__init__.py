# ABOUTME: Public API for the bookscout catalog database layer.
# ABOUTME: Exports connection management and entity lookup/creation.

from bookscout.db.catalog import DuplicateEntityError, EntityCatalog
from bookscout.db.connection import open_catalog

__all__ = [
    "DuplicateEntityError",
    "EntityCatalog",
    "open_catalog",
]
