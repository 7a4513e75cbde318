# ABOUTME: Extractor protocol defining the contract for per-source scrapers.
# ABOUTME: Any page scraper (DOM-based or an external process) implements this.

from typing import Protocol, runtime_checkable

from bookscout.metadata.types import RawRecord


@runtime_checkable
class Extractor(Protocol):
    """Protocol for turning one book-page URL into a RawRecord.

    Implementations raise ExtractionFailed or ExtractionTimeout; a page that
    simply lacks fields is returned as a sparse RawRecord instead.
    """

    @property
    def name(self) -> str: ...

    def extract(self, url: str) -> RawRecord: ...
