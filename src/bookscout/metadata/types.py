# ABOUTME: Core data structures for scraped book metadata.
# ABOUTME: RawRecord is what an extractor produces; BookFields is the normalized record.

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# A scraped numeric value may arrive as text ("12,345 ratings") or as a JSON number.
RawNumber = str | int | float


@dataclass
class RawRecord:
    """Unvalidated, source-shaped output of a single extraction call.

    Every field is optional. A page that matched none of the selectors yields
    a RawRecord with everything left at its default, which is not an error.
    """

    title: str | None = None
    image_url: str | None = None
    summary: str | None = None
    publication_date: str | None = None
    authors: list[str] = field(default_factory=list)
    publisher: str | None = None
    genres: list[str] = field(default_factory=list)
    ratings_count: RawNumber | None = None
    average_rating: RawNumber | None = None
    page_count: RawNumber | None = None
    language: str | None = None
    characters: list[str] = field(default_factory=list)
    series_name: str | None = None
    series_position: RawNumber | None = None


class DateKind(Enum):
    """How much of a publication date could be recovered."""

    FULL = "full"
    YEAR = "year"
    UNPARSED = "unparsed"


@dataclass(frozen=True)
class PublicationDate:
    """A tagged publication date.

    FULL values are ``YYYY-MM-DD``, YEAR values are ``YYYY`` and UNPARSED
    values carry the source text untouched so storage can keep it as-is.
    """

    kind: DateKind
    value: str

    @classmethod
    def full(cls, value: str) -> "PublicationDate":
        return cls(DateKind.FULL, value)

    @classmethod
    def year_only(cls, value: str) -> "PublicationDate":
        return cls(DateKind.YEAR, value)

    @classmethod
    def unparsed(cls, value: str) -> "PublicationDate":
        return cls(DateKind.UNPARSED, value)

    def __str__(self) -> str:
        return self.value


@dataclass
class BookFields:
    """Canonical, source-independent book record.

    Only title is required. Everything the source did not provide is left
    as None or an empty list ("soft absence").
    """

    title: str
    authors: list[str] = field(default_factory=list)
    image_url: str | None = None
    summary: str | None = None
    publication_date: PublicationDate | None = None
    publisher: str | None = None
    genres: list[str] = field(default_factory=list)
    ratings_count: int | None = None
    average_rating: float | None = None
    number_of_pages: int | None = None
    characters: list[str] = field(default_factory=list)
    language: str | None = None
    series_name: str | None = None
    series_position: str | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("title must not be empty")
        if self.series_position is not None and self.series_name is None:
            raise ValueError("series_position requires series_name")

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase JSON shape returned to API callers.

        Absent optional fields are omitted rather than sent as null.
        """
        data: dict[str, Any] = {
            "title": self.title,
            "authors": list(self.authors),
            "genres": list(self.genres),
            "characters": list(self.characters),
        }
        optional: dict[str, Any] = {
            "imageUrl": self.image_url,
            "summary": self.summary,
            "publisher": self.publisher,
            "ratings": self.ratings_count,
            "averageRating": self.average_rating,
            "numberOfPages": self.number_of_pages,
            "language": self.language,
            "series": self.series_name,
            "seriesPosition": self.series_position,
        }
        if self.publication_date is not None:
            optional["publicationDate"] = self.publication_date.value
            optional["publicationDateKind"] = self.publication_date.kind.value
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass
class ReconciledEntityIds:
    """Stable catalog identifiers for the names found in a BookFields."""

    authors: dict[str, int] = field(default_factory=dict)
    genres: dict[str, int] = field(default_factory=dict)
    series: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "authors": dict(self.authors),
            "genres": dict(self.genres),
            "series": dict(self.series),
        }
