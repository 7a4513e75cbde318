# ABOUTME: Parsing functions for JSON documents emitted by external scraper processes.
# ABOUTME: Converts each scraper's own key names into a RawRecord.

from typing import Any

from bookscout.metadata.types import RawNumber, RawRecord


def _first(payload: dict[str, Any], *keys: str) -> Any:
    """Return the first value under keys that is neither missing nor blank."""
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return None


def _number(value: Any) -> RawNumber | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str | int | float):
        return value
    return None


def _text_list(value: Any) -> list[str]:
    """Accept a list of strings or a single string; drop anything else."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in (_text(v) for v in value) if item is not None]
    return []


def _authors(payload: dict[str, Any]) -> list[str]:
    # Scrapers disagree on "author" (one name) vs "authors" (a list); the single
    # field wins when both are present.
    single = _first(payload, "author")
    if single is not None:
        return _text_list(single)
    return _text_list(payload.get("authors"))


def parse_fandom_payload(payload: dict[str, Any]) -> RawRecord:
    """Parse the Fandom scraper's JSON output into a RawRecord."""
    return RawRecord(
        title=_text(_first(payload, "title")),
        image_url=_text(_first(payload, "cover_image_url", "imageUrl")),
        summary=_text(_first(payload, "plot_summary", "summary")),
        publication_date=_text(_first(payload, "publication_date", "publicationDate")),
        authors=_authors(payload),
        publisher=_text(_first(payload, "publisher")),
        genres=_text_list(payload.get("genres")),
        ratings_count=_number(_first(payload, "ratings")),
        average_rating=_number(_first(payload, "averageRating")),
        page_count=_number(_first(payload, "numberOfPages")),
        language=_text(_first(payload, "language")),
        characters=_text_list(payload.get("characters")),
        series_name=_text(_first(payload, "series", "seriesName")),
        series_position=_number(_first(payload, "seriesPosition", "positionInSeries")),
    )


def parse_goodreads_payload(payload: dict[str, Any]) -> RawRecord:
    """Parse the Goodreads scraper's JSON output into a RawRecord."""
    return RawRecord(
        title=_text(_first(payload, "bookName", "title")),
        image_url=_text(_first(payload, "imageUrl")),
        summary=_text(_first(payload, "bookSummary", "summary")),
        publication_date=_text(_first(payload, "publicationDate")),
        authors=_authors(payload),
        publisher=_text(_first(payload, "publisher")),
        genres=_text_list(payload.get("genres")),
        ratings_count=_number(_first(payload, "ratings")),
        average_rating=_number(_first(payload, "averageRating")),
        page_count=_number(_first(payload, "numberOfPages")),
        language=_text(_first(payload, "language")),
        characters=_text_list(payload.get("characters")),
        series_name=_text(_first(payload, "seriesName", "series")),
        series_position=_number(_first(payload, "positionInSeries", "seriesPosition")),
    )
