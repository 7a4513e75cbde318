# ABOUTME: Maps a source-shaped RawRecord onto the canonical BookFields schema.
# ABOUTME: Coerces numeric text, normalizes dates and series positions, and dedups genres.

import re

from bookscout.errors import MissingRequiredField
from bookscout.metadata.dates import normalize_date
from bookscout.metadata.series import normalize_series_position
from bookscout.metadata.types import BookFields, RawNumber, RawRecord

_INTEGER_RE = re.compile(r"\d[\d,]*")
_DECIMAL_RE = re.compile(r"\d+(?:\.\d+)?")
_MAX_RATING = 5.0


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _clean_summary(value: str | None) -> str | None:
    """Trim a summary without collapsing its paragraph breaks."""
    if value is None:
        return None
    text = value.replace("\r\n", "\n").replace("\r", "\n").strip()
    return text or None


def _clean_list(values: list[str]) -> list[str]:
    return [v.strip() for v in values if v and v.strip()]


def _dedup_exact(values: list[str]) -> list[str]:
    """Drop repeats by case-sensitive exact match, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _coerce_int(value: RawNumber | None) -> int | None:
    """Pull an integer out of "12,345 ratings"-style text. None on failure."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    m = _INTEGER_RE.search(value)
    if not m:
        return None
    return int(m.group(0).replace(",", ""))


def _coerce_float(value: RawNumber | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    m = _DECIMAL_RE.search(value)
    return float(m.group(0)) if m else None


def coerce_ratings_count(value: RawNumber | None) -> int | None:
    count = _coerce_int(value)
    return count if count is not None and count >= 0 else None


def coerce_average_rating(value: RawNumber | None) -> float | None:
    rating = _coerce_float(value)
    if rating is None or not 0.0 <= rating <= _MAX_RATING:
        return None
    return rating


def coerce_page_count(value: RawNumber | None) -> int | None:
    pages = _coerce_int(value)
    return pages if pages is not None and pages > 0 else None


def transform_record(raw: RawRecord) -> BookFields:
    """Build a canonical BookFields from a raw extraction result.

    A missing or blank title is the only failure: it raises
    MissingRequiredField. Values that cannot be coerced are dropped, and a
    series position without a series name is discarded.

    Raises:
        MissingRequiredField: If the raw record has no usable title.
    """
    title = _clean_text(raw.title)
    if title is None:
        raise MissingRequiredField("no title found on the page")

    series_name = _clean_text(raw.series_name)
    series_position = None
    if series_name is not None:
        position = raw.series_position
        if isinstance(position, str):
            position = _clean_text(position)
        series_position = normalize_series_position(position)

    return BookFields(
        title=title,
        authors=_clean_list(raw.authors),
        image_url=_clean_text(raw.image_url),
        summary=_clean_summary(raw.summary),
        publication_date=normalize_date(raw.publication_date),
        publisher=_clean_text(raw.publisher),
        genres=_dedup_exact(_clean_list(raw.genres)),
        ratings_count=coerce_ratings_count(raw.ratings_count),
        average_rating=coerce_average_rating(raw.average_rating),
        number_of_pages=coerce_page_count(raw.page_count),
        characters=_clean_list(raw.characters),
        language=_clean_text(raw.language),
        series_name=series_name,
        series_position=series_position,
    )
