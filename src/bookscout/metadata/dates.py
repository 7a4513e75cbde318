# ABOUTME: Publication date normalization for loosely formatted scraped date text.
# ABOUTME: Runs a fixed fallback chain: ISO, year, long-form, month-year, strptime, year token.

import logging
import re
from datetime import date, datetime

from bookscout.metadata.types import PublicationDate

logger = logging.getLogger(__name__)

_MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sept": 9,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Full names come first in the alternation so "march" is never read as "mar".
_MONTH_ALTERNATION = "|".join(_MONTHS)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_YEAR_RE = re.compile(r"^\d{4}$")
# "January 1, 1998", "june 3rd 2003", "Sept. 14 ,  2010"
_LONG_FORM_RE = re.compile(
    rf"\b(?P<month>{_MONTH_ALTERNATION})\.?\s+(?P<day>\d{{1,2}})(?:st|nd|rd|th)?"
    r"(?:\s*,\s*|\s+)(?P<year>\d{4})\b",
    re.IGNORECASE,
)
# "2 July 1998", "21st March, 2011"
_DAY_FIRST_RE = re.compile(
    rf"\b(?P<day>\d{{1,2}})(?:st|nd|rd|th)?\s+(?P<month>{_MONTH_ALTERNATION})\.?"
    r"(?:\s*,\s*|\s+)(?P<year>\d{4})\b",
    re.IGNORECASE,
)
# "June 2003", "Dec. 1999"
_MONTH_YEAR_RE = re.compile(
    rf"\b(?P<month>{_MONTH_ALTERNATION})\.?,?\s+(?P<year>\d{{4}})\b",
    re.IGNORECASE,
)
_YEAR_TOKEN_RE = re.compile(r"\b(?:19|20)\d{2}\b")
# A day number right before a month name, as in "14 June".
_DAY_PREFIX_RE = re.compile(r"\b\d{1,2}(?:st|nd|rd|th)?\s*$", re.IGNORECASE)

# Tried in order by the generic calendar step. Numeric dates are read month-first.
_STRPTIME_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S",
)


def _calendar_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_iso(text: str) -> PublicationDate:
    parsed = _calendar_date(int(text[:4]), int(text[5:7]), int(text[8:10]))
    if parsed is None:
        logger.debug("Invalid calendar date %r, keeping the year only", text)
        return PublicationDate.year_only(text[:4])
    return PublicationDate.full(parsed.isoformat())


def _from_long_form(text: str) -> PublicationDate | None:
    m = _LONG_FORM_RE.search(text) or _DAY_FIRST_RE.search(text)
    if not m:
        return None
    parsed = _calendar_date(
        int(m.group("year")), _MONTHS[m.group("month").lower()], int(m.group("day"))
    )
    return PublicationDate.full(parsed.isoformat()) if parsed else None


def _from_month_year(text: str) -> PublicationDate | None:
    for m in _MONTH_YEAR_RE.finditer(text):
        # "31 June 2003" names a day, so it must not become the 1st.
        if _DAY_PREFIX_RE.search(text, 0, m.start()):
            continue
        parsed = _calendar_date(int(m.group("year")), _MONTHS[m.group("month").lower()], 1)
        return PublicationDate.full(parsed.isoformat()) if parsed else None
    return None


def _from_calendar_formats(text: str) -> PublicationDate | None:
    """Parse the whole string as a calendar date using a fixed set of formats.

    Never fills missing components from the current date, so the same input
    always yields the same output.
    """
    try:
        return PublicationDate.full(datetime.fromisoformat(text).date().isoformat())
    except ValueError:
        pass

    cleaned = re.sub(r"\s+", " ", text.replace(",", " ")).strip()
    for fmt in _STRPTIME_FORMATS:
        try:
            parsed = datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
        return PublicationDate.full(parsed.date().isoformat())
    return None


def normalize_date(text: str | None) -> PublicationDate | None:
    """Normalize free-text publication date into a tagged PublicationDate.

    Steps, first match wins:
      1. strict YYYY-MM-DD (invalid calendar dates keep only the year)
      2. bare YYYY
      3. "<Month> <day>[,] <year>" or "<day> <Month>[,] <year>" anywhere in the text
      4. "<Month> <year>" with no day before the month, day defaults to the 1st
      5. whole-string calendar parsing
      6. first 19xx/20xx token
      7. the original string, tagged UNPARSED

    Returns None for absent or blank input.
    """
    if text is None:
        return None
    stripped = text.strip()
    if not stripped:
        return None

    if _ISO_DATE_RE.match(stripped):
        return _from_iso(stripped)

    if _YEAR_RE.match(stripped):
        return PublicationDate.year_only(stripped)

    result = (
        _from_long_form(stripped)
        or _from_month_year(stripped)
        or _from_calendar_formats(stripped)
    )
    if result is not None:
        return result

    year = _YEAR_TOKEN_RE.search(stripped)
    if year:
        return PublicationDate.year_only(year.group(0))

    logger.debug("Could not normalize publication date %r", text)
    return PublicationDate.unparsed(text)
