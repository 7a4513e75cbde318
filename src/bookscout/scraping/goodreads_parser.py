# ABOUTME: Parsing functions for Goodreads book-page HTML.
# ABOUTME: Reads each field through an ordered list of fallback selectors into a RawRecord.

import logging
import re

from bs4 import BeautifulSoup, NavigableString, Tag

from bookscout.metadata.types import RawRecord

logger = logging.getLogger(__name__)

# (css selector, attribute). attribute None means "use the element's text".
Selector = tuple[str, str | None]

_TITLE: tuple[Selector, ...] = (
    ('h1[data-testid="bookTitle"]', None),
    ("h1#bookTitle", None),
    ('meta[property="og:title"]', "content"),
)
_AUTHORS: tuple[str, ...] = (
    'span[data-testid="authorName"], .ContributorLink__name',
    'a.authorName span[itemprop="name"]',
    "a.authorName",
)
_IMAGE: tuple[Selector, ...] = (
    (".BookCover__image img.ResponsiveImage", "src"),
    (".BookCover__image img", "src"),
    ("img#coverImage", "src"),
    ('meta[property="og:image"]', "content"),
)
_SUMMARY: tuple[str, ...] = (
    ".BookPageMetadataSection__description .DetailsLayoutRightParagraph__widthConstrained .Formatted",
    ".BookPageMetadataSection__description .Formatted",
    '[data-testid="description"] .Formatted',
    "#description span[style]",
    "#description span",
)
_PUBLICATION_INFO: tuple[Selector, ...] = (
    ('[data-testid="publicationInfo"]', None),
    ("#details .row:nth-of-type(2)", None),
)
_PUBLISHER: tuple[Selector, ...] = (
    ('span[data-testid="publisher"]', None),
    ('span[itemprop="publisher"]', None),
)
_GENRES: tuple[str, ...] = (
    ".BookPageMetadataSection__genres .Button__labelItem",
    '[data-testid="genresList"] .Button__labelItem',
    ".elementList .left a.bookPageGenreLink",
)
_RATINGS_COUNT: tuple[Selector, ...] = (
    ('[data-testid="ratingsCount"]', None),
    ('meta[itemprop="ratingCount"]', "content"),
)
_AVERAGE_RATING: tuple[Selector, ...] = (
    (".RatingStatistics__rating", None),
    ('[data-testid="ratingValue"]', None),
    ('span[itemprop="ratingValue"]', None),
)
_PAGES: tuple[Selector, ...] = (
    ('p[data-testid="pagesFormat"]', None),
    ('div[data-testid="pagesFormat"]', None),
    ('span[itemprop="numberOfPages"]', None),
)
_DETAIL_ITEMS: tuple[str, ...] = (
    "div.BookDetails div.DescListItem",
    "div.DescListItem",
)
_LANGUAGE_FALLBACK: tuple[Selector, ...] = (('div[itemprop="inLanguage"]', None),)
_SERIES: tuple[str, ...] = (
    '.BookPageTitleSection__title h3 a[href*="/series/"]',
    '.BookPageTitleSection__series a[href*="/series/"]',
    'h2#bookSeries a[href*="/series/"]',
)
_CHARACTER_LINKS = 'a[href*="/characters/"]'

# Genre buttons share markup with UI controls that must not become genres.
_GENRE_UI_LABELS = frozenset({"Show all genres", "...more", "Genres"})

_FIRST_PUBLISHED_RE = re.compile(r"First published\s+(.+)", re.IGNORECASE)
_PUBLISHED_RE = re.compile(r"Published\s+(.+?)(?:\s+by\s+(.+))?$", re.IGNORECASE)
_RATINGS_COUNT_RE = re.compile(r"([\d,]+)")
_AVERAGE_RATING_RE = re.compile(r"\d{1,2}\.\d{1,2}")
_PAGES_RE = re.compile(r"(\d+)\s+pages", re.IGNORECASE)
_SERIES_RE = re.compile(
    r"^\(?(?P<name>.+?)"
    r"(?:\s*,?\s*\(?#(?P<position>\d+(?:\.\d+)?(?:-\d+(?:\.\d+)?)?)\)?)?\)?$"
)
_WHITESPACE_RE = re.compile(r"\s+")
_INLINE_WHITESPACE_RE = re.compile(r"[ \t\f\v\xa0]+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def _squash(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _read(element: Tag, attr: str | None) -> str | None:
    if attr is None:
        value = element.get_text()
    else:
        raw = element.get(attr)
        value = " ".join(raw) if isinstance(raw, list) else raw
    if value is None:
        return None
    value = _squash(value)
    return value or None


def select_text(soup: BeautifulSoup | Tag, selectors: tuple[Selector, ...]) -> str | None:
    """Return the first non-empty value found by the ordered selectors."""
    for css, attr in selectors:
        for element in soup.select(css):
            value = _read(element, attr)
            if value:
                return value
    return None


def select_texts(soup: BeautifulSoup | Tag, selectors: tuple[str, ...]) -> list[str]:
    """Return the texts of every element matched by the first selector that matches.

    Duplicates are dropped, order is kept.
    """
    for css in selectors:
        values: list[str] = []
        for element in soup.select(css):
            value = _read(element, None)
            if value and value not in values:
                values.append(value)
        if values:
            return values
    return []


def html_to_text(element: Tag) -> str:
    """Flatten an element to plain text, keeping line breaks from <br> and <p>.

    Plain get_text() collapses every paragraph of a summary into one line,
    so breaks are turned into newline characters before flattening.
    """
    for br in element.find_all("br"):
        br.replace_with(NavigableString("\n"))
    for paragraph in element.find_all("p"):
        paragraph.append(NavigableString("\n\n"))

    lines = [
        _INLINE_WHITESPACE_RE.sub(" ", line).strip()
        for line in element.get_text().split("\n")
    ]
    text = "\n".join(lines).strip()
    return _EXCESS_NEWLINES_RE.sub("\n\n", text)


def _parse_summary(soup: BeautifulSoup) -> str | None:
    for css in _SUMMARY:
        element = soup.select_one(css)
        if element is None:
            continue
        text = html_to_text(element)
        if text:
            return text
    return None


def _parse_publication(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    """Return (publication date text, publisher) from the publication line."""
    info = select_text(soup, _PUBLICATION_INFO)
    if not info:
        return None, None
    m = _FIRST_PUBLISHED_RE.search(info)
    if m:
        return m.group(1).strip(), None
    m = _PUBLISHED_RE.search(info)
    if m:
        publisher = m.group(2).strip() if m.group(2) else None
        return m.group(1).strip(), publisher
    return None, None


def _parse_ratings_count(soup: BeautifulSoup) -> str | None:
    text = select_text(soup, _RATINGS_COUNT)
    if not text:
        return None
    m = _RATINGS_COUNT_RE.search(text)
    return m.group(1).replace(",", "") if m else None


def _parse_average_rating(soup: BeautifulSoup) -> str | None:
    text = select_text(soup, _AVERAGE_RATING)
    if not text:
        return None
    m = _AVERAGE_RATING_RE.search(text)
    return m.group(0) if m else text


def _parse_pages(soup: BeautifulSoup) -> str | None:
    for css, attr in _PAGES:
        for element in soup.select(css):
            text = _read(element, attr)
            if not text:
                continue
            m = _PAGES_RE.search(text)
            if m:
                return m.group(1)
            if text.isdigit():
                return text
    return None


def _parse_language(soup: BeautifulSoup) -> str | None:
    for css in _DETAIL_ITEMS:
        for item in soup.select(css):
            term = item.select_one("dt")
            desc = item.select_one("dd")
            if term is None or desc is None:
                continue
            if _squash(term.get_text()).lower() == "language":
                value = _squash(desc.get_text())
                if value:
                    return value
    return select_text(soup, _LANGUAGE_FALLBACK)


def parse_series_text(text: str) -> tuple[str | None, str | None]:
    """Split "Name (#3)", "Name #3" or "(Name, #3)" into (name, position)."""
    m = _SERIES_RE.match(_squash(text))
    if not m:
        return None, None
    name = m.group("name").strip(" ,()")
    return (name or None), m.group("position")


def _parse_series(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    for css in _SERIES:
        element = soup.select_one(css)
        if element is None:
            continue
        name, position = parse_series_text(element.get_text())
        if name:
            return name, position
    return None, None


def parse_goodreads_page(html: str) -> RawRecord:
    """Parse a Goodreads book page into a RawRecord.

    Every field is optional: a selector that matches nothing leaves the
    field absent instead of raising.
    """
    soup = BeautifulSoup(html, "lxml")

    publication_date, info_publisher = _parse_publication(soup)
    series_name, series_position = _parse_series(soup)
    genres = [g for g in select_texts(soup, _GENRES) if g not in _GENRE_UI_LABELS]

    record = RawRecord(
        title=select_text(soup, _TITLE),
        image_url=select_text(soup, _IMAGE),
        summary=_parse_summary(soup),
        publication_date=publication_date,
        authors=select_texts(soup, _AUTHORS),
        publisher=select_text(soup, _PUBLISHER) or info_publisher,
        genres=genres,
        ratings_count=_parse_ratings_count(soup),
        average_rating=_parse_average_rating(soup),
        page_count=_parse_pages(soup),
        language=_parse_language(soup),
        characters=select_texts(soup, (_CHARACTER_LINKS,)),
        series_name=series_name,
        series_position=series_position,
    )
    logger.debug("Parsed Goodreads page: title=%r authors=%r", record.title, record.authors)
    return record
