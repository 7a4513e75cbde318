# ABOUTME: Classifies a book-page URL into the source family that can scrape it.
# ABOUTME: Pure host matching, no network access.

from enum import Enum
from urllib.parse import urlparse


class SourceVariant(Enum):
    """Site families the pipeline knows how to extract from."""

    FANDOM = "fandom"
    GOODREADS = "goodreads"
    UNKNOWN = "unknown"


# Host substring -> variant. Fandom wikis live on per-wiki subdomains.
_HOST_SUFFIXES: tuple[tuple[str, SourceVariant], ...] = (
    ("fandom.com", SourceVariant.FANDOM),
    ("goodreads.com", SourceVariant.GOODREADS),
)


def classify_url(url: str) -> SourceVariant:
    """Return the source variant for a URL, or UNKNOWN if nothing matches.

    Only http(s) URLs with a host are considered; anything unparseable is
    UNKNOWN rather than an error.
    """
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except (ValueError, AttributeError):
        return SourceVariant.UNKNOWN

    if parsed.scheme not in ("http", "https") or not hostname:
        return SourceVariant.UNKNOWN

    hostname = hostname.lower()
    for suffix, variant in _HOST_SUFFIXES:
        if hostname == suffix or hostname.endswith(f".{suffix}"):
            return variant
    return SourceVariant.UNKNOWN
