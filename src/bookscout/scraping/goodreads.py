# ABOUTME: DOM-based extractor for Goodreads book pages.
# ABOUTME: Fetches the page over HTTP and hands the HTML to the Goodreads parser.

import logging

from bs4.builder import ParserRejectedMarkup

from bookscout.errors import ExtractionFailed, ExtractionTimeout
from bookscout.metadata.types import RawRecord
from bookscout.scraping.goodreads_parser import parse_goodreads_page
from bookscout.scraping.http import FetchError, FetchTimeout, HttpClient

logger = logging.getLogger(__name__)


class GoodreadsExtractor:
    """Extracts a RawRecord from a Goodreads book page.

    Uses a dependency-injected HttpClient for testability. With
    ``close_client=True`` the extractor owns the client and close() releases it.
    """

    def __init__(self, http_client: HttpClient, *, close_client: bool = False) -> None:
        self._http = http_client
        self._close_client = close_client

    @property
    def name(self) -> str:
        return "goodreads"

    def extract(self, url: str) -> RawRecord:
        """Fetch and parse a Goodreads page.

        Raises:
            ExtractionTimeout: If the page did not arrive in time.
            ExtractionFailed: On transport errors or markup the parser rejects.
        """
        try:
            html = self._http.get_text(url)
        except FetchTimeout as exc:
            raise ExtractionTimeout(str(exc)) from exc
        except FetchError as exc:
            raise ExtractionFailed(str(exc)) from exc

        try:
            record = parse_goodreads_page(html)
        except ParserRejectedMarkup as exc:
            raise ExtractionFailed(f"Could not parse page from {url}: {exc}") from exc

        if record.title is None:
            logger.warning("No title found on %s; the page markup may have changed", url)
        return record

    def close(self) -> None:
        close = getattr(self._http, "close", None)
        if self._close_client and close is not None:
            close()
