# ABOUTME: Failure taxonomy for the scrape pipeline.
# ABOUTME: Each error carries a stable reason tag, an HTTP-style status, and readable details.


class ScrapeError(Exception):
    """Base class for every tagged pipeline failure.

    Subclasses pin ``reason`` (a stable machine-readable tag), ``status``
    (the HTTP-style status callers receive) and ``retryable``. ``details``
    is a human-readable explanation suitable for showing to the user.
    """

    reason = "ScrapeError"
    status = 500
    retryable = False
    message = "Scraping failed"

    def __init__(self, details: str | None = None) -> None:
        self.details = details
        super().__init__(f"{self.message}: {details}" if details else self.message)


class InvalidRequest(ScrapeError):
    """The request itself was malformed (no URL, URL not a string)."""

    reason = "InvalidRequest"
    status = 400
    message = "Missing or invalid URL"


class UnsupportedSource(ScrapeError):
    """The URL does not belong to any supported source."""

    reason = "UnsupportedSource"
    status = 400
    message = "Unsupported URL type. Currently supports: Fandom, Goodreads"


class ExtractionFailed(ScrapeError):
    """The source was reached but scraping it failed."""

    reason = "ExtractionFailed"
    retryable = True
    message = "Scraping process error"


class DependencyInstallFailed(ExtractionFailed):
    """An external scraper's dependencies could not be installed."""

    reason = "DependencyInstallFailed"
    retryable = False
    message = "Failed to prepare scraper dependencies"


class ExtractionTimeout(ScrapeError):
    """The source did not answer within the extraction time budget."""

    reason = "ExtractionTimeout"
    retryable = True
    message = "Timed out waiting for the source"


class ExtractionCancelled(ScrapeError):
    """The caller abandoned the run and the scraper was stopped."""

    reason = "ExtractionCancelled"
    retryable = True
    message = "Scrape was cancelled"


class MissingRequiredField(ScrapeError):
    """The scraped page did not contain a title."""

    reason = "MissingRequiredField"
    message = "Scraped page has no title"


class ReconciliationConflict(ScrapeError):
    """A catalog name could not be resolved to a single entity."""

    reason = "ReconciliationConflict"
    retryable = True
    message = "Could not reconcile catalog entity"


class UnexpectedFailure(ScrapeError):
    """An untagged error escaped a pipeline stage."""

    reason = "Unexpected"
    message = "Failed to scrape URL."
