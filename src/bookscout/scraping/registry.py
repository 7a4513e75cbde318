# ABOUTME: Dispatch table from source variant to the extractor that handles it.
# ABOUTME: Fandom runs an external scraper; Goodreads is scraped in-process unless configured.

from collections.abc import Iterable

from bookscout.config import ScoutSettings
from bookscout.scraping.external import SubprocessExtractor
from bookscout.scraping.extractor import Extractor
from bookscout.scraping.goodreads import GoodreadsExtractor
from bookscout.scraping.http import HttpClient, ScoutHttpClient
from bookscout.scraping.payload import parse_fandom_payload, parse_goodreads_payload
from bookscout.scraping.sources import SourceVariant


def _external(
    settings: ScoutSettings, command: tuple[str, ...], variant: SourceVariant
) -> SubprocessExtractor:
    if variant is SourceVariant.GOODREADS:
        parse_payload, cwd = parse_goodreads_payload, settings.goodreads_dir
    else:
        parse_payload, cwd = parse_fandom_payload, settings.fandom_dir
    return SubprocessExtractor(
        command,
        parse_payload=parse_payload,
        cwd=cwd,
        install_command=settings.install_command or None,
        timeout=settings.timeout,
        name=variant.value,
    )


def build_extractors(
    settings: ScoutSettings,
    *,
    http_client: HttpClient | None = None,
) -> dict[SourceVariant, Extractor]:
    """Create the default extractor for every supported source.

    An HTTP client is only built when Goodreads is scraped in-process; the
    Goodreads extractor then owns it and closes it in close_extractors().
    """
    extractors: dict[SourceVariant, Extractor] = {
        SourceVariant.FANDOM: _external(settings, settings.fandom_command, SourceVariant.FANDOM),
    }
    if settings.goodreads_command:
        extractors[SourceVariant.GOODREADS] = _external(
            settings, settings.goodreads_command, SourceVariant.GOODREADS
        )
    elif http_client is not None:
        extractors[SourceVariant.GOODREADS] = GoodreadsExtractor(http_client)
    else:
        if settings.user_agent:
            client = ScoutHttpClient(timeout=settings.timeout, user_agent=settings.user_agent)
        else:
            client = ScoutHttpClient(timeout=settings.timeout)
        extractors[SourceVariant.GOODREADS] = GoodreadsExtractor(client, close_client=True)
    return extractors


def close_extractors(extractors: Iterable[Extractor]) -> None:
    """Release whatever the extractors hold open, such as HTTP connection pools."""
    for extractor in extractors:
        close = getattr(extractor, "close", None)
        if close is not None:
            close()
