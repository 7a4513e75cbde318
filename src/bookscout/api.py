# ABOUTME: HTTP surface for the scrape pipeline: POST /scrape.
# ABOUTME: Returns canonical book fields, or an error envelope with the pipeline's status.

import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, closing
from dataclasses import dataclass
from typing import Any, Protocol

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bookscout import __version__
from bookscout.config import ScoutSettings
from bookscout.core.pipeline import ScrapePipeline, error_envelope
from bookscout.core.reconciler import EntityReconciler
from bookscout.db.catalog import EntityCatalog
from bookscout.db.connection import open_catalog
from bookscout.errors import InvalidRequest
from bookscout.scraping.extractor import Extractor
from bookscout.scraping.http import HttpClient
from bookscout.scraping.registry import build_extractors, close_extractors
from bookscout.scraping.sources import SourceVariant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scrape"])

DISCONNECT_POLL_SECONDS = 0.5


class ClientConnection(Protocol):
    async def is_disconnected(self) -> bool: ...


@dataclass
class ScrapeJob:
    """One request's pipeline run, executed on a worker thread."""

    extractors: dict[SourceVariant, Extractor]
    settings: ScoutSettings
    url: str
    persist: bool = False
    fallback_title: str | None = None
    thread_id: int | None = None

    def run(self) -> tuple[int, dict[str, Any]]:
        self.thread_id = threading.get_ident()
        if not self.persist:
            pipeline = ScrapePipeline(self.extractors, fallback_title=self.fallback_title)
            return pipeline.run(self.url).to_response()

        with closing(open_catalog(self.settings.db_path)) as conn:
            reconciler = EntityReconciler(EntityCatalog(conn))
            pipeline = ScrapePipeline(
                self.extractors, reconciler, fallback_title=self.fallback_title
            )
            return pipeline.run(self.url, persist=True).to_response()

    def cancel(self) -> None:
        # Scoped to this job's worker thread; other requests share the extractors.
        if self.thread_id is not None:
            ScrapePipeline(self.extractors).cancel(self.thread_id)


async def run_until_disconnected(
    client: ClientConnection,
    job: ScrapeJob,
    poll_seconds: float = DISCONNECT_POLL_SECONDS,
) -> tuple[int, dict[str, Any]]:
    """Run job off the event loop, stopping its scraper if the client goes away.

    Cancellation is repeated on every poll after the disconnect, so a child
    process started just after the first attempt is still stopped.
    """
    task = asyncio.ensure_future(run_in_threadpool(job.run))
    disconnected = False
    while True:
        done, _ = await asyncio.wait({task}, timeout=poll_seconds)
        if done:
            return task.result()
        if not disconnected and await client.is_disconnected():
            logger.info("Client disconnected, cancelling scrape of %s", job.url)
            disconnected = True
        if disconnected:
            job.cancel()


@router.post("/scrape")
async def api_scrape(
    request: Request, payload: dict[str, Any] | None = Body(None)
) -> JSONResponse:
    """Scrape one book page. Body: {"url": str, "persist"?: bool, "fallbackTitle"?: str}."""
    payload = payload or {}
    url = payload.get("url")
    if not isinstance(url, str) or not url.strip():
        status, body = error_envelope(InvalidRequest("request body needs a string 'url'"))
        return JSONResponse(body, status_code=status)

    fallback_title = payload.get("fallbackTitle")
    if not isinstance(fallback_title, str) or not fallback_title.strip():
        fallback_title = None

    job = ScrapeJob(
        request.app.state.extractors,
        request.app.state.settings,
        url,
        persist=payload.get("persist") is True,
        fallback_title=fallback_title,
    )
    try:
        status, body = await run_until_disconnected(request, job)
    except Exception as exc:
        logger.exception("Unexpected failure scraping %s", url)
        status, body = error_envelope(exc)
    return JSONResponse(body, status_code=status)


async def _invalid_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    status, body = error_envelope(InvalidRequest(str(exc.errors())))
    return JSONResponse(body, status_code=status)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the extractors the app built for itself on shutdown."""
    try:
        yield
    finally:
        if app.state.owns_extractors:
            close_extractors(app.state.extractors.values())


def create_app(
    settings: ScoutSettings | None = None,
    *,
    extractors: dict[SourceVariant, Extractor] | None = None,
    http_client: HttpClient | None = None,
) -> FastAPI:
    """Build the FastAPI app. Extractors are created once and shared by requests."""
    settings = settings or ScoutSettings.from_env()
    app = FastAPI(title="bookscout", version=__version__, lifespan=_lifespan)
    app.state.settings = settings
    app.state.owns_extractors = extractors is None
    if extractors is None:
        extractors = build_extractors(settings, http_client=http_client)
    app.state.extractors = extractors
    app.add_exception_handler(RequestValidationError, _invalid_request_handler)
    app.include_router(router)
    return app
