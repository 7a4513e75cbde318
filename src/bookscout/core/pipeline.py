# ABOUTME: Scrape pipeline: classify the URL, extract, transform, and optionally reconcile.
# ABOUTME: Tracks each run's state machine and decides the status of every failure.

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from bookscout.config import ScoutSettings
from bookscout.core.reconciler import EntityReconciler, EntityStore
from bookscout.errors import InvalidRequest, ScrapeError, UnexpectedFailure, UnsupportedSource
from bookscout.metadata.transform import transform_record
from bookscout.metadata.types import BookFields, RawRecord, ReconciledEntityIds
from bookscout.scraping.extractor import Extractor
from bookscout.scraping.http import HttpClient
from bookscout.scraping.registry import build_extractors, close_extractors
from bookscout.scraping.sources import SourceVariant, classify_url

logger = logging.getLogger(__name__)

# Title callers may substitute when a page has none. Never applied implicitly.
UNTITLED_SENTINEL = "Untitled Book"


class PipelineState(Enum):
    IDLE = "idle"
    CLASSIFYING = "classifying"
    EXTRACTING = "extracting"
    TRANSFORMING = "transforming"
    RECONCILING = "reconciling"
    DONE = "done"
    FAILED = "failed"


_TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.FAILED})


def error_envelope(exc: BaseException) -> tuple[int, dict[str, str]]:
    """Map a failure to (HTTP status, {"error", "reason", "details"}).

    Tagged ScrapeErrors keep their own status (400 for client mistakes, 500
    otherwise); anything else is an unexpected 500.
    """
    if not isinstance(exc, ScrapeError):
        exc = UnexpectedFailure(str(exc) or type(exc).__name__)
    return exc.status, {
        "error": exc.message,
        "reason": exc.reason,
        "details": exc.details or exc.message,
    }


@dataclass
class PipelineRun:
    """Outcome and state history of a single pipeline run.

    ``fields`` and ``entity_ids`` are only kept when the run reaches DONE;
    a failed run never exposes a partial record.
    """

    url: str
    persist: bool = False
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    variant: SourceVariant | None = None
    fields: BookFields | None = None
    entity_ids: ReconciledEntityIds | None = None
    error: ScrapeError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE

    def advance(self, state: PipelineState) -> None:
        if self.state in _TERMINAL_STATES:
            raise RuntimeError(f"run already finished in state {self.state.name}")
        self.state = state
        self.history.append(state)

    def fail(self, error: ScrapeError) -> None:
        self.advance(PipelineState.FAILED)
        self.error = error
        self.fields = None
        self.entity_ids = None

    def to_response(self) -> tuple[int, dict[str, Any]]:
        """Render the run as (HTTP status, JSON body)."""
        if self.error is not None:
            return error_envelope(self.error)
        if self.fields is None:
            raise RuntimeError(f"run has not finished (state {self.state.name})")
        body = self.fields.to_dict()
        if self.entity_ids is not None:
            body["entityIds"] = self.entity_ids.to_dict()
        return 200, body


class ScrapePipeline:
    """Runs one URL through Classifier -> Extractor -> Transformer -> Reconciler.

    Extractors are chosen from a SourceVariant dispatch table. Preview runs
    (``persist=False``) never touch the reconciler, so they have no catalog
    side effects.
    """

    def __init__(
        self,
        extractors: Mapping[SourceVariant, Extractor],
        reconciler: EntityReconciler | None = None,
        *,
        fallback_title: str | None = None,
    ) -> None:
        self._extractors = dict(extractors)
        self._reconciler = reconciler
        self._fallback_title = fallback_title

    def run(self, url: str, *, persist: bool = False) -> PipelineRun:
        """Scrape url into a PipelineRun that ends in DONE or FAILED.

        Failures are recorded on the run rather than raised. Errors that are
        not ScrapeErrors are logged with their traceback and recorded as an
        UnexpectedFailure.

        Raises:
            ValueError: If persist is requested without a reconciler.
        """
        if persist and self._reconciler is None:
            raise ValueError("persist=True requires a reconciler")

        run = PipelineRun(url=url, persist=persist)
        try:
            run.advance(PipelineState.CLASSIFYING)
            extractor = self._classify(run)

            run.advance(PipelineState.EXTRACTING)
            logger.info("Scraping URL: %s (type: %s)", url, extractor.name)
            raw = extractor.extract(url)

            run.advance(PipelineState.TRANSFORMING)
            fields = transform_record(self._with_fallback_title(raw))

            entity_ids = None
            if persist and self._reconciler is not None:
                run.advance(PipelineState.RECONCILING)
                entity_ids = self._reconciler.reconcile(fields)

            run.fields = fields
            run.entity_ids = entity_ids
            run.advance(PipelineState.DONE)
        except ScrapeError as exc:
            logger.warning("Scrape of %s failed while %s: %s", url, run.state.value, exc)
            run.fail(exc)
        except Exception as exc:
            logger.exception("Unexpected failure scraping %s while %s", url, run.state.value)
            run.fail(UnexpectedFailure(str(exc) or type(exc).__name__))
        return run

    def cancel(self, thread_id: int | None = None) -> None:
        """Stop in-flight extraction started from thread_id (every thread if None).

        Only extractors that run child processes can be stopped; the run
        being cancelled ends in FAILED with ExtractionCancelled.
        """
        for extractor in self._extractors.values():
            cancel = getattr(extractor, "cancel", None)
            if cancel is not None:
                cancel(thread_id)

    def close(self) -> None:
        close_extractors(self._extractors.values())

    def _classify(self, run: PipelineRun) -> Extractor:
        if not isinstance(run.url, str) or not run.url.strip():
            raise InvalidRequest()
        run.variant = classify_url(run.url)
        extractor = self._extractors.get(run.variant)
        if run.variant is SourceVariant.UNKNOWN or extractor is None:
            raise UnsupportedSource(run.url)
        return extractor

    def _with_fallback_title(self, raw: RawRecord) -> RawRecord:
        if self._fallback_title and (raw.title is None or not raw.title.strip()):
            logger.info("No title scraped, using fallback %r", self._fallback_title)
            return replace(raw, title=self._fallback_title)
        return raw


def build_pipeline(
    settings: ScoutSettings,
    *,
    store: EntityStore | None = None,
    fallback_title: str | None = None,
    http_client: HttpClient | None = None,
) -> ScrapePipeline:
    """Create a pipeline with the default extractors for settings.

    Pass a store to enable persist runs.
    """
    reconciler = EntityReconciler(store) if store is not None else None
    return ScrapePipeline(
        build_extractors(settings, http_client=http_client),
        reconciler,
        fallback_title=fallback_title,
    )
