# ABOUTME: Integration tests for the POST /scrape HTTP endpoint.
# ABOUTME: Drives the FastAPI app with TestClient and fake extractors.

import os
from contextlib import closing
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from bookscout.api import ScrapeJob, create_app, run_until_disconnected
from bookscout.config import ScoutSettings
from bookscout.db.catalog import EntityCatalog
from bookscout.db.connection import open_catalog
from bookscout.errors import ExtractionTimeout
from bookscout.metadata.types import RawRecord
from bookscout.scraping import registry
from bookscout.scraping.external import SubprocessExtractor
from bookscout.scraping.payload import parse_fandom_payload
from bookscout.scraping.sources import SourceVariant
from tests.fixtures.fakes import (
    ClosableHttpClient,
    FakeExtractor,
    FakeScraperFactory,
    hanging_scraper_body,
    wait_for_pid,
)

GOODREADS_URL = "https://www.goodreads.com/book/show/68428.The_Well_of_Ascension"
FANDOM_URL = "https://mistborn.fandom.com/wiki/The_Well_of_Ascension"

RECORD = RawRecord(
    title="The Well of Ascension",
    authors=["Brandon Sanderson"],
    genres=["Fantasy"],
    publication_date="2007",
    series_name="Mistborn",
    series_position=2,
)


@pytest.fixture
def settings(tmp_path: Path) -> ScoutSettings:
    return ScoutSettings(db_path=tmp_path / "catalog.db", install_command=())


def _client(settings: ScoutSettings, extractor: FakeExtractor) -> TestClient:
    app = create_app(
        settings,
        extractors={SourceVariant.GOODREADS: extractor, SourceVariant.FANDOM: extractor},
    )
    return TestClient(app)


class TestScrapeEndpoint:
    """Tests for POST /scrape."""

    def test_preview(self, settings: ScoutSettings) -> None:
        client = _client(settings, FakeExtractor(RECORD))
        response = client.post("/scrape", json={"url": GOODREADS_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "The Well of Ascension"
        assert body["authors"] == ["Brandon Sanderson"]
        assert body["publicationDate"] == "2007"
        assert body["publicationDateKind"] == "year"
        assert body["series"] == "Mistborn"
        assert body["seriesPosition"] == "2"
        assert "entityIds" not in body
        assert not settings.db_path.exists()

    def test_persist_returns_entity_ids(self, settings: ScoutSettings) -> None:
        client = _client(settings, FakeExtractor(RECORD))
        response = client.post("/scrape", json={"url": GOODREADS_URL, "persist": True})

        assert response.status_code == 200
        entity_ids = response.json()["entityIds"]
        with closing(open_catalog(settings.db_path)) as conn:
            catalog = EntityCatalog(conn)
            assert entity_ids["authors"] == {
                "Brandon Sanderson": catalog.find_author_by_name("Brandon Sanderson")
            }
            assert entity_ids["series"] == {"Mistborn": catalog.find_series_by_name("Mistborn")}

    def test_repeated_persist_is_stable(self, settings: ScoutSettings) -> None:
        client = _client(settings, FakeExtractor(RECORD))
        first = client.post("/scrape", json={"url": GOODREADS_URL, "persist": True}).json()
        second = client.post("/scrape", json={"url": GOODREADS_URL, "persist": True}).json()
        assert first["entityIds"] == second["entityIds"]

    @pytest.mark.parametrize(
        "payload", [{}, {"url": ""}, {"url": 42}, {"href": GOODREADS_URL}]
    )
    def test_missing_url_is_400(self, settings: ScoutSettings, payload: dict) -> None:
        extractor = FakeExtractor(RECORD)
        response = _client(settings, extractor).post("/scrape", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing or invalid URL"
        assert response.json()["reason"] == "InvalidRequest"
        assert extractor.calls == []

    def test_non_object_body_is_400(self, settings: ScoutSettings) -> None:
        response = _client(settings, FakeExtractor(RECORD)).post("/scrape", json=["x"])
        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidRequest"

    def test_unsupported_source_is_400(self, settings: ScoutSettings) -> None:
        extractor = FakeExtractor(RECORD)
        response = _client(settings, extractor).post(
            "/scrape", json={"url": "https://www.amazon.com/dp/0765316889"}
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Unsupported URL type. Currently supports: Fandom, Goodreads",
            "reason": "UnsupportedSource",
            "details": "https://www.amazon.com/dp/0765316889",
        }
        assert extractor.calls == []

    def test_missing_title_is_500(self, settings: ScoutSettings) -> None:
        response = _client(settings, FakeExtractor(RawRecord(authors=["X"]))).post(
            "/scrape", json={"url": GOODREADS_URL}
        )
        assert response.status_code == 500
        assert response.json()["reason"] == "MissingRequiredField"

    def test_fallback_title(self, settings: ScoutSettings) -> None:
        response = _client(settings, FakeExtractor(RawRecord())).post(
            "/scrape", json={"url": GOODREADS_URL, "fallbackTitle": "Untitled Book"}
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Untitled Book"

    def test_timeout_is_500(self, settings: ScoutSettings) -> None:
        extractor = FakeExtractor(error=ExtractionTimeout("goodreads took too long"))
        response = _client(settings, extractor).post("/scrape", json={"url": GOODREADS_URL})

        assert response.status_code == 500
        assert response.json()["reason"] == "ExtractionTimeout"
        assert response.json()["details"] == "goodreads took too long"

    def test_unexpected_error_is_500(self, settings: ScoutSettings) -> None:
        extractor = FakeExtractor(error=RuntimeError("boom"))
        response = _client(settings, extractor).post("/scrape", json={"url": GOODREADS_URL})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to scrape URL.",
            "reason": "Unexpected",
            "details": "boom",
        }


class TestAppLifecycle:
    """Resources the app creates for itself are released on shutdown."""

    def test_shutdown_closes_built_http_client(
        self, settings: ScoutSettings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        http = ClosableHttpClient()
        monkeypatch.setattr(registry, "ScoutHttpClient", lambda **kwargs: http)

        with TestClient(create_app(settings)):
            assert not http.closed
        assert http.closed

    def test_injected_http_client_is_left_open(self, settings: ScoutSettings) -> None:
        """A client passed in by the caller belongs to the caller."""
        http = ClosableHttpClient()
        with TestClient(create_app(settings, http_client=http)):
            pass
        assert not http.closed


class WalkAwayClient:
    """Client connection that drops once the scraper process has started."""

    def __init__(self, pid_file: Path) -> None:
        self._pid_file = pid_file

    async def is_disconnected(self) -> bool:
        return self._pid_file.exists() and bool(self._pid_file.read_text())


@pytest.mark.slow
class TestClientDisconnect:
    """A request abandoned mid-extraction stops its scraper."""

    @pytest.mark.asyncio
    async def test_disconnect_kills_scraper(
        self, settings: ScoutSettings, fake_scraper: FakeScraperFactory, tmp_path: Path
    ) -> None:
        pid_file = tmp_path / "scraper.pid"
        extractor = SubprocessExtractor(
            fake_scraper(hanging_scraper_body(pid_file)),
            parse_payload=parse_fandom_payload,
            timeout=30,
            name="fandom",
        )
        job = ScrapeJob({SourceVariant.FANDOM: extractor}, settings, FANDOM_URL)

        status, body = await run_until_disconnected(
            WalkAwayClient(pid_file), job, poll_seconds=0.05
        )

        assert status == 500
        assert body["reason"] == "ExtractionCancelled"
        pid = wait_for_pid(pid_file)
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    @pytest.mark.asyncio
    async def test_connected_client_gets_result(self, settings: ScoutSettings) -> None:
        class StillThere:
            async def is_disconnected(self) -> bool:
                return False

        extractors = {SourceVariant.GOODREADS: FakeExtractor(RECORD)}
        job = ScrapeJob(extractors, settings, GOODREADS_URL)
        status, body = await run_until_disconnected(StillThere(), job, poll_seconds=0.01)
        assert status == 200
        assert body["title"] == "The Well of Ascension"
