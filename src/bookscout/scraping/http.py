# ABOUTME: HTTP client abstraction for fetching book pages.
# ABOUTME: Sends a browser-like User-Agent, retries transient failures, and reports timeouts.

import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# Book sites answer default client identities with 403s or bot walls.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class FetchError(Exception):
    """Raised when a page could not be fetched."""


class FetchTimeout(FetchError):
    """Raised when the source did not respond within the timeout."""


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for fetching a page body as text."""

    def get_text(self, url: str) -> str: ...


class ScoutHttpClient:
    """HTTP client for scraping book pages.

    Wraps httpx.Client with a browser User-Agent, an overall deadline per
    fetch, and retry with exponential backoff for transient failures (429, 5xx).
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml",
                "Accept-Language": "en-US,en;q=0.9",
            },
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def get_text(self, url: str) -> str:
        """Send a GET request and return the decoded response body.

        The timeout bounds the whole call: every attempt, the body download,
        and the backoff sleeps between retries share one deadline.

        Raises:
            FetchTimeout: If the deadline passed before the body was read.
            FetchError: On transport errors, non-retryable HTTP errors,
                or exhausted retries.
        """
        deadline = time.monotonic() + self._timeout
        attempts = 1 + self._max_retries
        last_status = 0
        for attempt in range(attempts):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise FetchTimeout(f"Request timed out: {url}: deadline passed")
            try:
                with self._client.stream("GET", url, timeout=httpx.Timeout(remaining)) as response:
                    last_status = response.status_code
                    if response.status_code == 200:
                        return self._read_body(response, url, deadline)
            except httpx.TimeoutException as exc:
                raise FetchTimeout(f"Request timed out: {url}: {exc}") from exc
            except httpx.HTTPError as exc:
                raise FetchError(f"Request failed: {url}: {exc}") from exc

            if last_status not in _RETRYABLE_STATUS_CODES:
                raise FetchError(f"HTTP {last_status} from {url}")

            if attempt < attempts - 1:
                delay = self._retry_delay * (2**attempt)
                if time.monotonic() + delay >= deadline:
                    raise FetchError(
                        f"HTTP {last_status} from {url} after {attempt + 1} attempts, "
                        "no time left to retry"
                    )
                logger.warning(
                    "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                    last_status,
                    url,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                time.sleep(delay)

        raise FetchError(f"HTTP {last_status} from {url} after {attempts} attempts")

    @staticmethod
    def _read_body(response: httpx.Response, url: str, deadline: float) -> str:
        chunks: list[bytes] = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise FetchTimeout(f"Request timed out: {url}: body still arriving at deadline")
        return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")

    def close(self) -> None:
        self._client.close()
