"""HTTP fetching with bounded retries and politeness (User-Agent, timeouts, pacing)."""

import random
import sys
import threading
import time
from dataclasses import dataclass

import httpx

from episodic.config import DEFAULT_USER_AGENT

DEFAULT_TIMEOUT = 20.0
DEFAULT_DELAY = 1.0
MAX_RETRIES = 3
RETRY_BACKOFF = 1.5  # multiplicative factor for the wait between attempts

DEFAULT_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml",
}


class CrawlCancelled(Exception):
    """Raised at a fetch boundary once the cancel event is set."""


@dataclass
class FetchFailure:
    """Terminal result for a URL after all attempts failed. Callers treat it as 'no markup'."""

    url: str
    attempts: int
    error: str

    def __bool__(self) -> bool:
        return False


def _polite_sleep(delay: float) -> None:
    """Sleep with ±15% jitter to avoid fixed-interval bot patterns."""
    if delay <= 0:
        return
    time.sleep(delay * random.uniform(0.85, 1.15))


def _describe(exc: BaseException) -> str:
    r = getattr(exc, "response", None)
    if isinstance(exc, httpx.HTTPStatusError) and r is not None:
        return f"HTTP {r.status_code}"
    return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__


class Fetcher:
    """HTTP fetcher with connection pooling. Reuse for every request of a crawl."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        delay: float = DEFAULT_DELAY,
        max_retries: int = MAX_RETRIES,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self._timeout = timeout
        self._delay = delay
        self._max_retries = max(1, max_retries)
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._transport = transport
        self._cancel = cancel
        self._client: httpx.Client | None = None
        self._requests = 0

    @property
    def requests_issued(self) -> int:
        return self._requests

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                follow_redirects=True,
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client and not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _check_cancelled(self) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise CrawlCancelled("crawl cancelled")

    def _pace(self) -> None:
        """One pacing pause between consecutive requests; none before the first."""
        if self._requests > 0:
            _polite_sleep(self._delay)
        self._requests += 1

    def retry_wait(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (0-based)."""
        return self._delay * (RETRY_BACKOFF ** attempt)

    def fetch(self, url: str) -> "str | FetchFailure":
        """
        GET url and return the decoded body. Network errors, timeouts and non-2xx
        responses are retried; after the last attempt a FetchFailure is returned.
        """
        self._check_cancelled()
        self._pace()
        last_exc: BaseException | None = None
        for attempt in range(self._max_retries):
            try:
                resp = self._get_client().get(url)
                resp.raise_for_status()
                return resp.text
            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                last_exc = e
                if attempt < self._max_retries - 1:
                    wait = self.retry_wait(attempt)
                    print(
                        f"  Fetch error ({_describe(e)}) for {url}; retry {attempt + 2}/{self._max_retries} in {wait:.1f}s",
                        file=sys.stderr,
                    )
                    time.sleep(wait)
        failure = FetchFailure(url=url, attempts=self._max_retries, error=_describe(last_exc) if last_exc else "unknown")
        print(f"  Giving up on {url} after {failure.attempts} attempts: {failure.error}", file=sys.stderr)
        return failure

