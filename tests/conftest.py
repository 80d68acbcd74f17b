import httpx
import pytest

from episodic import fetcher as fetcher_mod
from episodic.fetcher import Fetcher


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Record requested sleeps instead of waiting."""
    calls = []
    monkeypatch.setattr(fetcher_mod.time, "sleep", calls.append)
    return calls


class Site:
    """In-memory site behind httpx.MockTransport: url -> html; urls in `fail` time out."""

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.fail = set()
        self.calls = []
        self.on_request = None

    def handler(self, request):
        url = str(request.url)
        self.calls.append(url)
        if self.on_request is not None:
            self.on_request(url)
        if url in self.fail:
            raise httpx.ReadTimeout("timed out", request=request)
        body = self.pages.get(url)
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=body, headers={"content-type": "text/html; charset=utf-8"})

    def fetcher(self, **kwargs):
        kwargs.setdefault("delay", 0)
        return Fetcher(transport=httpx.MockTransport(self.handler), **kwargs)


@pytest.fixture
def site():
    return Site()
