"""
Listing page discovery: start from one URL and follow pagination signals until
no unvisited page remains. Page count and URL scheme are not known up front.
"""

import re
import sys
from collections import deque
from typing import Iterator

from bs4 import BeautifulSoup

from episodic.chains import chain
from episodic.extractors import parse_html
from episodic.fetcher import FetchFailure, Fetcher
from episodic.urls import absolutize, page_key, page_number, with_page_number

# "next" in English and Indonesian, plus arrow glyphs used as next buttons
NEXT_TEXT_RE = re.compile(r"next|selanjutnya|[»›→≫]", re.IGNORECASE)
# Longer link text is a title that happens to contain "next"
NEXT_TEXT_MAX = 24


def _rel_values(tag) -> list[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [r.lower() for r in rel]


def _head_next_link(soup: BeautifulSoup, page_url: str, max_pages: int | None = None) -> list[str]:
    """<link rel="next"> in the document head."""
    for link in soup.select("link[href]"):
        if "next" in _rel_values(link):
            u = absolutize(link.get("href"), page_url)
            if u:
                return [u]
    return []


def _next_anchor(soup: BeautifulSoup, page_url: str, max_pages: int | None = None) -> list[str]:
    """Anchor marked as next by rel/class or by its text."""
    for a in soup.select("a[href]"):
        classes = [c.lower() for c in (a.get("class") or [])]
        text = a.get_text(" ", strip=True)
        if "next" in _rel_values(a) or "next" in classes or (text and len(text) <= NEXT_TEXT_MAX and NEXT_TEXT_RE.search(text)):
            u = absolutize(a.get("href"), page_url)
            if u and page_key(u) != page_key(page_url):
                return [u]
    return []


def _numeric_pages(soup: BeautifulSoup, page_url: str, max_pages: int | None = None) -> list[str]:
    """
    /page/<N>/ or ?page=<N> anchors: take the largest N seen and synthesize pages
    1..N from the anchor that carries it. N never exceeds max_pages when set.
    """
    best_n = 0
    sample: str | None = None
    for a in soup.select("a[href]"):
        u = absolutize(a.get("href"), page_url)
        if not u:
            continue
        n = page_number(u)
        if n is not None and n > best_n:
            best_n, sample = n, u
    if sample is None:
        return []
    if max_pages is not None:
        best_n = min(best_n, max_pages)
    return [with_page_number(sample, n) for n in range(1, best_n + 1)]


NEXT_PAGE_CHAIN = chain(
    "next pages",
    ("head link rel=next", _head_next_link),
    ("next anchor", _next_anchor),
    ("numeric pagination", _numeric_pages),
)


def next_page_urls(html: str, page_url: str, max_pages: int | None = None) -> list[str]:
    """Pages reachable from this listing page, by the first signal that matches; [] if terminal."""
    return NEXT_PAGE_CHAIN.resolve(parse_html(html), page_url, max_pages) or []


class PaginationDiscoverer:
    """Sequential worklist over listing pages; each page is inspected once."""

    def __init__(self, fetcher: Fetcher, *, max_pages: int | None = None) -> None:
        self._fetcher = fetcher
        self._max_pages = max_pages

    def _full(self, seen: set[str]) -> bool:
        return self._max_pages is not None and len(seen) >= self._max_pages

    def iter_pages(self, start_url: str) -> Iterator[tuple[str, str | None]]:
        """
        Yield (url, html) in order of first discovery. html is None when the page
        could not be fetched; discovery carries on with the rest of the queue.
        """
        if self._max_pages is not None and self._max_pages <= 0:
            return
        queue: deque[str] = deque([start_url])
        seen: set[str] = {page_key(start_url)}
        while queue:
            url = queue.popleft()
            print(f"  Listing: {url}", file=sys.stderr)
            result = self._fetcher.fetch(url)
            if isinstance(result, FetchFailure):
                print(f"  Listing skipped {url}: {result.error}", file=sys.stderr)
                yield url, None
                continue
            for nxt in next_page_urls(result, url, self._max_pages):
                key = page_key(nxt)
                if key in seen:
                    continue
                if self._full(seen):
                    break
                seen.add(key)
                queue.append(nxt)
            yield url, result

    def discover(self, start_url: str) -> list[str]:
        """Ordered, deduplicated listing URLs reachable from start_url."""
        return [url for url, _ in self.iter_pages(start_url)]
