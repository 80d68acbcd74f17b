"""Crawl pipeline: listing pages -> series pages -> episode pages. Used by CLI and programmatic callers."""

import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path

try:
    from tqdm import tqdm
except ImportError:
    tqdm = None

from episodic.config import CrawlConfig
from episodic.detail import parse_detail
from episodic.discovery import PaginationDiscoverer
from episodic.episodes import parse_subitem
from episodic.fetcher import CrawlCancelled, FetchFailure, Fetcher
from episodic.listing import extract_items
from episodic.models import ItemRecord, ItemRef, SubItemRecord, SubItemRef
from episodic.storage import save_collection
from episodic.urls import url_key


@dataclass
class CrawlResult:
    """Outcome of one run. items is populated even when saving failed."""

    items: list[ItemRecord] = field(default_factory=list)
    listing_pages: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    output_path: Path | None = None
    saved: bool = False
    error: str | None = None
    cancelled: bool = False


class Crawler:
    """
    Drives the three-level crawl. All fetches go through one Fetcher, one at a
    time, so its pacing delay is the only rate control.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        fetcher: Fetcher | None = None,
        progress: bool = False,
        cancel: threading.Event | None = None,
    ) -> None:
        if fetcher is not None and cancel is not None:
            raise ValueError("pass cancel to the Fetcher when supplying your own fetcher")
        self.config = config or CrawlConfig()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(
            timeout=self.config.timeout,
            delay=self.config.request_delay,
            max_retries=self.config.max_retries,
            headers={"User-Agent": self.config.user_agent},
            cancel=cancel,
        )
        self.progress = progress and tqdm is not None
        self.items: list[ItemRecord] = []
        self.listing_pages: list[str] = []
        self.failures: list[str] = []

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "Crawler":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _fetch(self, url: str) -> str | None:
        result = self.fetcher.fetch(url)
        if isinstance(result, FetchFailure):
            self.failures.append(url)
            return None
        return result

    def _keep(self, ref: ItemRef) -> bool:
        min_year = self.config.min_year
        return min_year is None or (ref.year is not None and ref.year >= min_year)

    def collect_refs(self, start_url: str | None = None) -> list[ItemRef]:
        """Listing phase: every unique series reference across all listing pages."""
        cfg = self.config
        discoverer = PaginationDiscoverer(self.fetcher, max_pages=cfg.max_listing_pages)
        refs: list[ItemRef] = []
        seen: set[str] = set()
        for page_url, html in discoverer.iter_pages(start_url or cfg.start_url):
            self.listing_pages.append(page_url)
            if html is None:
                self.failures.append(page_url)
                continue
            page_refs = [r for r in extract_items(html, cfg.origin, cfg.item_pattern) if self._keep(r)]
            new = 0
            for ref in page_refs:
                key = url_key(ref.url)
                if key in seen:
                    continue
                seen.add(key)
                refs.append(ref)
                new += 1
            print(f"  Found {len(page_refs)} series ({new} new) on {page_url}", file=sys.stderr)
            if cfg.max_items is not None and len(refs) >= cfg.max_items:
                return refs[: cfg.max_items]
            if cfg.stop_on_empty_page and not page_refs:
                print("  Empty listing page; stopping.", file=sys.stderr)
                break
        return refs

    def extract_subitem(self, ref: SubItemRef) -> SubItemRecord:
        """Fetch and parse one episode page; a failed fetch keeps only the reference."""
        return parse_subitem(self._fetch(ref.url), ref)

    def extract_detail(self, ref: ItemRef) -> ItemRecord:
        """Fetch and parse one series page and all of its episodes."""
        html = self._fetch(ref.url)
        if html is None:
            return ItemRecord.from_ref(ref)
        detail = parse_detail(html, ref)
        subitems: list[SubItemRecord] = []
        for i, sub in enumerate(detail.subitem_refs, 1):
            print(f"    [{i}/{len(detail.subitem_refs)}] {sub.url}", file=sys.stderr)
            subitems.append(self.extract_subitem(sub))
        return detail.to_record(subitems)

    def crawl(self, start_url: str | None = None) -> list[ItemRecord]:
        """Run both phases; records accumulate on self.items as they complete."""
        print(f"  → Crawl started at {start_url or self.config.start_url}", file=sys.stderr)
        refs = self.collect_refs(start_url)
        print(f"  → {len(refs)} series from {len(self.listing_pages)} listing pages", file=sys.stderr)
        if not self.config.expand_details:
            self.items.extend(ItemRecord.from_ref(r) for r in refs)
            return self.items

        pbar = tqdm(total=len(refs), desc="Series", unit=" series", file=sys.stderr) if self.progress else None
        try:
            for i, ref in enumerate(refs, 1):
                print(f"\n[{i}/{len(refs)}] {ref.url}", file=sys.stderr)
                record = self.extract_detail(ref)
                self.items.append(record)
                if pbar is not None:
                    pbar.update(1)
        finally:
            if pbar is not None:
                pbar.close()
        return self.items

    def _save(self, result: CrawlResult) -> None:
        path = Path(self.config.output_path)
        result.output_path = path
        try:
            save_collection(path, result.items)
            result.saved = True
            print(f"  Saved {len(result.items)} series to {path}", file=sys.stderr)
        except OSError as e:
            result.error = f"could not write {path}: {e}"
            print(f"Fatal: {result.error}", file=sys.stderr)

    def _result(self) -> CrawlResult:
        return CrawlResult(
            items=list(self.items),
            listing_pages=list(self.listing_pages),
            failures=list(self.failures),
        )

    def run(self, start_url: str | None = None) -> CrawlResult:
        """
        Crawl then write the artifact once. A write failure is reported on the
        result rather than raised so the in-memory items stay usable.
        """
        try:
            self.crawl(start_url)
        except CrawlCancelled:
            print("\nCrawl cancelled.", file=sys.stderr)
            result = self._result()
            result.cancelled = True
            if self.config.save_partial:
                self._save(result)
            return result
        except KeyboardInterrupt:
            if self.config.save_partial:
                print("\nInterrupted; saving partial results...", file=sys.stderr)
                self._save(self._result())
            raise
        result = self._result()
        self._save(result)
        if self.failures:
            print(f"  {len(self.failures)} URL(s) failed and were skipped.", file=sys.stderr)
        return result


def run_crawl(config: CrawlConfig, *, progress: bool = False) -> CrawlResult:
    """One full run with a fresh Fetcher."""
    with Crawler(config, progress=progress) as crawler:
        return crawler.run()
