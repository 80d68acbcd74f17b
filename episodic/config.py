"""Crawl settings. One structure, passed to the Crawler at construction."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from episodic.urls import site_origin

DEFAULT_BASE_URL = "https://v1.samehadaku.how"
DEFAULT_START_PATH = "/daftar-anime/"
DEFAULT_OUTPUT = "samehadaku.json"
# Series detail pages live at /anime/<slug>/
ITEM_PATH_PATTERN = r"/anime/[^/?#]+/?$"

# Browser-like UA to reduce 403 from sites that block scrapers
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

LISTING_ONLY_PAGES = 5
LISTING_ONLY_MIN_YEAR = 2020


@dataclass
class CrawlConfig:
    """Top-level settings that control discovery, pacing, and crawl depth."""

    base_url: str = DEFAULT_BASE_URL
    start_path: str = DEFAULT_START_PATH
    request_delay_ms: int = 1000
    max_retries: int = 3
    timeout_ms: int = 20_000
    max_listing_pages: int | None = None
    expand_details: bool = True
    min_year: int | None = None
    max_items: int | None = None
    stop_on_empty_page: bool = False
    item_pattern: str = ITEM_PATH_PATTERN
    output_path: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT))
    save_partial: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def full(cls, **overrides) -> "CrawlConfig":
        """Unbounded pagination with series and episode expansion."""
        return cls(**overrides)

    @classmethod
    def listing_only(cls, **overrides) -> "CrawlConfig":
        """First pages of the listing only, recent titles, no detail fetches."""
        defaults = dict(
            max_listing_pages=LISTING_ONLY_PAGES,
            min_year=LISTING_ONLY_MIN_YEAR,
            expand_details=False,
            stop_on_empty_page=True,
        )
        defaults.update(overrides)
        return cls(**defaults)

    @classmethod
    def from_env(cls, **overrides) -> "CrawlConfig":
        """Defaults from EPISODIC_BASE_URL / EPISODIC_OUTPUT, then explicit overrides."""
        env: dict = {}
        if os.environ.get("EPISODIC_BASE_URL"):
            env["base_url"] = os.environ["EPISODIC_BASE_URL"]
        if os.environ.get("EPISODIC_OUTPUT"):
            env["output_path"] = Path(os.environ["EPISODIC_OUTPUT"])
        env.update(overrides)
        return cls(**env)

    def with_overrides(self, **changes) -> "CrawlConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @property
    def origin(self) -> str:
        return site_origin(self.base_url)

    @property
    def start_url(self) -> str:
        if self.start_path.startswith(("http://", "https://")):
            return self.start_path
        return self.origin + "/" + self.start_path.lstrip("/")

    @property
    def request_delay(self) -> float:
        """Pacing delay between requests, in seconds."""
        return max(0, self.request_delay_ms) / 1000.0

    @property
    def timeout(self) -> float:
        return max(1, self.timeout_ms) / 1000.0
