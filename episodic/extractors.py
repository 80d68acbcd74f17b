"""Shared helpers for the listing, series and episode extractors."""

import re
from dataclasses import dataclass
from functools import cached_property

from bs4 import BeautifulSoup, Tag

from episodic.urls import absolutize

# Lazy-load attributes checked after src (order: most common first)
IMG_LAZY_ATTRS = ("data-src", "data-lazy-src", "data-original")

_WS_RE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


@dataclass
class Page:
    """Parsed markup plus the URL it came from (base for relative links)."""

    soup: BeautifulSoup
    url: str

    @classmethod
    def from_html(cls, html: str, url: str) -> "Page":
        return cls(parse_html(html), url)

    @cached_property
    def body_text(self) -> str:
        """Page text with one line per text node, for label regexes."""
        root = self.soup.body or self.soup
        return normalize_text(root.get_text(separator="\n"))

    def select_text(self, selector: str) -> str | None:
        """Text of the first element matching selector that has any text."""
        for el in self.soup.select(selector):
            text = clean_text(el.get_text(" ", strip=True))
            if text:
                return text
        return None

    def meta_content(self, *, prop: str | None = None, name: str | None = None) -> str | None:
        if prop:
            tag = self.soup.find("meta", attrs={"property": prop})
        else:
            tag = self.soup.find("meta", attrs={"name": name})
        if tag is None:
            return None
        return clean_text(tag.get("content"))

    def resolve(self, href: str | None) -> str | None:
        return absolutize(href, self.url)


def clean_text(s: str | None) -> str | None:
    """Collapse whitespace; None for empty."""
    if not s:
        return None
    s = _WS_RE.sub(" ", s).strip()
    return s or None


def normalize_text(s: str) -> str:
    """Normalize whitespace line by line and drop blank lines."""
    lines = (_WS_RE.sub(" ", line).strip() for line in s.splitlines())
    return "\n".join(line for line in lines if line)


def image_src(img: Tag | None, base_url: str) -> str | None:
    """src, then lazy-load attributes; data: placeholders are skipped."""
    if img is None:
        return None
    for attr in ("src", *IMG_LAZY_ATTRS):
        u = absolutize(img.get(attr), base_url)
        if u:
            return u
    return None


def dedupe(values: list[str]) -> list[str]:
    """Drop repeats, keep first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out
