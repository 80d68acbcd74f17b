"""Listing pages: one ItemRef per series card."""

import re
from urllib.parse import urlparse

from bs4 import Tag

from episodic.chains import chain
from episodic.config import ITEM_PATH_PATTERN
from episodic.extractors import clean_text, image_src, parse_html
from episodic.models import ItemRef, Status, status_from_text
from episodic.urls import absolutize, url_key

# Block-level cards on WordPress-style anime themes
CONTAINER_SELECTOR = (
    "article, .animepost, .post, .entry, .bs, .bsx, .listupd > div, "
    "li.item, div.item, .film-poster, .anime-item"
)
# Card elements carrying the release year (samehadaku uses .epztipe)
YEAR_SELECTOR = ".epztipe, .year, .tahun, .date, .released"
_YEAR_RE = re.compile(r"\b(19[5-9]\d|20\d{2})\b")
# Airing status badge on the card
CARD_STATUS_SELECTOR = ".status, .sts, [class*='status']"


def _anchor_title(anchor: Tag, img: Tag | None) -> str | None:
    return clean_text(anchor.get("title"))


def _img_alt(anchor: Tag, img: Tag | None) -> str | None:
    return clean_text(img.get("alt")) if img is not None else None


def _img_title(anchor: Tag, img: Tag | None) -> str | None:
    return clean_text(img.get("title")) if img is not None else None


def _anchor_text(anchor: Tag, img: Tag | None) -> str | None:
    return clean_text(anchor.get_text(" ", strip=True))


TITLE_CHAIN = chain(
    "listing title",
    ("anchor title", _anchor_title),
    ("image alt", _img_alt),
    ("image title", _img_title),
    ("anchor text", _anchor_text),
)


def _matches_item(href: str | None, base_url: str, pattern: re.Pattern) -> str | None:
    """Absolute URL if href points at a series page."""
    u = absolutize(href, base_url)
    if u and pattern.search(urlparse(u).path or ""):
        return u
    return None


def _card_year(container: Tag) -> int | None:
    for el in container.select(YEAR_SELECTOR):
        m = _YEAR_RE.search(el.get_text(" ", strip=True))
        if m:
            return int(m.group(1))
    return None


def _card_status(container: Tag) -> Status | None:
    for el in container.select(CARD_STATUS_SELECTOR):
        status = status_from_text(el.get_text(" ", strip=True))
        if status:
            return status
    return None


def _ref_from(anchor: Tag, url: str, img: Tag | None, base_url: str, container: Tag | None = None) -> ItemRef:
    return ItemRef(
        url=url,
        title=TITLE_CHAIN.resolve(anchor, img),
        image=image_src(img, base_url),
        year=_card_year(container) if container is not None else None,
        status=_card_status(container) if container is not None else None,
    )


def _from_containers(soup, base_url: str, pattern: re.Pattern) -> list[ItemRef]:
    refs: list[ItemRef] = []
    for container in soup.select(CONTAINER_SELECTOR):
        for a in container.select("a[href]"):
            u = _matches_item(a.get("href"), base_url, pattern)
            if u:
                img = container.find("img")
                refs.append(_ref_from(a, u, img, base_url, container))
                break
    return refs


def _from_anchors(soup, base_url: str, pattern: re.Pattern) -> list[ItemRef]:
    refs: list[ItemRef] = []
    for a in soup.select("a[href]"):
        img = a.find("img")
        if img is None:
            continue
        u = _matches_item(a.get("href"), base_url, pattern)
        if u:
            refs.append(_ref_from(a, u, img, base_url))
    return refs


def extract_items(html: str, base_url: str, item_pattern: str = ITEM_PATH_PATTERN) -> list[ItemRef]:
    """
    Series references on one listing page. Cards (article/post/entry-like blocks)
    linking to a series page come first; when no card qualifies, every series link
    wrapping an image is taken instead. Relative URLs resolve against base_url.
    """
    soup = parse_html(html)
    pattern = re.compile(item_pattern, re.IGNORECASE)
    refs = _from_containers(soup, base_url, pattern)
    if not refs:
        refs = _from_anchors(soup, base_url, pattern)

    # Nested cards (article inside .post) report the same link twice
    seen: set[str] = set()
    out: list[ItemRef] = []
    for ref in refs:
        key = url_key(ref.url)
        if key in seen:
            continue
        seen.add(key)
        out.append(ref)
    return out
