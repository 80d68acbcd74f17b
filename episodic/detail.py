"""
Series detail pages. Every field has a primary selector and an ordered list of
fallbacks; markup differs between theme versions, so none of them is required.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

from episodic.chains import chain
from episodic.extractors import Page, clean_text, dedupe, image_src
from episodic.models import ItemRecord, ItemRef, Status, SubItemRecord, SubItemRef, status_from_text
from episodic.urls import url_key

GENRE_CONTAINER_SELECTOR = ".genre-info, .genres, .genxed, .mgen, .genre, [class*='genre']"
STATUS_ELEMENT_SELECTOR = "small, .status, [class*='status'], .spe span"
SYNOPSIS_SELECTOR = ".synopsis, .sinopsis, [class*='sinopsis'], [class*='synopsis'], .entry-content.desc, .desc"
CONTENT_PARAGRAPH_SELECTOR = ".entry-content p, article p, main p, .content p, body p"

_GENRE_LABEL_RE = re.compile(r"^genres?\s*:?$", re.IGNORECASE)

# Link text / path that names an episode: "Episode 12", "Eps 3", "/one-piece-episode-12/", "-ep-3"
EPISODE_TEXT_RE = re.compile(r"\b(?:episode|eps?\.?)\s*\d+", re.IGNORECASE)
EPISODE_HREF_RE = re.compile(r"episode|/eps?/|-eps?-?\d+/?$", re.IGNORECASE)
# Second-chance pass: bare numbers as link text, or a numeric last path segment suffix
LOOSE_TEXT_RE = re.compile(r"^\s*(?:ep\w*\s*)?\d{1,4}\s*$", re.IGNORECASE)
LOOSE_HREF_RE = re.compile(r"[-/](?:\d{1,4}|ep\w*)/?$", re.IGNORECASE)


def label_value(page: Page, label: str) -> str | None:
    """Value after 'Label:' in the page text, e.g. label_value(page, 'Status')."""
    pattern = re.compile(rf"\b{label}\s*:\s*([^\n]+)", re.IGNORECASE)
    # Innermost element whose own text starts with the label keeps inline
    # children (<b>Genre:</b> <a>A</a>, <a>B</a>) on one line.
    best: str | None = None
    start = re.compile(rf"^\s*{label}\s*:\s*(.+)$", re.IGNORECASE | re.DOTALL)
    for el in page.soup.find_all(("li", "p", "span", "div", "td", "dd")):
        text = el.get_text(" ", strip=True)
        m = start.match(text)
        if m and (best is None or len(m.group(1)) < len(best)):
            best = m.group(1)
    if best:
        return clean_text(best)
    m = pattern.search(page.body_text)
    return clean_text(m.group(1)) if m else None


# --- title ---

def _title_entry_heading(page: Page, ref: ItemRef) -> str | None:
    return page.select_text("h1.entry-title, h2.entry-title")


def _title_post_class(page: Page, ref: ItemRef) -> str | None:
    return page.select_text(".entry-title, .post-title")


def _title_h1(page: Page, ref: ItemRef) -> str | None:
    return page.select_text("h1")


def _title_ref(page: Page, ref: ItemRef) -> str | None:
    return ref.title


TITLE_CHAIN = chain(
    "title",
    ("entry-title heading", _title_entry_heading),
    ("post title class", _title_post_class),
    ("h1", _title_h1),
    ("reference title", _title_ref),
)


# --- image ---

def _image_og(page: Page, ref: ItemRef) -> str | None:
    return page.resolve(page.meta_content(prop="og:image"))


def _image_thumb(page: Page, ref: ItemRef) -> str | None:
    img = page.soup.select_one(".thumb img, .entry-image img, .thumbnail img, img.wp-post-image, .anime-thumb img")
    return image_src(img, page.url)


def _image_ref(page: Page, ref: ItemRef) -> str | None:
    return ref.image


IMAGE_CHAIN = chain(
    "image",
    ("og:image", _image_og),
    ("thumbnail", _image_thumb),
    ("reference image", _image_ref),
)


# --- genre ---

def _genre_container(page: Page, ref: ItemRef) -> list[str]:
    for container in page.soup.select(GENRE_CONTAINER_SELECTOR):
        if container.name in ("html", "body"):
            continue
        names = []
        for el in container.select("a, span"):
            text = clean_text(el.get_text(" ", strip=True))
            if text and not _GENRE_LABEL_RE.match(text) and len(text) <= 40:
                names.append(text)
        names = dedupe(names)
        if names:
            return names
    return []


def _genre_label(page: Page, ref: ItemRef) -> list[str]:
    value = label_value(page, "Genres?")
    if not value:
        return []
    return dedupe([clean_text(g) for g in value.split(",") if clean_text(g)])


GENRE_CHAIN = chain(
    "genre",
    ("genre container", _genre_container),
    ("Genre: label", _genre_label),
)


# --- status ---

def _status_label(page: Page, ref: ItemRef) -> Status | None:
    return status_from_text(label_value(page, "Status"))


def _status_elements(page: Page, ref: ItemRef) -> Status | None:
    for el in page.soup.select(STATUS_ELEMENT_SELECTOR):
        status = status_from_text(el.get_text(" ", strip=True))
        if status:
            return status
    return None


def _status_ref(page: Page, ref: ItemRef) -> Status | None:
    return ref.status


STATUS_CHAIN = chain(
    "status",
    ("Status: label", _status_label),
    ("status element keyword", _status_elements),
    ("listing card status", _status_ref),
)


# --- synopsis ---

def _synopsis_container(page: Page, ref: ItemRef) -> str | None:
    return page.select_text(SYNOPSIS_SELECTOR)


def _synopsis_meta(page: Page, ref: ItemRef) -> str | None:
    return page.meta_content(name="description") or page.meta_content(prop="og:description")


def _synopsis_paragraph(page: Page, ref: ItemRef) -> str | None:
    return page.select_text(CONTENT_PARAGRAPH_SELECTOR)


SYNOPSIS_CHAIN = chain(
    "synopsis",
    ("synopsis container", _synopsis_container),
    ("meta description", _synopsis_meta),
    ("first content paragraph", _synopsis_paragraph),
)


# --- episodes ---

def _episode_refs(page: Page, own_url: str, text_re: re.Pattern, href_re: re.Pattern) -> list[SubItemRef]:
    own_key = url_key(own_url)
    seen: set[str] = {own_key}
    refs: list[SubItemRef] = []
    for a in page.soup.select("a[href]"):
        u = page.resolve(a.get("href"))
        if not u:
            continue
        text = clean_text(a.get_text(" ", strip=True))
        path = urlparse(u).path or ""
        if not ((text and text_re.search(text)) or href_re.search(path)):
            continue
        key = url_key(u)
        if key in seen:
            continue
        seen.add(key)
        refs.append(SubItemRef(url=u, title=text or clean_text(a.get("title"))))
    return refs


def find_episode_refs(page: Page, own_url: str) -> list[SubItemRef]:
    """Episode links in first-seen order; a looser pattern runs only if the strict one finds nothing."""
    refs = _episode_refs(page, own_url, EPISODE_TEXT_RE, EPISODE_HREF_RE)
    if not refs:
        refs = _episode_refs(page, own_url, LOOSE_TEXT_RE, LOOSE_HREF_RE)
    return refs


@dataclass
class DetailPage:
    """Fields of one series page, ready to become an ItemRecord once episodes are resolved."""

    title: str | None
    url: str
    image: str | None = None
    genre: list[str] = field(default_factory=list)
    status: Status = Status.UNKNOWN
    synopsis: str | None = None
    subitem_refs: list[SubItemRef] = field(default_factory=list)

    def to_record(self, subitems: list[SubItemRecord] | None = None) -> ItemRecord:
        return ItemRecord(
            title=self.title,
            url=self.url,
            image=self.image,
            genre=list(self.genre),
            status=self.status,
            synopsis=self.synopsis,
            subitems=list(subitems or []),
        )


def parse_detail(html: str | None, ref: ItemRef) -> DetailPage:
    """Resolve every field of a series page; html=None keeps only the reference's fields."""
    if not html:
        return DetailPage(title=ref.title, url=ref.url, image=ref.image, status=ref.status or Status.UNKNOWN)
    page = Page.from_html(html, ref.url)
    return DetailPage(
        title=TITLE_CHAIN.resolve(page, ref),
        url=ref.url,
        image=IMAGE_CHAIN.resolve(page, ref),
        genre=GENRE_CHAIN.resolve(page, ref) or [],
        status=STATUS_CHAIN.resolve(page, ref) or Status.UNKNOWN,
        synopsis=SYNOPSIS_CHAIN.resolve(page, ref),
        subitem_refs=find_episode_refs(page, ref.url),
    )
