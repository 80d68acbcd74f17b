"""Episode pages: title, release date, and download/stream links."""

import re

from episodic.chains import chain
from episodic.extractors import Page, clean_text, dedupe
from episodic.models import SubItemRecord, SubItemRef
from episodic.urls import absolutize, is_absolute

DATE_SELECTOR = (
    "time, .date, .updated, .published, .entry-date, .time-post, "
    "[itemprop='datePublished'], [class*='date'], [class*='rilis']"
)
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

# File hosts, download wording, and direct media files
DOWNLOAD_RE = re.compile(
    r"download|unduh"
    r"|drive\.google|docs\.google|mega\.nz|mega\.co\.nz|mediafire|zippyshare|pixeldrain"
    r"|krakenfiles|gofile|acefile|racaty|solidfiles|dropbox|terabox|1fichier|uptobox"
    r"|streamtape|dood(?:stream)?|mp4upload|filelions|streamwish|wibufile|pucuk"
    r"|\.(?:mp4|mkv|avi|webm|m3u8)(?:$|\?)",
    re.IGNORECASE,
)


def normalize_date(raw: str | None) -> str | None:
    """ISO YYYY-MM-DD if the text contains one, else the trimmed text itself."""
    text = clean_text(raw)
    if not text:
        return None
    m = _ISO_DATE_RE.search(text)
    return m.group(0) if m else text


# --- title ---

def _title_heading(page: Page, ref: SubItemRef) -> str | None:
    return page.select_text("h1.entry-title, .entry-title, .post-title, h1")


def _title_ref(page: Page, ref: SubItemRef) -> str | None:
    return ref.title


def _title_tag(page: Page, ref: SubItemRef) -> str | None:
    tag = page.soup.find("title")
    return clean_text(tag.get_text()) if tag else None


TITLE_CHAIN = chain(
    "episode title",
    ("heading", _title_heading),
    ("reference title", _title_ref),
    ("title tag", _title_tag),
)


# --- release date ---

def _date_element(page: Page, ref: SubItemRef) -> str | None:
    for el in page.soup.select(DATE_SELECTOR):
        if el.name in ("html", "body"):
            continue
        text = clean_text(el.get_text(" ", strip=True)) or clean_text(el.get("datetime"))
        if text:
            return text
    return None


def _date_meta(page: Page, ref: SubItemRef) -> str | None:
    return page.meta_content(prop="article:published_time")


DATE_CHAIN = chain(
    "release date",
    ("date element", _date_element),
    ("article:published_time", _date_meta),
)


# --- downloads ---

def find_downloads(page: Page) -> list[str]:
    """Hosting/download anchors with absolute hrefs, then iframe sources; deduped in order."""
    urls: list[str] = []
    for a in page.soup.select("a[href]"):
        href = (a.get("href") or "").strip()
        if not is_absolute(href):
            continue
        text = a.get_text(" ", strip=True)
        if DOWNLOAD_RE.search(href) or (text and DOWNLOAD_RE.search(text)):
            urls.append(absolutize(href, page.url))
    for frame in page.soup.select("iframe[src], iframe[data-src]"):
        src = (frame.get("src") or frame.get("data-src") or "").strip()
        # Protocol-relative embeds (//host/embed) take the page's scheme
        if src.startswith("//"):
            src = absolutize(src, page.url) or ""
        if is_absolute(src):
            urls.append(absolutize(src, page.url))
    return dedupe([u for u in urls if u])


def parse_subitem(html: str | None, ref: SubItemRef) -> SubItemRecord:
    """Episode record; html=None keeps the reference's title and url and leaves the rest empty."""
    if not html:
        return SubItemRecord.from_ref(ref)
    page = Page.from_html(html, ref.url)
    return SubItemRecord(
        title=TITLE_CHAIN.resolve(page, ref),
        url=ref.url,
        release_date=normalize_date(DATE_CHAIN.resolve(page, ref)),
        downloads=find_downloads(page),
    )
