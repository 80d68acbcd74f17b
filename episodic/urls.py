"""URL resolution and the dedup keys used at each crawl level."""

import re
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

SKIP_HREF_PREFIXES = ("#", "mailto:", "javascript:", "data:", "tel:")

# /page/<N>/ path segment or page=<N> query parameter
_PAGE_PATH_RE = re.compile(r"/page/(\d+)(?=/|$)", re.IGNORECASE)
_PAGE_QUERY_RE = re.compile(r"(?:^|&)page=(\d+)(?:&|$)", re.IGNORECASE)


def absolutize(href: str | None, base_url: str) -> str | None:
    """Resolve href against base_url; None for empty, in-page, or non-http(s) links."""
    if not href or not isinstance(href, str):
        return None
    href = href.strip()
    if not href or href.lower().startswith(SKIP_HREF_PREFIXES):
        return None
    try:
        parsed = urlparse(urljoin(base_url, href))
    except ValueError:
        # e.g. "http://[broken" (unterminated IPv6 host)
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return urlunparse(parsed._replace(fragment=""))


def site_origin(url: str) -> str:
    """scheme://host of url, used as the base for relative links."""
    parsed = urlparse(url)
    return f"{parsed.scheme or 'https'}://{parsed.netloc}"


def is_absolute(url: str | None) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def url_key(url: str) -> str:
    """Dedup key: case-folded scheme/host, no fragment, trailing slash ignored."""
    parsed = urlparse(url.strip())
    path = parsed.path.rstrip("/") or "/"
    return urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, parsed.query, "")
    )


def page_number(url: str) -> int | None:
    """Numeric page marker of a listing URL, or None."""
    parsed = urlparse(url)
    m = _PAGE_PATH_RE.search(parsed.path or "")
    if m:
        return int(m.group(1))
    m = _PAGE_QUERY_RE.search(parsed.query or "")
    if m:
        return int(m.group(1))
    return None


def with_page_number(url: str, n: int) -> str:
    """Substitute n into the page marker of url (path form wins over query form)."""
    parsed = urlparse(url)
    if _PAGE_PATH_RE.search(parsed.path or ""):
        path = _PAGE_PATH_RE.sub(f"/page/{n}", parsed.path, count=1)
        return urlunparse(parsed._replace(path=path, fragment=""))
    pairs = parse_qsl(parsed.query, keep_blank_values=True)
    replaced = [(k, str(n)) if k.lower() == "page" else (k, v) for k, v in pairs]
    if not any(k.lower() == "page" for k, _ in pairs):
        replaced.append(("page", str(n)))
    return urlunparse(parsed._replace(query=urlencode(replaced), fragment=""))


def page_key(url: str) -> str:
    """
    Dedup key for listing pages. Page 1 has several spellings (bare URL,
    /page/1/, ?page=1); they all collapse onto the bare URL's key.
    """
    parsed = urlparse(url.strip())
    path = _PAGE_PATH_RE.sub(lambda m: "" if m.group(1) == "1" else m.group(0), parsed.path or "")
    pairs = [
        (k, v)
        for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if not (k.lower() == "page" and v == "1")
    ]
    normalized = urlunparse(parsed._replace(path=path, query=urlencode(pairs), fragment=""))
    return url_key(normalized)
