"""
URL resolution helpers for listing hrefs.
"""

import urllib.parse


def origin_of(url: str) -> str:
    """Return ``scheme://netloc/`` for *url*."""
    p = urllib.parse.urlparse(url)
    return urllib.parse.urlunparse((p.scheme, p.netloc, "/", "", "", ""))


def resolve_href(href: str, folder_url: str, origin: str) -> str | None:
    """
    Turn a listing *href* into an absolute URL.

    Root-relative hrefs (``/__metro/gallery/A/``) are joined with the crawl's
    fixed *origin*; everything else is joined with *folder_url*.  Returns
    ``None`` when the result is not a usable http(s) URL.
    """
    href = href.strip()
    if not href:
        return None
    try:
        if href.startswith("/") and not href.startswith("//"):
            joined = urllib.parse.urljoin(origin, href)
        else:
            joined = urllib.parse.urljoin(folder_url, href)
        parsed = urllib.parse.urlparse(joined)
        _ = parsed.port     # raises ValueError on a garbage netloc
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return joined


def ensure_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def last_segment(href: str) -> str:
    """Last non-empty ``/`` separated segment of *href* (``""`` if none)."""
    parts = [p for p in href.split("/") if p]
    return parts[-1] if parts else ""


def relative_to_base(url: str, base_url: str) -> str:
    """Strip *base_url* from *url* and any leading slash."""
    if url.startswith(base_url):
        url = url[len(base_url):]
    return url.lstrip("/")
