"""
Anchor-link extraction from directory-listing HTML via BeautifulSoup.
"""

from typing import NamedTuple

from bs4 import BeautifulSoup

from gallery_cache.utils.log import log

try:
    import lxml  # noqa: F401
    _BS4_PARSER = "lxml"
except ImportError:
    _BS4_PARSER = "html.parser"

# href values that never point at listing content
_IGNORED_HREFS = frozenset(["../", "./", ".."])
_IGNORED_PREFIXES = ("?", "#", "javascript:", "mailto:", "tel:")


class Link(NamedTuple):
    href: str
    text: str


def parse_anchor_links(html: str | bytes) -> list[Link]:
    """Return every ``<a>`` element as ``(href, visible text)``, in document order."""
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    try:
        soup = BeautifulSoup(html, _BS4_PARSER)
    except Exception as exc:  # parser backends raise assorted types
        log.warning("[ERR] Could not parse listing HTML: %s", exc)
        return []

    links: list[Link] = []
    for el in soup.find_all("a"):
        href = (el.get("href") or "").strip()
        text = el.get_text(strip=True)
        links.append(Link(href, text))
    return links


def is_ignorable(link: Link) -> bool:
    """Parent-directory, anchor, script, mailto and empty links."""
    href = link.href
    if not href or href in _IGNORED_HREFS:
        return True
    if href.lower().startswith(_IGNORED_PREFIXES):
        return True
    return "parent directory" in link.text.lower()


def extract_listing_links(html: str | bytes) -> list[Link]:
    """
    Anchor links of a listing page minus ignorable ones, de-duplicated by
    href (first occurrence wins).
    """
    seen: set[str] = set()
    found: list[Link] = []
    for link in parse_anchor_links(html):
        if is_ignorable(link) or link.href in seen:
            continue
        seen.add(link.href)
        found.append(link)
    return found
