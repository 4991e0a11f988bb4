"""
Folder / image classification heuristics for listing links.

Directory listings served by the remote host are not uniform: folders may
or may not carry a trailing slash, and the visible text is not always the
href.  The rules below are deliberately lenient.
"""

import enum
import re

from gallery_cache.config import IMAGE_EXTENSIONS, RESERVED_FOLDER
from gallery_cache.extraction.links import Link, is_ignorable
from gallery_cache.utils.url import last_segment

_BARE_TOKEN_RE = re.compile(r"^[A-Z_]+$", re.IGNORECASE)


class LinkKind(enum.Enum):
    FOLDER = "folder"
    IMAGE = "image"
    IGNORE = "ignore"


def is_image_link(href: str) -> bool:
    return href.lower().endswith(IMAGE_EXTENSIONS)


def is_folder_link(href: str, text: str) -> bool:
    """
    True when *href*/*text* look like a folder:

    * href ends with ``/``
    * href has no dot and the text is non-empty without a dot
    * text is all upper-case without a dot
    * href (first ``/`` removed) is a bare ``[A-Z_]+`` token
    * href sits under ``/gallery/`` and ends with ``/``

    Image links are never folders.
    """
    if is_image_link(href):
        return False
    if href.endswith("/"):
        return True
    if "." not in href and text and "." not in text:
        return True
    if text and text.upper() == text and "." not in text:
        return True
    if _BARE_TOKEN_RE.match(href.replace("/", "", 1)):
        return True
    return "/gallery/" in href and href.endswith("/")


def classify_link(link: Link) -> LinkKind:
    if is_ignorable(link):
        return LinkKind.IGNORE
    if is_image_link(link.href):
        return LinkKind.IMAGE
    if is_folder_link(link.href, link.text):
        return LinkKind.FOLDER
    return LinkKind.IGNORE


def is_reserved_folder(name: str, url: str = "") -> bool:
    """The ``_folders`` directory holds thumbnails and is never shown."""
    url_norm = url.rstrip("/").lower()
    return (
        name.lower() == RESERVED_FOLDER
        or url_norm.endswith(RESERVED_FOLDER)
        or f"/{RESERVED_FOLDER}/" in url.lower()
    )


def folder_display_name(href: str, text: str) -> str:
    # Apache-style listings render folders as "Name/"
    return text.rstrip("/") or last_segment(href) or href


def image_display_name(href: str, text: str) -> str:
    return text or href.split("/")[-1] or href
