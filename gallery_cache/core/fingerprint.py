"""
Order-independent structural fingerprint of a gallery tree.
"""

import hashlib
from typing import Iterable, Mapping, Union

from gallery_cache.models import FolderSummary, GalleryNode

FINGERPRINT_LENGTH = 16
_PAIR_SEPARATOR = "|"

FolderLike = Union[FolderSummary, Mapping, tuple]


def _as_summary(item: FolderLike) -> FolderSummary:
    if isinstance(item, FolderSummary):
        return item
    if isinstance(item, Mapping):
        return FolderSummary(str(item["name"]), int(item["imageCount"]))
    name, count = item
    return FolderSummary(str(name), int(count))


def summarize(nodes: Iterable[GalleryNode], parent: str = "") -> list[FolderSummary]:
    """
    Flatten the tree into one summary per folder.  Nested folders are named
    by their ancestry (``"B/C"``) so a rename anywhere shows up.
    """
    out: list[FolderSummary] = []
    for node in nodes:
        name = f"{parent}/{node.name}" if parent else node.name
        out.append(FolderSummary(name, node.image_count))
        if node.subfolders:
            out.extend(summarize(node.subfolders, name))
    return out


def total_images(nodes: Iterable[GalleryNode]) -> int:
    return sum(sub.image_count for node in nodes for sub in node.walk())


def _sort_key(summary: FolderSummary) -> tuple[str, str, int]:
    return summary.name.casefold(), summary.name, summary.image_count


def fingerprint(folders: Iterable[FolderLike]) -> str:
    """
    Sort ``(name, imageCount)`` pairs by name, case-insensitively the way a
    locale-aware compare orders them (``"a" < "B"``), join them as
    ``name:count`` with ``|`` and return the first 16 hex chars of the
    SHA-256.

    Traversal order does not matter; renaming a folder or changing a count
    does.
    """
    summaries = sorted((_as_summary(f) for f in folders), key=_sort_key)
    joined = _PAIR_SEPARATOR.join(f"{s.name}:{s.image_count}" for s in summaries)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def fingerprint_tree(nodes: Iterable[GalleryNode]) -> str:
    return fingerprint(summarize(nodes))


def etag(nodes: Iterable[GalleryNode]) -> str:
    """Response validator for a scan result, keyed by folder path rather
    than display name."""
    pairs = sorted((n.path, n.image_count) for n in nodes)
    joined = _PAIR_SEPARATOR.join(f"{path}:{count}" for path, count in pairs)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
