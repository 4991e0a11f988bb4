"""Utility helpers for URL resolution and logging."""

from gallery_cache.utils.url import (
    ensure_trailing_slash,
    last_segment,
    origin_of,
    relative_to_base,
    resolve_href,
)
from gallery_cache.utils.log import setup_logging, log

__all__ = [
    "ensure_trailing_slash",
    "last_segment",
    "origin_of",
    "relative_to_base",
    "resolve_href",
    "setup_logging",
    "log",
]
