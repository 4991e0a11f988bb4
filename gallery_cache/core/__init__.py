"""Core logic – crawlers, fingerprinting, manifest and cache."""

from gallery_cache.core.cache import GalleryCache, build_cache_backend, cache_key
from gallery_cache.core.crawler import GalleryCrawler, scan_remote_directory
from gallery_cache.core.fingerprint import fingerprint, fingerprint_tree, summarize
from gallery_cache.core.listing import ListingCrawler
from gallery_cache.core.manifest import (
    ManifestStore,
    StalenessVerdict,
    build_manifest,
    check_manifest,
    is_stale,
)

__all__ = [
    "GalleryCache",
    "GalleryCrawler",
    "ListingCrawler",
    "ManifestStore",
    "StalenessVerdict",
    "build_cache_backend",
    "build_manifest",
    "cache_key",
    "check_manifest",
    "fingerprint",
    "fingerprint_tree",
    "is_stale",
    "scan_remote_directory",
    "summarize",
]
