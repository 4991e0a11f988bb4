"""
gallery_cache
=============
Cached, validated view of a remote image gallery that is only reachable
through directory-listing HTML pages or a signed JSON listing endpoint.

Package structure
-----------------
gallery_cache/
├── __init__.py       – package init and public API
├── config.py         – configuration constants and environment settings
├── errors.py         – exception hierarchy
├── models.py         – GalleryNode / ImageReference / CacheManifest / SignedToken
├── session.py        – requests.Session factory
├── service.py        – request-level composition (scan, status, snapshot)
├── cli.py            – argparse CLI (``python -m gallery_cache``)
├── extraction/       – anchor-link extraction and folder/image classification
├── core/             – crawlers, fingerprint, manifest, resilient cache
├── security/         – URL allow-list and HMAC-signed proxy URLs
└── utils/            – URL helpers and logging setup

Quick start
-----------
    from gallery_cache import GalleryService

    service = GalleryService.from_settings()
    result = service.scan()
    for folder in result.folders:
        print(folder.name, folder.image_count)
"""

from .core import (
    GalleryCache,
    GalleryCrawler,
    ListingCrawler,
    ManifestStore,
    fingerprint,
    is_stale,
)
from .models import CacheManifest, GalleryNode, ImageReference, SignedToken
from .security import TokenSigner, UrlValidator, is_allowed
from .service import GalleryService

__all__ = [
    "CacheManifest",
    "GalleryCache",
    "GalleryCrawler",
    "GalleryNode",
    "GalleryService",
    "ImageReference",
    "ListingCrawler",
    "ManifestStore",
    "SignedToken",
    "TokenSigner",
    "UrlValidator",
    "fingerprint",
    "is_allowed",
    "is_stale",
]
