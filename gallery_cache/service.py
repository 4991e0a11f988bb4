"""
Request-level composition of the gallery cache.

A scan request is validated, served from the cache when possible, crawled
otherwise and written back.  The staleness check crawls the live gallery
and compares it with the persisted manifest.  Every response carries a
``reason`` string.
"""

from dataclasses import dataclass
from typing import Any

from gallery_cache.config import MANIFEST_VERSION, Settings, load_settings
from gallery_cache.core.cache import GalleryCache, build_cache_backend
from gallery_cache.core.crawler import GalleryCrawler
from gallery_cache.core.fingerprint import etag, fingerprint, summarize, total_images
from gallery_cache.core.listing import ListingCrawler
from gallery_cache.core.manifest import (
    REASON_CORRUPTED,
    REASON_NO_CACHE,
    ManifestStore,
    build_manifest,
    is_stale,
)
from gallery_cache.errors import ManifestCorruptError, ValidationError
from gallery_cache.models import CacheManifest, GalleryNode
from gallery_cache.security.tokens import TokenSigner
from gallery_cache.security.validator import UrlValidator, validate_file_path
from gallery_cache.utils.log import log
from gallery_cache.utils.url import ensure_trailing_slash, relative_to_base

REASON_FROM_CACHE = "Served from cache"
REASON_CRAWLED = "Crawl completed"
REASON_EMPTY = "Crawl found nothing"


@dataclass(frozen=True)
class ScanResult:
    folders: list[GalleryNode]
    reason: str
    from_cache: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "folders": [f.to_dict() for f in self.folders],
            "reason": self.reason,
            "fromCache": self.from_cache,
            "etag": etag(self.folders),
        }


class GalleryService:
    """Wires validator, crawler, cache, manifest store and signer together."""

    def __init__(
        self,
        settings: Settings,
        crawler: GalleryCrawler,
        cache: GalleryCache,
        validator: UrlValidator,
        manifest_store: ManifestStore,
        signer: TokenSigner,
    ) -> None:
        self.settings = settings
        self.crawler = crawler
        self.cache = cache
        self.validator = validator
        self.manifest_store = manifest_store
        self.signer = signer

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        verify_ssl: bool = True,
        progress: bool = False,
    ) -> "GalleryService":
        settings = settings or load_settings()
        crawler = GalleryCrawler(
            settings.gallery_base_url,
            max_depth=settings.max_depth,
            workers=settings.workers,
            progress=progress,
            verify_ssl=verify_ssl,
        )
        cache = GalleryCache(
            build_cache_backend(settings.cache_url, settings.cache_timeout),
            ttl=settings.cache_ttl,
            timeout=settings.cache_timeout,
        )
        signer = TokenSigner(
            settings.proxy_secret,
            settings.endpoints,
            ttl=settings.token_ttl,
            protection_enabled=settings.protection_enabled,
        )
        return cls(
            settings=settings,
            crawler=crawler,
            cache=cache,
            validator=UrlValidator(settings.allowed_host, settings.allowed_prefix),
            manifest_store=ManifestStore(settings.manifest_path),
            signer=signer,
        )

    # ------------------------------------------------------------------

    def _resolve_root(self, url: str | None) -> str:
        if url is None:
            return ensure_trailing_slash(self.settings.gallery_base_url)
        return ensure_trailing_slash(self.validator.check(url))

    def _cache_folder(self, root: str) -> str:
        return relative_to_base(root, ensure_trailing_slash(self.settings.gallery_base_url))

    def scan(
        self,
        url: str | None = None,
        group_id: str | None = None,
        use_cache: bool = True,
    ) -> ScanResult:
        """
        Return the gallery tree under *url* (default: the configured root).

        Raises ``ValidationError`` for a disallowed *url* and
        ``RemoteUnavailableError`` when the root cannot be fetched.
        """
        root = self._resolve_root(url)
        folder = self._cache_folder(root)

        if use_cache:
            cached = self.cache.get(folder, group_id)
            if cached is not None:
                log.info("[CACHE] Serving %s from cache", folder or "/")
                return ScanResult(cached, REASON_FROM_CACHE, from_cache=True)

        nodes = self.crawler.crawl(root)
        if use_cache:
            self.cache.set(folder, nodes, group_id)
        return ScanResult(nodes, REASON_CRAWLED if nodes else REASON_EMPTY)

    def scan_listing(self, folder: str = "", protect_urls: bool | None = None) -> ScanResult:
        """
        Scan *folder* through the signed JSON listing endpoint instead of
        the public directory pages.  Never cached.
        """
        if folder:
            error = validate_file_path(folder)
            if error:
                log.warning("[DENY] %s – %s", folder, error)
                raise ValidationError(f"Invalid folder: {error}")
        if protect_urls is None:
            protect_urls = self.settings.protection_enabled
        crawler = ListingCrawler(
            self.signer,
            session=self.crawler.session,
            protect_urls=protect_urls,
        )
        nodes = crawler.crawl(folder)
        return ScanResult(nodes, REASON_CRAWLED if nodes else REASON_EMPTY)

    def cache_status(self, max_age: float | None = None) -> dict[str, Any]:
        """Staleness check of the persisted manifest against the live gallery."""
        max_age = self.settings.manifest_max_age if max_age is None else max_age

        # Missing or corrupt manifests are decided without touching the remote
        try:
            manifest = self.manifest_store.load()
        except ManifestCorruptError:
            return {"needsRefresh": True, "reason": REASON_CORRUPTED}
        if manifest is None:
            return {"needsRefresh": True, "reason": REASON_NO_CACHE}

        nodes = self.crawler.crawl(self._resolve_root(None))
        fresh = summarize(nodes)
        verdict = is_stale(manifest, fresh, max_age)
        return {
            "needsRefresh": verdict.stale,
            "reason": verdict.reason,
            "currentCache": manifest.to_dict(),
            "currentGallery": {
                "folders": len(fresh),
                "totalImages": total_images(nodes),
                "hash": fingerprint(fresh),
            },
        }

    def snapshot(self, url: str | None = None, version: str = MANIFEST_VERSION) -> CacheManifest:
        """Crawl and persist a fresh manifest."""
        root = self._resolve_root(url)
        nodes = self.crawler.crawl(root)
        manifest = build_manifest(nodes, version=version)
        self.manifest_store.save(manifest)
        return manifest

    def clear_cache(self, folder: str = "", group_id: str | None = None) -> None:
        self.cache.clear(folder, group_id)

    def close(self) -> None:
        self.cache.close()
