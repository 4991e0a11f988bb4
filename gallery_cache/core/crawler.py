"""
Recursive gallery crawler.

Walks a remote directory-listing tree starting from a validated root URL
and turns it into :class:`~gallery_cache.models.GalleryNode` objects:

* Folder candidates are found with the heuristics in
  :mod:`gallery_cache.extraction.classify`
* Every candidate is fetched once; that listing is reused for the image
  count, the image enumeration and the next recursion level
* Only links below the folder being listed are followed, so a link back to
  an ancestor never re-crawls the tree
* Folders with neither images nor subfolders are dropped
* Recursion stops at ``max_depth`` (root children are level 0)
* A failing folder is logged and contributes nothing; only an unreachable
  root is an error
* Optional bounded fan-out of the candidate fetches (``workers > 1``)
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

import requests

try:
    from tqdm import tqdm as _tqdm
    _TQDM_AVAILABLE = True
except ImportError:
    _TQDM_AVAILABLE = False

from gallery_cache.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_WORKERS,
    LISTING_TIMEOUT,
    MAX_CRAWL_WORKERS,
    COUNT_TIMEOUT,
)
from gallery_cache.errors import RemoteUnavailableError, ScanCancelledError
from gallery_cache.extraction.classify import (
    folder_display_name,
    image_display_name,
    is_folder_link,
    is_image_link,
    is_reserved_folder,
)
from gallery_cache.extraction.links import Link, extract_listing_links
from gallery_cache.models import GalleryNode, ImageReference
from gallery_cache.session import build_session
from gallery_cache.utils.log import log
from gallery_cache.utils.url import ensure_trailing_slash, origin_of, resolve_href


class _Candidate(NamedTuple):
    name: str
    url: str


class GalleryCrawler:
    """
    Depth-bounded crawler over HTML directory listings.

    *base_url* fixes the origin used to resolve root-relative hrefs.
    The crawler holds no state between :meth:`crawl` calls apart from its
    session and counters.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        workers: int = DEFAULT_WORKERS,
        listing_timeout: float = LISTING_TIMEOUT,
        count_timeout: float = COUNT_TIMEOUT,
        cancel_event: threading.Event | None = None,
        progress: bool = False,
        verify_ssl: bool = True,
    ) -> None:
        self.base_url = base_url
        self.origin = origin_of(base_url)
        self.session = session if session is not None else build_session(verify_ssl=verify_ssl)
        self.max_depth = max_depth
        self.workers = max(1, min(workers, MAX_CRAWL_WORKERS))
        self.listing_timeout = listing_timeout
        self.count_timeout = count_timeout
        self.progress = progress

        self._cancel = cancel_event if cancel_event is not None else threading.Event()
        self._pool: ThreadPoolExecutor | None = None
        self._bar = None
        self._stats = {"folders": 0, "images": 0, "err": 0, "skip": 0}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    def cancel(self) -> None:
        """Stop issuing requests and drop pooled connections."""
        self._cancel.set()
        self.session.close()

    def crawl(self, root_url: str, max_depth: int | None = None) -> list[GalleryNode]:
        """
        Crawl *root_url* and return its top-level gallery folders.

        Raises :class:`RemoteUnavailableError` when the root listing itself
        cannot be fetched and :class:`ScanCancelledError` when cancelled.
        """
        depth_limit = self.max_depth if max_depth is None else max_depth
        root_url = ensure_trailing_slash(root_url)
        self._stats = {"folders": 0, "images": 0, "err": 0, "skip": 0}

        log.info("[SCAN] Gallery root : %s", root_url)
        log.info("[SCAN] Max depth    : %d  workers: %d", depth_limit, self.workers)

        if depth_limit <= 0:
            log.warning("Max depth %d reached at %s", depth_limit, root_url)
            return []

        try:
            html = self._fetch(root_url, self.listing_timeout)
        except requests.RequestException as exc:
            log.error("[ERR] Gallery root unreachable: %s – %s", root_url, exc)
            raise RemoteUnavailableError(f"Gallery root unreachable: {exc}") from exc

        if self.progress and _TQDM_AVAILABLE:
            self._bar = _tqdm(desc="Scanning", unit="folder", dynamic_ncols=True)
        try:
            if self.workers > 1:
                with ThreadPoolExecutor(
                    max_workers=self.workers, thread_name_prefix="gallery-count"
                ) as pool:
                    self._pool = pool
                    nodes = self._scan_level(root_url, html, 0, depth_limit)
            else:
                nodes = self._scan_level(root_url, html, 0, depth_limit)
        finally:
            self._pool = None
            if self._bar is not None:
                self._bar.close()
                self._bar = None

        self._check_cancelled()
        log.info(
            "[SCAN] Complete. folders=%d  images=%d  skip=%d  err=%d",
            self._stats["folders"],
            self._stats["images"],
            self._stats["skip"],
            self._stats["err"],
        )
        return nodes

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise ScanCancelledError("Scan cancelled")

    def _fetch(self, url: str, timeout: float) -> str:
        self._check_cancelled()
        resp = self.session.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.text

    def _count_one(self, candidate: _Candidate) -> str | None:
        """Fetch one folder listing; ``None`` means the folder failed."""
        try:
            return self._fetch(candidate.url, self.count_timeout)
        except requests.RequestException as exc:
            log.warning("[ERR] Listing failed for %s – %s", candidate.url, exc)
            return None

    def _count_all(self, candidates: list[_Candidate]) -> list[str | None]:
        # Only leaf fetches go to the pool; recursion stays on the caller's
        # thread so nested levels never wait on their own workers.
        if self._pool is not None and len(candidates) > 1:
            return list(self._pool.map(self._count_one, candidates))
        return [self._count_one(c) for c in candidates]

    def _find_subfolders(self, url: str, html: str) -> list[_Candidate]:
        found: list[_Candidate] = []
        for link in extract_listing_links(html):
            if not is_folder_link(link.href, link.text):
                continue
            full = resolve_href(link.href, url, self.origin)
            if full is None:
                log.debug("[SKIP] Malformed href %r in %s", link.href, url)
                self._stats["skip"] += 1
                continue
            folder_url = ensure_trailing_slash(full)
            name = folder_display_name(link.href, link.text)
            if is_reserved_folder(name, folder_url):
                log.debug("[SKIP] Reserved folder %s", folder_url)
                continue
            # Only strict descendants of the listed folder; links back to an
            # ancestor or a sibling would re-crawl part of the tree
            if not folder_url.startswith(url) or folder_url == url:
                log.debug("[SKIP] Not below %s: %s", url, folder_url)
                self._stats["skip"] += 1
                continue
            found.append(_Candidate(name, folder_url))
        log.debug("Found %d subfolder(s) in %s", len(found), url)
        return found

    @staticmethod
    def _image_links(html: str) -> list[Link]:
        return [link for link in extract_listing_links(html) if is_image_link(link.href)]

    def _collect_images(self, folder_url: str, links: list[Link]) -> list[ImageReference]:
        images: list[ImageReference] = []
        for link in links:
            full = resolve_href(link.href, folder_url, self.origin)
            if full is None:
                log.debug("[SKIP] Malformed image href %r in %s", link.href, folder_url)
                continue
            images.append(ImageReference(
                name=image_display_name(link.href, link.text),
                path=link.href,
                url=full,
            ))
        return images

    def _scan_level(
        self, url: str, html: str, depth: int, max_depth: int
    ) -> list[GalleryNode]:
        """Build the nodes for every subfolder listed in *html* (at *depth*)."""
        if depth >= max_depth:
            log.warning("Max depth %d reached at %s", max_depth, url)
            return []

        candidates = self._find_subfolders(url, html)
        if not candidates:
            return []

        listings = self._count_all(candidates)
        nodes: list[GalleryNode] = []
        for candidate, listing in zip(candidates, listings):
            if self._bar is not None:
                self._bar.update(1)
            if listing is None:
                self._stats["err"] += 1
                continue
            node = self._build_node(candidate, listing, depth, max_depth)
            if node is not None:
                nodes.append(node)
        return nodes

    def _build_node(
        self, candidate: _Candidate, listing: str, depth: int, max_depth: int
    ) -> GalleryNode | None:
        self._check_cancelled()
        image_links = self._image_links(listing)

        subfolders: list[GalleryNode] = []
        if depth < max_depth - 1:
            subfolders = self._scan_level(candidate.url, listing, depth + 1, max_depth)

        # Category nodes never pay for image enumeration
        images = self._collect_images(candidate.url, image_links) if image_links else []
        has_images = bool(images)
        if not has_images and not subfolders:
            log.debug("[SKIP] Empty folder %s", candidate.url)
            return None

        self._stats["folders"] += 1
        self._stats["images"] += len(images)
        log.debug(
            "[FOLDER] %s  level=%d  images=%d  subfolders=%d",
            candidate.name, depth, len(images), len(subfolders),
        )
        return GalleryNode(
            name=candidate.name,
            path=candidate.url,
            images=tuple(images),
            subfolders=tuple(subfolders) if subfolders else None,
            is_category=not has_images and bool(subfolders),
            level=depth,
        )


def scan_remote_directory(
    url: str, max_depth: int = DEFAULT_MAX_DEPTH, **kwargs
) -> list[GalleryNode]:
    """One-shot crawl of *url* using *url* itself as the origin base."""
    crawler = GalleryCrawler(url, max_depth=max_depth, **kwargs)
    return crawler.crawl(url, max_depth)
