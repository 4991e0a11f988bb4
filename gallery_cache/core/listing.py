"""
Crawler for the authenticated JSON listing endpoint.

The endpoint answers a signed ``list`` request with::

    {"folders": [{"name": ..., "path": ...}],
     "files":   [{"name": ..., "path": ..., "size": ..., "modified": ...}]}

File sizes and modification times come for free here, so they are kept on
the image references.
"""

import requests

from gallery_cache.config import LIST_API_TIMEOUT, ROOT_FOLDER_NAME
from gallery_cache.errors import RemoteUnavailableError
from gallery_cache.extraction.classify import is_reserved_folder
from gallery_cache.models import GalleryNode, ImageReference
from gallery_cache.security.tokens import TokenSigner
from gallery_cache.session import build_session
from gallery_cache.utils.log import log
from gallery_cache.utils.url import last_segment

DEFAULT_LISTING_DEPTH = 10


class ListingCrawler:
    """Recursive scan of private folders through signed list URLs."""

    def __init__(
        self,
        signer: TokenSigner,
        session: requests.Session | None = None,
        max_depth: int = DEFAULT_LISTING_DEPTH,
        protect_urls: bool = False,
        timeout: float = LIST_API_TIMEOUT,
    ) -> None:
        self.signer = signer
        self.session = session if session is not None else build_session()
        self.max_depth = max_depth
        self.protect_urls = protect_urls
        self.timeout = timeout

    def crawl(self, folder: str = "") -> list[GalleryNode]:
        """
        Scan *folder* (``""`` = gallery root).  Raises
        :class:`RemoteUnavailableError` when the starting folder cannot be
        listed.
        """
        data = self._fetch(folder)
        if data is None:
            raise RemoteUnavailableError(f"Listing endpoint unavailable for {folder or '/'}")
        return self._scan(folder, data, 0)

    def _fetch(self, folder: str) -> dict | None:
        url = self.signer.list_url(folder)
        log.debug("[LIST] %s", folder or "/")
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            log.warning("[ERR] Listing request failed for %r – %s", folder, exc)
            return None
        if not resp.ok:
            log.warning("[ERR] Listing HTTP %s for %r", resp.status_code, folder)
            return None
        try:
            data = resp.json()
        except ValueError as exc:
            log.warning("[ERR] Listing for %r is not JSON – %s", folder, exc)
            return None
        if not isinstance(data, dict) or data.get("error"):
            log.warning("[ERR] Listing error for %r: %s", folder,
                        data.get("error") if isinstance(data, dict) else data)
            return None
        return data

    def _image(self, item: dict) -> ImageReference:
        path = item["path"]
        return ImageReference(
            name=item["name"],
            path=path,
            url=self.signer.signed_file_url(path) if self.protect_urls else path,
            file_size=item.get("size"),
            last_modified=item.get("modified"),
        )

    def _scan(self, folder: str, data: dict, depth: int) -> list[GalleryNode]:
        results: list[GalleryNode] = []

        files = data.get("files") or []
        if files:
            images = tuple(self._image(f) for f in files)
            results.append(GalleryNode(
                name=last_segment(folder) or folder or ROOT_FOLDER_NAME,
                path=folder,
                images=images,
                is_category=False,
                level=depth,
            ))

        for sub in data.get("folders") or []:
            name, path = sub.get("name", ""), sub.get("path", "")
            if is_reserved_folder(name, path):
                log.debug("[SKIP] Reserved folder %s", path)
                continue
            if depth + 1 > self.max_depth:
                log.warning("Max depth %d reached at %s", self.max_depth, path)
                continue
            sub_data = self._fetch(path)
            if sub_data is None:
                continue
            sub_results = self._scan(path, sub_data, depth + 1)
            if not sub_results:
                continue

            only_own_images = (
                len(sub_results) == 1
                and sub_results[0].path == path
                and sub_results[0].images
            )
            if only_own_images:
                results.extend(sub_results)
            else:
                results.append(GalleryNode(
                    name=name,
                    path=path,
                    images=(),
                    subfolders=tuple(sub_results),
                    is_category=True,
                    level=depth,
                ))
        return results
