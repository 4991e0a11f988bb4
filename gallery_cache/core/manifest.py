"""
Cache manifest persistence and staleness verdicts.

The manifest is written once after a full crawl the caller decides to
snapshot, and only ever read by the staleness check.  Verdicts are
reported in a fixed priority order so the most specific reason wins:

1. no manifest on disk
2. manifest unreadable
3. gallery structure changed
4. manifest too old
5. up to date
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, NamedTuple

from gallery_cache.config import DEFAULT_MANIFEST_MAX_AGE, MANIFEST_VERSION
from gallery_cache.core.fingerprint import FolderLike, fingerprint, summarize, total_images
from gallery_cache.errors import ManifestCorruptError
from gallery_cache.models import CacheManifest, GalleryNode
from gallery_cache.utils.log import log

_SECONDS_PER_DAY = 24 * 60 * 60

REASON_NO_CACHE = "No cache exists"
REASON_CORRUPTED = "Cache manifest corrupted"
REASON_CHANGED = "Gallery structure changed"
REASON_UP_TO_DATE = "Cache is up to date"


class StalenessVerdict(NamedTuple):
    stale: bool
    reason: str


def build_manifest(
    nodes: list[GalleryNode],
    version: str = MANIFEST_VERSION,
    now: datetime | None = None,
) -> CacheManifest:
    """Snapshot the shape of *nodes*."""
    folders = tuple(summarize(nodes))
    return CacheManifest(
        generated_at=now or datetime.now(timezone.utc),
        version=version,
        folders=folders,
        total_images=total_images(nodes),
        hash=fingerprint(folders),
    )


class ManifestStore:
    """JSON manifest file at *path*."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> CacheManifest | None:
        """
        Return the stored manifest, ``None`` when there is none, or raise
        :class:`ManifestCorruptError` when it cannot be decoded.
        """
        if not self.exists():
            log.debug("No cache manifest at %s", self.path)
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            manifest = CacheManifest.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            log.error("[ERR] Cannot read cache manifest %s: %s", self.path, exc)
            raise ManifestCorruptError(REASON_CORRUPTED) from exc
        log.debug("Loaded manifest generated=%s version=%s",
                  manifest.generated_at.isoformat(), manifest.version)
        return manifest

    def save(self, manifest: CacheManifest) -> None:
        """Replace the manifest wholesale (write to a temp file, then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(manifest.to_dict(), fh, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        log.info("Manifest saved → %s (%d folders, %d images)",
                 self.path, len(manifest.folders), manifest.total_images)


def _days(seconds: float) -> str:
    return f"{seconds / _SECONDS_PER_DAY:g}"


def is_stale(
    manifest: CacheManifest | None,
    fresh_folders: Iterable[FolderLike],
    max_age_seconds: float = DEFAULT_MANIFEST_MAX_AGE,
    now: datetime | None = None,
) -> StalenessVerdict:
    """Compare *manifest* with a freshly computed folder list."""
    if manifest is None:
        return StalenessVerdict(True, REASON_NO_CACHE)

    if fingerprint(manifest.folders) != fingerprint(fresh_folders):
        log.info("[STALE] %s", REASON_CHANGED)
        return StalenessVerdict(True, REASON_CHANGED)

    now = now or datetime.now(timezone.utc)
    age = (now - manifest.generated_at).total_seconds()
    if age > max_age_seconds:
        reason = (
            f"Cache older than {_days(max_age_seconds)} days "
            f"({round(age / _SECONDS_PER_DAY)} days)"
        )
        log.info("[STALE] %s", reason)
        return StalenessVerdict(True, reason)

    log.info("[FRESH] %s", REASON_UP_TO_DATE)
    return StalenessVerdict(False, REASON_UP_TO_DATE)


def check_manifest(
    store: ManifestStore,
    fresh_folders: Iterable[FolderLike],
    max_age_seconds: float = DEFAULT_MANIFEST_MAX_AGE,
    now: datetime | None = None,
) -> tuple[StalenessVerdict, CacheManifest | None]:
    """Load the manifest from *store* and return the verdict with it."""
    try:
        manifest = store.load()
    except ManifestCorruptError:
        return StalenessVerdict(True, REASON_CORRUPTED), None
    return is_stale(manifest, fresh_folders, max_age_seconds, now), manifest
