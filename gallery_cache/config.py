"""
Configuration constants for the gallery cache.

Every value can be overridden through the environment; ``load_settings()``
takes a snapshot that components receive explicitly.
"""

import os
import urllib.parse
from dataclasses import dataclass, field
from typing import Mapping

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_GALLERY_BASE_URL = "https://conceptfab.com/__metro/gallery/"
DEFAULT_MAX_DEPTH = 5
DEFAULT_WORKERS = 1            # 1 = sequential folder probing
MAX_CRAWL_WORKERS = 8          # hard cap on parallel folder fetches against the remote host
DEFAULT_MANIFEST_PATH = "cache/cache-manifest.json"
DEFAULT_MANIFEST_MAX_AGE = 7 * 24 * 60 * 60
MANIFEST_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
LISTING_TIMEOUT = 15           # seconds per listing page
COUNT_TIMEOUT = 10             # seconds per image-count fetch
LIST_API_TIMEOUT = 15          # seconds per JSON listing endpoint call
MAX_RETRIES = 3

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp")

# Never part of the gallery, regardless of contents
RESERVED_FOLDER = "_folders"

# Name used for the root node of the JSON listing crawl
ROOT_FOLDER_NAME = "Gallery"

# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------
MAX_PATH_LENGTH = 500
FORBIDDEN_PATH_CHARS = frozenset('<>"|?*')

# ---------------------------------------------------------------------------
# Signed tokens
# ---------------------------------------------------------------------------
DEFAULT_TOKEN_TTL = 7200       # 2 hours

# Operation -> environment variable holding its downstream endpoint
ENDPOINT_ENV_VARS = {
    "file":   "FILE_PROXY_URL",
    "list":   "FILE_LIST_URL",
    "upload": "FILE_UPLOAD_URL",
    "delete": "FILE_DELETE_URL",
    "move":   "FILE_MOVE_URL",
    "rename": "FILE_RENAME_URL",
    "mkdir":  "FILE_MKDIR_URL",
}

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
DEFAULT_CACHE_TTL = 300        # seconds
DEFAULT_CACHE_TIMEOUT = 0.5    # seconds per backend call
CACHE_KEY_PREFIX = "gallery:"
CACHE_ROOT_MARKER = "root"
MAX_CACHE_KEY_LENGTH = 200


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Snapshot of every recognised configuration option."""

    gallery_base_url: str = DEFAULT_GALLERY_BASE_URL
    allowed_host: str = "conceptfab.com"
    allowed_prefix: str = "/__metro/gallery/"
    max_depth: int = DEFAULT_MAX_DEPTH
    workers: int = DEFAULT_WORKERS
    verify_ssl: bool = True
    proxy_secret: str = ""
    protection_enabled: bool = False
    token_ttl: int = DEFAULT_TOKEN_TTL
    endpoints: dict[str, str] = field(default_factory=dict)
    cache_url: str = ""
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_timeout: float = DEFAULT_CACHE_TIMEOUT
    manifest_path: str = DEFAULT_MANIFEST_PATH
    manifest_max_age: int = DEFAULT_MANIFEST_MAX_AGE


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build a :class:`Settings` from *environ* (``os.environ`` by default)."""
    env = os.environ if environ is None else environ

    base = env.get("GALLERY_BASE_URL") or DEFAULT_GALLERY_BASE_URL
    parsed = urllib.parse.urlparse(base)

    endpoints = {
        op: env.get(var, "")
        for op, var in ENDPOINT_ENV_VARS.items()
    }

    return Settings(
        gallery_base_url=base,
        allowed_host=env.get("GALLERY_ALLOWED_HOST") or parsed.hostname or "",
        allowed_prefix=env.get("GALLERY_ALLOWED_PREFIX") or parsed.path or "/",
        max_depth=_env_int(env, "GALLERY_MAX_DEPTH", DEFAULT_MAX_DEPTH),
        workers=_env_int(env, "GALLERY_CRAWL_WORKERS", DEFAULT_WORKERS),
        proxy_secret=env.get("FILE_PROXY_SECRET", ""),
        protection_enabled=env.get("FILE_PROTECTION_ENABLED", "").lower() == "true",
        token_ttl=_env_int(env, "FILE_TOKEN_TTL", DEFAULT_TOKEN_TTL),
        endpoints=endpoints,
        cache_url=env.get("GALLERY_CACHE_URL") or env.get("REDIS_URL", ""),
        cache_ttl=_env_int(env, "GALLERY_CACHE_TTL", DEFAULT_CACHE_TTL),
        cache_timeout=_env_float(env, "GALLERY_CACHE_TIMEOUT", DEFAULT_CACHE_TIMEOUT),
        manifest_path=env.get("GALLERY_MANIFEST_PATH") or DEFAULT_MANIFEST_PATH,
        manifest_max_age=_env_int(env, "GALLERY_MANIFEST_MAX_AGE", DEFAULT_MANIFEST_MAX_AGE),
    )
