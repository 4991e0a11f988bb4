"""
Read-through cache for crawl results on top of an external key-value store.

The backend (normally a ``redis.Redis`` client) is injected.  Every call is
bounded by a hard timeout and every backend failure degrades to a miss or a
no-op: an unavailable cache makes scans slower, never unavailable.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Protocol

import redis

from gallery_cache.config import (
    CACHE_KEY_PREFIX,
    CACHE_ROOT_MARKER,
    DEFAULT_CACHE_TIMEOUT,
    DEFAULT_CACHE_TTL,
    MAX_CACHE_KEY_LENGTH,
)
from gallery_cache.models import GalleryNode, tree_from_json, tree_to_json
from gallery_cache.utils.log import log

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9/_-]")
_UNSAFE_GROUP_CHARS = re.compile(r"[^A-Za-z0-9_-]")

# Backend calls racing the timeout run here; losers finish in the
# background and their result is dropped.
_CACHE_WORKERS = 4


class CacheBackend(Protocol):
    def get(self, key: str) -> Any: ...
    def set(self, key: str, value: str, ex: int | None = None) -> Any: ...
    def delete(self, key: str) -> Any: ...


def cache_key(folder: str = "", group_id: str | None = None) -> str:
    """
    Sanitised cache key for *folder* (optionally namespaced by *group_id*).

    ``..`` is stripped, anything outside ``[A-Za-z0-9/_-]`` becomes ``_``
    and the folder part is capped at 200 characters.
    """
    folder = folder or CACHE_ROOT_MARKER
    folder = folder.replace("..", "")
    folder = _UNSAFE_KEY_CHARS.sub("_", folder)[:MAX_CACHE_KEY_LENGTH]
    key = f"{CACHE_KEY_PREFIX}{folder or CACHE_ROOT_MARKER}"
    if group_id:
        key += ":group:" + _UNSAFE_GROUP_CHARS.sub("_", str(group_id))
    return key


def build_cache_backend(
    url: str, timeout: float = DEFAULT_CACHE_TIMEOUT
) -> redis.Redis | None:
    """Create the redis client for *url*, or ``None`` if unconfigured/invalid."""
    if not url:
        log.info("[CACHE] No cache URL configured – caching disabled")
        return None
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
    except (redis.RedisError, ValueError) as exc:
        log.warning("[CACHE] Invalid cache configuration (%s) – caching disabled", exc)
        return None
    log.info("[CACHE] Cache backend configured")
    return client


class GalleryCache:
    """
    Timeout-bounded, failure-absorbing cache of gallery trees.

    ``get`` returns ``None`` on miss, timeout or error; ``set`` and
    ``clear`` never raise.
    """

    def __init__(
        self,
        backend: CacheBackend | None,
        ttl: int = DEFAULT_CACHE_TTL,
        timeout: float = DEFAULT_CACHE_TIMEOUT,
    ) -> None:
        self._backend = backend
        self.ttl = ttl
        self.timeout = timeout
        self._executor: ThreadPoolExecutor | None = None
        if backend is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=_CACHE_WORKERS, thread_name_prefix="gallery-cache"
            )

    def is_available(self) -> bool:
        """True when a backend was configured at construction time."""
        return self._backend is not None

    def _call(self, op: str, key: str, fn: Callable[[], Any]) -> tuple[bool, Any]:
        """Run *fn* against the timeout; ``(ok, result)``."""
        if self._backend is None or self._executor is None:
            return False, None
        try:
            future = self._executor.submit(fn)
        except RuntimeError as exc:          # executor shut down
            log.debug("[CACHE] %s %s skipped: %s", op, key, exc)
            return False, None
        try:
            return True, future.result(timeout=self.timeout)
        except Exception as exc:
            future.cancel()
            log.warning("[CACHE] %s %s failed (%s) – continuing without cache",
                        op, key, type(exc).__name__)
            return False, None

    def get(self, folder: str = "", group_id: str | None = None) -> list[GalleryNode] | None:
        key = cache_key(folder, group_id)
        ok, raw = self._call("GET", key, lambda: self._backend.get(key))
        if not ok or raw is None:
            log.debug("[CACHE] miss %s", key)
            return None
        try:
            nodes = tree_from_json(raw)
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("[CACHE] Undecodable entry %s (%s) – treating as miss", key, exc)
            return None
        log.debug("[CACHE] hit %s (%d folders)", key, len(nodes))
        return nodes

    def set(
        self, folder: str, nodes: list[GalleryNode], group_id: str | None = None
    ) -> None:
        key = cache_key(folder, group_id)
        payload = tree_to_json(nodes)
        ok, _ = self._call("SET", key, lambda: self._backend.set(key, payload, ex=self.ttl))
        if ok:
            log.debug("[CACHE] stored %s (ttl %ds)", key, self.ttl)

    def clear(self, folder: str = "", group_id: str | None = None) -> None:
        key = cache_key(folder, group_id)
        ok, _ = self._call("DEL", key, lambda: self._backend.delete(key))
        if ok:
            log.info("[CACHE] cleared %s", key)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
