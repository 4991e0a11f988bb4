"""
Allow-list validation for caller-supplied crawl roots and image URLs,
plus path / name checks for file-management operations.
"""

import re
import urllib.parse

from gallery_cache.config import (
    DEFAULT_GALLERY_BASE_URL,
    FORBIDDEN_PATH_CHARS,
    MAX_PATH_LENGTH,
)
from gallery_cache.errors import ValidationError
from gallery_cache.utils.log import log

_FILE_PATH_RE = re.compile(r"^[a-zA-Z0-9/_\-.\s]+$")
_FILE_NAME_RE = re.compile(r"^[a-zA-Z0-9_\-.]+$")


class UrlValidator:
    """
    Pure predicate over URLs: https only, one host, one path prefix, no
    traversal, no forbidden characters, no query, no fragment.
    """

    def __init__(self, allowed_host: str, allowed_prefix: str) -> None:
        self.allowed_host = allowed_host.lower()
        self.allowed_prefix = allowed_prefix or "/"

    @classmethod
    def from_base_url(cls, base_url: str = DEFAULT_GALLERY_BASE_URL) -> "UrlValidator":
        parsed = urllib.parse.urlparse(base_url)
        return cls(parsed.hostname or "", parsed.path or "/")

    def violation(self, url: str) -> str | None:
        """Return the first rule *url* breaks, or ``None`` when allowed."""
        if not isinstance(url, str) or not url:
            return "URL is required"
        try:
            parsed = urllib.parse.urlparse(url)
            host = (parsed.hostname or "").lower()
            _ = parsed.port
        except ValueError:
            return "URL is malformed"

        path = parsed.path
        if parsed.scheme != "https":
            return "Only HTTPS URLs are allowed"
        if host != self.allowed_host:
            return f"Host must be {self.allowed_host}"
        if not path.startswith(self.allowed_prefix):
            return f"Path must start with {self.allowed_prefix}"
        if ".." in path.split("/"):
            return "Path traversal is not allowed"
        if "//" in path:
            return "Path contains an empty segment"
        if any(ch in FORBIDDEN_PATH_CHARS for ch in path):
            return "Path contains forbidden characters"
        if len(path) > MAX_PATH_LENGTH:
            return f"Path longer than {MAX_PATH_LENGTH} characters"
        if parsed.query or "?" in url:
            return "Query strings are not allowed"
        if parsed.fragment or "#" in url:
            return "Fragments are not allowed"
        return None

    def is_allowed(self, url: str) -> bool:
        return self.violation(url) is None

    def check(self, url: str) -> str:
        """Return *url* unchanged or raise :class:`ValidationError`."""
        reason = self.violation(url)
        if reason is not None:
            log.warning("[DENY] %s – %s", url, reason)
            raise ValidationError(f"Invalid URL: {reason}")
        return url


_default_validator = UrlValidator.from_base_url()


def is_allowed(url: str) -> bool:
    """Check *url* against the default gallery base URL allow-list."""
    return _default_validator.is_allowed(url)


def validate_file_path(path: str) -> str | None:
    """
    Validate a path relative to the gallery folder
    (``"client/Meble gabinetowe/CUBE/photo.webp"``).

    Returns an error message or ``None``.
    """
    if not path or not isinstance(path, str):
        return "Path is required"
    if ".." in path or "./" in path or path.startswith("/"):
        return "Invalid path"
    if not _FILE_PATH_RE.match(path):
        return "Invalid characters in path"
    return None


def validate_file_name(name: str) -> str | None:
    """Validate a bare file or folder name (no separators)."""
    if not name or not isinstance(name, str):
        return "Name is required"
    if ".." in name or "/" in name or "\\" in name:
        return "Invalid file name"
    if not _FILE_NAME_RE.match(name):
        return "Invalid characters in name"
    return None
