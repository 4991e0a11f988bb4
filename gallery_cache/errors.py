"""Exceptions raised across the gallery cache."""


class GalleryError(Exception):
    """Base class; ``reason`` is the human-readable message for callers."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ValidationError(GalleryError):
    """A caller-supplied URL or path failed validation."""


class RemoteUnavailableError(GalleryError):
    """The crawl root itself could not be fetched."""


class ScanCancelledError(GalleryError):
    """The scan was cancelled before it finished."""


class ManifestCorruptError(GalleryError):
    """A manifest file exists but cannot be read or decoded."""
