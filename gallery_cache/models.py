"""
Data model shared by the crawler, the cache and the manifest store.

Wire names follow the JSON consumed by the gallery front end
(``isCategory``, ``imageCount``, ``totalImages``, ...).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator


def _require_object(data: Any, what: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{what} entry must be a JSON object, got {type(data).__name__}")


@dataclass(frozen=True)
class ImageReference:
    """One fetchable image inside a gallery folder."""

    name: str
    path: str
    url: str
    file_size: int | None = None
    last_modified: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "path": self.path, "url": self.url}
        if self.file_size is not None:
            data["fileSize"] = self.file_size
        if self.last_modified is not None:
            data["lastModified"] = self.last_modified
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageReference:
        _require_object(data, "image")
        return cls(
            name=data["name"],
            path=data["path"],
            url=data["url"],
            file_size=data.get("fileSize"),
            last_modified=data.get("lastModified"),
        )


@dataclass(frozen=True)
class GalleryNode:
    """
    A discovered folder.

    A category node groups subfolders and carries no images of its own;
    a node with images is never a category.
    """

    name: str
    path: str
    images: tuple[ImageReference, ...] = ()
    subfolders: tuple[GalleryNode, ...] | None = None
    is_category: bool = False
    level: int = 0

    def __post_init__(self) -> None:
        # Accept lists from callers, store tuples so the node stays hashable
        object.__setattr__(self, "images", tuple(self.images))
        if self.subfolders is not None:
            object.__setattr__(self, "subfolders", tuple(self.subfolders))
        if self.is_category and self.images:
            raise ValueError(f"category node {self.name!r} cannot hold images")

    @property
    def image_count(self) -> int:
        return len(self.images)

    def walk(self) -> Iterator[GalleryNode]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.subfolders or ():
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "images": [img.to_dict() for img in self.images],
            "isCategory": self.is_category,
            "level": self.level,
        }
        if self.subfolders is not None:
            data["subfolders"] = [sub.to_dict() for sub in self.subfolders]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GalleryNode:
        _require_object(data, "folder")
        subs = data.get("subfolders")
        return cls(
            name=data["name"],
            path=data["path"],
            images=tuple(ImageReference.from_dict(i) for i in data.get("images", [])),
            subfolders=None if subs is None else tuple(cls.from_dict(s) for s in subs),
            is_category=bool(data.get("isCategory", False)),
            level=int(data.get("level", 0)),
        )


def tree_to_json(nodes: list[GalleryNode]) -> str:
    return json.dumps([n.to_dict() for n in nodes], ensure_ascii=False)


def tree_from_json(text: str | bytes) -> list[GalleryNode]:
    """Decode a tree written by :func:`tree_to_json`.

    Raises ``ValueError`` (``json.JSONDecodeError`` included) or ``KeyError``
    / ``TypeError`` on malformed input.
    """
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError("gallery tree must be a JSON array")
    return [GalleryNode.from_dict(item) for item in raw]


@dataclass(frozen=True)
class FolderSummary:
    """(name, image count) pair fed to the fingerprint."""

    name: str
    image_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "imageCount": self.image_count}


@dataclass(frozen=True)
class CacheManifest:
    """Last persisted snapshot of the gallery's shape."""

    generated_at: datetime
    version: str
    folders: tuple[FolderSummary, ...] = field(default_factory=tuple)
    total_images: int = 0
    hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated": self.generated_at.isoformat(),
            "version": self.version,
            "folders": [f.to_dict() for f in self.folders],
            "totalImages": self.total_images,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheManifest:
        generated = datetime.fromisoformat(str(data["generated"]).replace("Z", "+00:00"))
        if generated.tzinfo is None:
            generated = generated.replace(tzinfo=timezone.utc)
        return cls(
            generated_at=generated,
            version=str(data.get("version", "")),
            folders=tuple(
                FolderSummary(str(f["name"]), int(f["imageCount"]))
                for f in data.get("folders", [])
            ),
            total_images=int(data.get("totalImages", 0)),
            hash=str(data.get("hash", "")),
        )


@dataclass(frozen=True)
class SignedToken:
    """Transient capability minted by the token signer; never stored."""

    token: str
    expires: int
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {"token": self.token, "expires": self.expires, "url": self.url}
