"""Link extraction and classification for directory listings."""

from gallery_cache.extraction.links import (
    Link,
    extract_listing_links,
    is_ignorable,
    parse_anchor_links,
)
from gallery_cache.extraction.classify import (
    LinkKind,
    classify_link,
    folder_display_name,
    image_display_name,
    is_folder_link,
    is_image_link,
    is_reserved_folder,
)

__all__ = [
    "Link",
    "LinkKind",
    "classify_link",
    "extract_listing_links",
    "folder_display_name",
    "image_display_name",
    "is_folder_link",
    "is_ignorable",
    "is_image_link",
    "is_reserved_folder",
    "parse_anchor_links",
]
