"""URL allow-listing and signed access tokens."""

from gallery_cache.security.tokens import TokenSigner, canonical_payload, compute_token
from gallery_cache.security.validator import (
    UrlValidator,
    is_allowed,
    validate_file_name,
    validate_file_path,
)

__all__ = [
    "TokenSigner",
    "UrlValidator",
    "canonical_payload",
    "compute_token",
    "is_allowed",
    "validate_file_name",
    "validate_file_path",
]
