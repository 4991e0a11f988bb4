"""
HMAC-signed, time-boxed URLs for the downstream file proxy.

Each operation has a fixed canonical payload; the token is
``HMAC-SHA256(payload, secret)`` as a hex digest and the URL carries the
operation's fields plus ``token`` and ``expires``.  The proxy recomputes the
HMAC and rejects mismatches and expired requests; :meth:`TokenSigner.verify`
implements the same check.

===========  ===========================================  ==========================
operation    canonical payload                            query fields
===========  ===========================================  ==========================
file         ``filePath|expires``                          file
list         ``list|folder|expires``                       folder
upload       ``upload|folder|expires``                     folder
delete       ``delete|path|expires``                       path
rename       ``rename|oldPath|newName|expires``            oldPath, newName
mkdir        ``mkdir|parentFolder|folderName|expires``     parentFolder, folderName
move         ``move|sourcePath|targetFolder|expires``      sourcePath, targetFolder
===========  ===========================================  ==========================
"""

import hashlib
import hmac
import time
import urllib.parse
from typing import Callable, Mapping

from gallery_cache.config import DEFAULT_TOKEN_TTL
from gallery_cache.models import SignedToken
from gallery_cache.utils.log import log
from gallery_cache.utils.url import relative_to_base

# operation -> (payload tag or None, ordered (field, query param) pairs)
OPERATIONS: dict[str, tuple[str | None, tuple[tuple[str, str], ...]]] = {
    "file":   (None,     (("filePath", "file"),)),
    "list":   ("list",   (("folder", "folder"),)),
    "upload": ("upload", (("folder", "folder"),)),
    "delete": ("delete", (("path", "path"),)),
    "rename": ("rename", (("oldPath", "oldPath"), ("newName", "newName"))),
    "mkdir":  ("mkdir",  (("parentFolder", "parentFolder"), ("folderName", "folderName"))),
    "move":   ("move",   (("sourcePath", "sourcePath"), ("targetFolder", "targetFolder"))),
}

# Fields that may be omitted and default to the gallery root
_OPTIONAL_FIELDS = frozenset(["folder"])


def _field_values(operation: str, fields: Mapping[str, str]) -> list[tuple[str, str]]:
    """
    ``(query param, value)`` pairs for *operation* in payload order.  An
    omitted or ``None`` optional field becomes ``""``.
    """
    try:
        _tag, spec = OPERATIONS[operation]
    except KeyError:
        raise ValueError(f"Unknown token operation: {operation!r}") from None

    values: list[tuple[str, str]] = []
    for name, param in spec:
        value = fields.get(name)
        if value is None:
            if name not in _OPTIONAL_FIELDS:
                raise ValueError(f"Operation {operation!r} requires field {name!r}")
            value = ""
        values.append((param, str(value)))
    return values


def canonical_payload(operation: str, fields: Mapping[str, str], expires: int) -> str:
    """Return the exact string that gets signed for *operation*."""
    values = _field_values(operation, fields)
    tag = OPERATIONS[operation][0]
    parts: list[str] = [] if tag is None else [tag]
    parts.extend(value for _param, value in values)
    parts.append(str(int(expires)))
    return "|".join(parts)


def compute_token(secret: str, payload: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


class TokenSigner:
    """
    Mints signed URLs for the session-less file proxy.

    *endpoints* maps operation name to the proxy endpoint URL.  A missing
    secret while protection is enabled does not block issuance: the token is
    still produced (and worthless) and a warning is logged once.
    """

    def __init__(
        self,
        secret: str,
        endpoints: Mapping[str, str] | None = None,
        ttl: int = DEFAULT_TOKEN_TTL,
        protection_enabled: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret or ""
        self.endpoints = dict(endpoints or {})
        self.ttl = ttl
        self.protection_enabled = protection_enabled
        self._clock = clock
        self._warned_secret = False
        self._warned_endpoints: set[str] = set()

    def _secret_key(self) -> str:
        if self.protection_enabled and not self._secret and not self._warned_secret:
            self._warned_secret = True
            log.warning(
                "[TOKEN] FILE_PROXY_SECRET is not set while file protection is "
                "enabled – signed URLs are NOT secure"
            )
        return self._secret

    def _endpoint(self, operation: str) -> str:
        url = self.endpoints.get(operation, "")
        if not url and operation not in self._warned_endpoints:
            self._warned_endpoints.add(operation)
            log.warning("[TOKEN] No proxy endpoint configured for %r", operation)
        return url

    def sign(
        self,
        operation: str,
        fields: Mapping[str, str] | None = None,
        ttl: int | None = None,
    ) -> SignedToken:
        """
        Sign *operation* over *fields* for *ttl* seconds (default
        :attr:`ttl`).  Raises ``ValueError`` for an unknown operation or a
        missing required field.
        """
        fields = dict(fields or {})
        expires = int(self._clock()) + (self.ttl if ttl is None else ttl)
        payload = canonical_payload(operation, fields, expires)
        token = compute_token(self._secret_key(), payload)

        params = _field_values(operation, fields)
        params.append(("token", token))
        params.append(("expires", str(expires)))

        endpoint = self._endpoint(operation)
        sep = "&" if "?" in endpoint else "?"
        url = f"{endpoint}{sep}{urllib.parse.urlencode(params)}"
        log.debug("[TOKEN] Signed %s (expires %d)", operation, expires)
        return SignedToken(token=token, expires=expires, url=url)

    def verify(
        self,
        operation: str,
        fields: Mapping[str, str],
        token: str,
        expires: int | str,
    ) -> bool:
        """Consumer-side check: recompute the HMAC and reject expired tokens."""
        try:
            expires_int = int(expires)
            payload = canonical_payload(operation, fields, expires_int)
        except ValueError:
            return False
        if self._clock() > expires_int:
            return False
        expected = compute_token(self._secret, payload)
        return hmac.compare_digest(expected, str(token))

    # -- convenience wrappers -------------------------------------------

    def signed_file_url(self, file_path: str) -> str:
        return self.sign("file", {"filePath": file_path}).url

    def list_url(self, folder: str = "") -> str:
        return self.sign("list", {"folder": folder}).url

    def convert_to_signed_url(self, direct_url: str, base_gallery_url: str) -> str:
        """Turn a direct gallery URL into a signed proxy URL."""
        return self.signed_file_url(relative_to_base(direct_url, base_gallery_url))
