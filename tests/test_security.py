"""
Tests for URL allow-listing, path validation and HMAC token signing.
"""

import hashlib
import hmac
import unittest
import urllib.parse

from gallery_cache.errors import ValidationError
from gallery_cache.security.tokens import (
    OPERATIONS,
    TokenSigner,
    canonical_payload,
    compute_token,
)
from gallery_cache.security.validator import (
    UrlValidator,
    is_allowed,
    validate_file_name,
    validate_file_path,
)

BASE = "https://allowed.example/__metro/gallery/"
NOW = 1_700_000_000


def _query(url: str) -> dict:
    return dict(urllib.parse.parse_qsl(urllib.parse.urlparse(url).query, keep_blank_values=True))


# ------------------------------------------------------------------ #
# URL validator
# ------------------------------------------------------------------ #

class TestUrlValidator(unittest.TestCase):
    def setUp(self):
        self.validator = UrlValidator("allowed.example", "/__metro/gallery/")

    def test_allowed(self):
        for url in (BASE, BASE + "CUBE/", BASE + "CUBE/photo 1.jpg"):
            self.assertTrue(self.validator.is_allowed(url), url)

    def test_host_case_insensitive(self):
        self.assertTrue(self.validator.is_allowed("https://ALLOWED.example/__metro/gallery/A/"))

    def test_plain_http_denied(self):
        self.assertFalse(self.validator.is_allowed("http://allowed.example/__metro/gallery/"))

    def test_other_hosts_denied(self):
        for url in (
            "https://evil.example/__metro/gallery/",
            "https://allowed.example.evil.com/__metro/gallery/",
            "https://sub.allowed.example/__metro/gallery/",
        ):
            self.assertFalse(self.validator.is_allowed(url), url)

    def test_prefix_required(self):
        self.assertFalse(self.validator.is_allowed("https://allowed.example/__metro/other/"))
        self.assertFalse(self.validator.is_allowed("https://allowed.example/"))

    def test_traversal_denied(self):
        url = BASE + "../secret/"
        self.assertEqual(self.validator.violation(url), "Path traversal is not allowed")

    def test_empty_segment_denied(self):
        self.assertEqual(self.validator.violation(BASE + "A//B/"), "Path contains an empty segment")

    def test_forbidden_characters(self):
        for ch in '<>"|*':
            url = BASE + f"a{ch}b/"
            self.assertEqual(
                self.validator.violation(url), "Path contains forbidden characters", url
            )

    def test_length_limit(self):
        self.assertTrue(self.validator.is_allowed(BASE + "a" * (500 - len("/__metro/gallery/"))))
        self.assertFalse(self.validator.is_allowed(BASE + "a" * 500))

    def test_query_denied(self):
        self.assertFalse(self.validator.is_allowed(BASE + "?x=1"))
        self.assertFalse(self.validator.is_allowed(BASE + "?"))

    def test_fragment_denied(self):
        self.assertFalse(self.validator.is_allowed(BASE + "#top"))
        self.assertFalse(self.validator.is_allowed(BASE + "#"))

    def test_malformed_denied(self):
        self.assertEqual(
            self.validator.violation("https://allowed.example:port/__metro/gallery/"),
            "URL is malformed",
        )
        self.assertEqual(self.validator.violation(""), "URL is required")

    def test_check_raises_and_logs(self):
        with self.assertLogs("gallery-cache", level="WARNING") as cm:
            with self.assertRaises(ValidationError) as ctx:
                self.validator.check("http://allowed.example/__metro/gallery/")
        self.assertIn("HTTPS", ctx.exception.reason)
        self.assertTrue(any("[DENY]" in line for line in cm.output))

    def test_check_returns_url(self):
        self.assertEqual(self.validator.check(BASE + "A/"), BASE + "A/")

    def test_from_base_url(self):
        validator = UrlValidator.from_base_url(BASE)
        self.assertEqual(validator.allowed_host, "allowed.example")
        self.assertEqual(validator.allowed_prefix, "/__metro/gallery/")

    def test_module_default(self):
        self.assertTrue(is_allowed("https://conceptfab.com/__metro/gallery/CUBE/"))
        self.assertFalse(is_allowed(BASE))


class TestPathValidation(unittest.TestCase):
    def test_valid_path(self):
        self.assertIsNone(validate_file_path("client/Meble gabinetowe/CUBE/photo.webp"))

    def test_invalid_paths(self):
        for path in ("../etc/passwd", "a/../b", "/abs/path", "a/./b"):
            self.assertEqual(validate_file_path(path), "Invalid path", path)

    def test_invalid_characters(self):
        self.assertEqual(validate_file_path("a;b"), "Invalid characters in path")

    def test_missing(self):
        self.assertEqual(validate_file_path(""), "Path is required")

    def test_valid_name(self):
        self.assertIsNone(validate_file_name("photo_01-final.jpg"))

    def test_invalid_names(self):
        for name in ("a/b", "a\\b", ".."):
            self.assertEqual(validate_file_name(name), "Invalid file name", name)
        self.assertEqual(validate_file_name("a b"), "Invalid characters in name")
        self.assertEqual(validate_file_name(""), "Name is required")


# ------------------------------------------------------------------ #
# Tokens
# ------------------------------------------------------------------ #

class TestCanonicalPayload(unittest.TestCase):
    def test_every_operation(self):
        cases = {
            "file":   ({"filePath": "a/b.jpg"}, "a/b.jpg|99"),
            "list":   ({"folder": "klient1"}, "list|klient1|99"),
            "upload": ({"folder": "klient1"}, "upload|klient1|99"),
            "delete": ({"path": "a/b.jpg"}, "delete|a/b.jpg|99"),
            "rename": ({"oldPath": "a/b.jpg", "newName": "c.jpg"}, "rename|a/b.jpg|c.jpg|99"),
            "mkdir":  ({"parentFolder": "a", "folderName": "new"}, "mkdir|a|new|99"),
            "move":   ({"sourcePath": "a/b.jpg", "targetFolder": "c"}, "move|a/b.jpg|c|99"),
        }
        self.assertEqual(set(cases), set(OPERATIONS))
        for op, (fields, expected) in cases.items():
            self.assertEqual(canonical_payload(op, fields, 99), expected, op)

    def test_folder_defaults_to_root(self):
        self.assertEqual(canonical_payload("list", {}, 5), "list||5")

    def test_unknown_operation(self):
        with self.assertRaises(ValueError):
            canonical_payload("chmod", {}, 1)

    def test_missing_required_field(self):
        with self.assertRaises(ValueError):
            canonical_payload("rename", {"oldPath": "a"}, 1)


class TestTokenSigner(unittest.TestCase):
    SECRET = "topsecretvalue-for-tests"
    ENDPOINTS = {
        "file": "https://proxy.example/file-proxy.php",
        "list": "https://proxy.example/file-list.php",
        "upload": "https://proxy.example/file-upload.php",
        "delete": "https://proxy.example/file-delete.php",
        "rename": "https://proxy.example/file-rename.php",
        "mkdir": "https://proxy.example/file-mkdir.php",
        "move": "https://proxy.example/file-move.php",
    }

    def setUp(self):
        self.now = [NOW]
        self.signer = TokenSigner(
            self.SECRET, self.ENDPOINTS, ttl=3600, clock=lambda: self.now[0]
        )

    def test_file_token_matches_reference_hmac(self):
        signed = self.signer.sign("file", {"filePath": "a/b.jpg"})
        expires = NOW + 3600
        expected = hmac.new(
            self.SECRET.encode(), f"a/b.jpg|{expires}".encode(), hashlib.sha256
        ).hexdigest()
        self.assertEqual(signed.expires, expires)
        self.assertEqual(signed.token, expected)

    def test_any_change_alters_token(self):
        base = compute_token(self.SECRET, "a/b.jpg|100")
        self.assertNotEqual(base, compute_token(self.SECRET, "a/b.jpg|101"))
        self.assertNotEqual(base, compute_token(self.SECRET, "a/c.jpg|100"))
        self.assertNotEqual(base, compute_token(self.SECRET + "x", "a/b.jpg|100"))

    def test_url_parameters(self):
        signed = self.signer.sign("rename", {"oldPath": "a/b.jpg", "newName": "c.jpg"})
        self.assertTrue(signed.url.startswith(self.ENDPOINTS["rename"] + "?"))
        self.assertEqual(
            _query(signed.url),
            {
                "oldPath": "a/b.jpg",
                "newName": "c.jpg",
                "token": signed.token,
                "expires": str(signed.expires),
            },
        )

    def test_secret_never_in_url(self):
        for op, fields in (
            ("file", {"filePath": "x.jpg"}),
            ("list", {"folder": ""}),
            ("move", {"sourcePath": "x.jpg", "targetFolder": "y"}),
        ):
            self.assertNotIn(self.SECRET, self.signer.sign(op, fields).url)

    def test_custom_ttl(self):
        signed = self.signer.sign("delete", {"path": "x.jpg"}, ttl=60)
        self.assertEqual(signed.expires, NOW + 60)

    def test_endpoint_with_query_string(self):
        signer = TokenSigner(self.SECRET, {"file": "https://p.example/proxy?v=2"}, clock=lambda: NOW)
        url = signer.signed_file_url("x.jpg")
        self.assertTrue(url.startswith("https://p.example/proxy?v=2&file=x.jpg&"))

    def test_list_url_for_root(self):
        query = _query(self.signer.list_url())
        self.assertEqual(query["folder"], "")

    def test_none_folder_signed_as_root(self):
        signed = self.signer.sign("list", {"folder": None})
        query = _query(signed.url)
        self.assertEqual(query["folder"], "")
        self.assertNotIn("None", signed.url)
        self.assertEqual(
            signed.token,
            compute_token(self.SECRET, f"list||{signed.expires}"),
        )
        self.assertTrue(
            self.signer.verify("list", {"folder": query["folder"]}, signed.token, signed.expires)
        )

    def test_convert_to_signed_url(self):
        url = self.signer.convert_to_signed_url(
            "https://h.example/__metro/gallery/klient1/foto.jpg",
            "https://h.example/__metro/gallery",
        )
        self.assertEqual(_query(url)["file"], "klient1/foto.jpg")

    def test_verify_round_trip(self):
        signed = self.signer.sign("file", {"filePath": "a/b.jpg"})
        self.assertTrue(
            self.signer.verify("file", {"filePath": "a/b.jpg"}, signed.token, signed.expires)
        )

    def test_verify_rejects_tampering(self):
        signed = self.signer.sign("file", {"filePath": "a/b.jpg"})
        self.assertFalse(
            self.signer.verify("file", {"filePath": "a/c.jpg"}, signed.token, signed.expires)
        )
        self.assertFalse(
            self.signer.verify("file", {"filePath": "a/b.jpg"}, signed.token, signed.expires + 1)
        )
        self.assertFalse(
            self.signer.verify("file", {"filePath": "a/b.jpg"}, "0" * 64, signed.expires)
        )
        self.assertFalse(
            self.signer.verify("file", {"filePath": "a/b.jpg"}, signed.token, "soon")
        )

    def test_verify_rejects_expired(self):
        signed = self.signer.sign("file", {"filePath": "a/b.jpg"})
        self.now[0] = signed.expires + 1
        self.assertFalse(
            self.signer.verify("file", {"filePath": "a/b.jpg"}, signed.token, signed.expires)
        )

    def test_unknown_operation_raises(self):
        with self.assertRaises(ValueError):
            self.signer.sign("chmod", {})

    def test_signed_token_dict(self):
        signed = self.signer.sign("list", {"folder": "a"})
        self.assertEqual(set(signed.to_dict()), {"token", "expires", "url"})


class TestSignerWarnings(unittest.TestCase):
    ENDPOINTS = {"file": "https://proxy.example/file-proxy.php"}

    def test_missing_secret_warns_once(self):
        signer = TokenSigner("", self.ENDPOINTS, protection_enabled=True, clock=lambda: NOW)
        with self.assertLogs("gallery-cache", level="WARNING") as cm:
            first = signer.sign("file", {"filePath": "a.jpg"})
            signer.sign("file", {"filePath": "b.jpg"})
        warnings = [line for line in cm.output if "FILE_PROXY_SECRET" in line]
        self.assertEqual(len(warnings), 1)
        # issuance is not blocked
        self.assertEqual(len(first.token), 64)

    def test_missing_endpoint_warns_once_per_operation(self):
        signer = TokenSigner("secret", {}, clock=lambda: NOW)
        with self.assertLogs("gallery-cache", level="WARNING") as cm:
            signer.sign("delete", {"path": "a.jpg"})
            signer.sign("delete", {"path": "b.jpg"})
            signer.sign("mkdir", {"parentFolder": "a", "folderName": "b"})
        warnings = [line for line in cm.output if "No proxy endpoint" in line]
        self.assertEqual(len(warnings), 2)


if __name__ == "__main__":
    unittest.main()
