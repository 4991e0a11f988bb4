"""
Tests for listing href resolution helpers.
"""

import unittest

from gallery_cache.utils.url import (
    ensure_trailing_slash,
    last_segment,
    origin_of,
    relative_to_base,
    resolve_href,
)


class TestResolveHref(unittest.TestCase):
    ORIGIN = "https://example.com/"
    FOLDER = "https://example.com/__metro/gallery/CUBE/"

    def test_relative_folder(self):
        result = resolve_href("SUB/", self.FOLDER, self.ORIGIN)
        self.assertEqual(result, "https://example.com/__metro/gallery/CUBE/SUB/")

    def test_relative_image(self):
        result = resolve_href("photo 1.jpg", self.FOLDER, self.ORIGIN)
        self.assertEqual(result, "https://example.com/__metro/gallery/CUBE/photo 1.jpg")

    def test_root_relative_uses_origin(self):
        result = resolve_href("/__metro/gallery/TABLE/", self.FOLDER, self.ORIGIN)
        self.assertEqual(result, "https://example.com/__metro/gallery/TABLE/")

    def test_absolute_kept(self):
        result = resolve_href("https://example.com/x/", self.FOLDER, self.ORIGIN)
        self.assertEqual(result, "https://example.com/x/")

    def test_malformed_rejected(self):
        self.assertIsNone(resolve_href("http://[broken/", self.FOLDER, self.ORIGIN))

    def test_non_http_rejected(self):
        self.assertIsNone(resolve_href("ftp://example.com/a/", self.FOLDER, self.ORIGIN))

    def test_empty_rejected(self):
        self.assertIsNone(resolve_href("  ", self.FOLDER, self.ORIGIN))


class TestUrlHelpers(unittest.TestCase):
    def test_origin_of(self):
        self.assertEqual(origin_of("https://example.com/a/b/?q=1"), "https://example.com/")

    def test_ensure_trailing_slash(self):
        self.assertEqual(ensure_trailing_slash("https://e.com/a"), "https://e.com/a/")
        self.assertEqual(ensure_trailing_slash("https://e.com/a/"), "https://e.com/a/")

    def test_last_segment(self):
        self.assertEqual(last_segment("/__metro/gallery/CUBE/"), "CUBE")
        self.assertEqual(last_segment("/"), "")

    def test_relative_to_base(self):
        self.assertEqual(
            relative_to_base(
                "https://example.com/__metro/gallery/klient1/foto.jpg",
                "https://example.com/__metro/gallery",
            ),
            "klient1/foto.jpg",
        )


if __name__ == "__main__":
    unittest.main()
