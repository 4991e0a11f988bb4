"""
Tests for listing link extraction and folder/image classification.
"""

import unittest

from gallery_cache.extraction.classify import (
    LinkKind,
    classify_link,
    folder_display_name,
    image_display_name,
    is_folder_link,
    is_image_link,
    is_reserved_folder,
)
from gallery_cache.extraction.links import (
    Link,
    extract_listing_links,
    is_ignorable,
    parse_anchor_links,
)


class TestParseAnchorLinks(unittest.TestCase):
    def test_href_and_text(self):
        html = '<a href="CUBE/">CUBE/</a><a href="photo.jpg">photo.jpg</a>'
        self.assertEqual(
            parse_anchor_links(html),
            [Link("CUBE/", "CUBE/"), Link("photo.jpg", "photo.jpg")],
        )

    def test_nested_markup_flattened(self):
        html = '<a href="A/"><span><b>Folder</b> A</span></a>'
        links = parse_anchor_links(html)
        self.assertEqual(links[0].href, "A/")
        self.assertIn("Folder", links[0].text)

    def test_missing_href_is_empty(self):
        self.assertEqual(parse_anchor_links("<a name='top'>Top</a>"), [Link("", "Top")])

    def test_bytes_input(self):
        links = parse_anchor_links(b'<a href="x.png">x.png</a>')
        self.assertEqual(links, [Link("x.png", "x.png")])

    def test_no_links(self):
        self.assertEqual(parse_anchor_links("<html><body>empty</body></html>"), [])


class TestIgnorableLinks(unittest.TestCase):
    def test_parent_links(self):
        self.assertTrue(is_ignorable(Link("../", "..")))
        self.assertTrue(is_ignorable(Link("./", ".")))

    def test_parent_directory_text(self):
        self.assertTrue(is_ignorable(Link("/__metro/", "Parent Directory")))

    def test_special_schemes(self):
        for href in ("#top", "?C=N;O=D", "javascript:void(0)", "mailto:a@b.c", "tel:123"):
            self.assertTrue(is_ignorable(Link(href, "x")), href)

    def test_empty_href(self):
        self.assertTrue(is_ignorable(Link("", "text")))

    def test_regular_folder_kept(self):
        self.assertFalse(is_ignorable(Link("CUBE/", "CUBE/")))


class TestExtractListingLinks(unittest.TestCase):
    def test_duplicates_dropped_first_wins(self):
        html = '<a href="A/">A</a><a href="A/">again</a><a href="B/">B</a>'
        self.assertEqual(
            extract_listing_links(html),
            [Link("A/", "A"), Link("B/", "B")],
        )

    def test_apache_listing(self):
        html = """
        <html><body><h1>Index of /gallery</h1>
        <a href="?C=N;O=D">Name</a>
        <a href="/">Parent Directory</a>
        <a href="CUBE/">CUBE/</a>
        <a href="cover.jpg">cover.jpg</a>
        </body></html>
        """
        hrefs = [link.href for link in extract_listing_links(html)]
        self.assertEqual(hrefs, ["CUBE/", "cover.jpg"])


class TestImageLinks(unittest.TestCase):
    def test_allowed_extensions(self):
        for name in ("a.jpg", "a.JPEG", "a.png", "a.gif", "a.webp", "a.svg", "a.bmp"):
            self.assertTrue(is_image_link(name), name)

    def test_other_extensions(self):
        for name in ("a.mp4", "a.txt", "a.jpg.zip", "folder/"):
            self.assertFalse(is_image_link(name), name)


class TestFolderLinks(unittest.TestCase):
    def test_trailing_slash(self):
        self.assertTrue(is_folder_link("klient1/", "klient1/"))

    def test_no_dot_with_text(self):
        self.assertTrue(is_folder_link("Meble", "Meble"))

    def test_uppercase_text(self):
        self.assertTrue(is_folder_link("cube.html", "CUBE"))

    def test_bare_token_href(self):
        self.assertTrue(is_folder_link("/CUBE_X", ""))

    def test_gallery_path(self):
        self.assertTrue(is_folder_link("/__metro/gallery/x.y/", ""))

    def test_plain_file_is_not_folder(self):
        self.assertFalse(is_folder_link("notes.txt", "notes.txt"))

    def test_image_is_never_folder(self):
        self.assertFalse(is_folder_link("photo.jpg", "PHOTO"))


class TestClassifyLink(unittest.TestCase):
    def test_kinds(self):
        self.assertEqual(classify_link(Link("A/", "A/")), LinkKind.FOLDER)
        self.assertEqual(classify_link(Link("a.png", "a.png")), LinkKind.IMAGE)
        self.assertEqual(classify_link(Link("../", "Parent Directory")), LinkKind.IGNORE)
        self.assertEqual(classify_link(Link("readme.txt", "readme.txt")), LinkKind.IGNORE)


class TestNames(unittest.TestCase):
    def test_folder_name_from_text(self):
        self.assertEqual(folder_display_name("CUBE/", "CUBE/"), "CUBE")

    def test_folder_name_from_href(self):
        self.assertEqual(folder_display_name("/__metro/gallery/CUBE/", ""), "CUBE")

    def test_image_name(self):
        self.assertEqual(image_display_name("/g/a/photo.jpg", ""), "photo.jpg")
        self.assertEqual(image_display_name("photo.jpg", "Photo"), "Photo")

    def test_reserved_folder(self):
        self.assertTrue(is_reserved_folder("_folders"))
        self.assertTrue(is_reserved_folder("thumbs", "https://h/g/_folders/"))
        self.assertTrue(is_reserved_folder("x", "https://h/g/_folders/sub/"))
        self.assertFalse(is_reserved_folder("CUBE", "https://h/g/CUBE/"))


if __name__ == "__main__":
    unittest.main()
