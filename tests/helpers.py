"""
Offline HTTP doubles shared by the test modules.
"""

import json
import urllib.parse

import requests

ROOT = "https://allowed.example/__metro/gallery/"


def listing(*hrefs: str, parent: bool = True) -> str:
    """Apache-style directory listing linking to *hrefs* (text = href)."""
    rows = []
    if parent:
        rows.append('<tr><td><a href="/__metro/">Parent Directory</a></td></tr>')
    for href in hrefs:
        rows.append(f'<tr><td><a href="{href}">{href}</a></td><td>-</td></tr>')
    return (
        "<html><head><title>Index of /</title></head><body>"
        "<h1>Index of /</h1><table>"
        + "".join(rows)
        + "</table></body></html>"
    )


class FakeResponse:
    def __init__(self, url: str, text: str = "", status_code: int = 200) -> None:
        self.url = url
        self.text = text
        self.status_code = status_code

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} for {self.url}", response=self)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    Maps URLs to bodies.  A value may be a string (200), an ``int`` status
    code, or an exception instance to raise.  Unknown URLs return 404.
    """

    def __init__(self, pages: dict) -> None:
        self.pages = dict(pages)
        self.calls: list[str] = []
        self.closed = False

    def get(self, url: str, timeout=None, **kwargs) -> FakeResponse:
        self.calls.append(url)
        value = self.pages.get(url)
        if value is None:
            return FakeResponse(url, "", 404)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, int):
            return FakeResponse(url, "", value)
        return FakeResponse(url, value)

    def close(self) -> None:
        self.closed = True


class ListingSession(FakeSession):
    """JSON listing endpoint double keyed by the ``folder`` query parameter."""

    def get(self, url: str, timeout=None, **kwargs) -> FakeResponse:
        self.calls.append(url)
        query = urllib.parse.parse_qs(urllib.parse.urlparse(url).query, keep_blank_values=True)
        folder = query.get("folder", [""])[0]
        value = self.pages.get(folder)
        if value is None:
            return FakeResponse(url, json.dumps({"error": "Folder not found"}), 404)
        if isinstance(value, BaseException):
            raise value
        return FakeResponse(url, json.dumps(value))


class DictBackend:
    """In-memory stand-in for a redis client."""

    def __init__(self) -> None:
        self.data: dict = {}
        self.expiry: dict = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    def delete(self, key):
        return int(self.data.pop(key, None) is not None)
