"""
HTTP session creation for the gallery crawler.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from gallery_cache.config import MAX_CRAWL_WORKERS, MAX_RETRIES, USER_AGENT


def build_session(verify_ssl: bool = True) -> requests.Session:
    """Return a ``requests.Session`` with retry logic and keep-alive
    pre-configured."""
    session = requests.Session()
    retry = Retry(
        total=MAX_RETRIES,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
    )
    adapter = HTTPAdapter(
        max_retries=retry,
        pool_connections=MAX_CRAWL_WORKERS,
        pool_maxsize=MAX_CRAWL_WORKERS,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
        "Connection": "keep-alive",
    })
    return session
