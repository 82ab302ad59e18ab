"""
xmltv_url.downloader - XMLTV download manager

Plain GET requests over a shared session: no retries, no caching, no custom
headers. Bodies starting with the gzip magic number are decompressed in
memory, whatever the Content-Encoding header says.
"""

import gzip
import logging
import zlib
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import DecompressError, FetchError

GZIP_MAGIC = b"\x1f\x8b"


class XmltvDownloader:
    """Downloads XMLTV documents, one request per call"""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session: Optional[requests.Session] = session
        self.total_requests = 0
        self.bytes_downloaded = 0

        if self.session is None:
            self.init_session()

    def init_session(self):
        """Initialize session without automatic retries"""
        if self.session:
            self.session.close()

        self.session = requests.Session()

        retry_strategy = Retry(total=0, backoff_factor=0, status_forcelist=[])  # Don't auto-retry
        adapter = HTTPAdapter(max_retries=retry_strategy)

        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        logging.debug("HTTP session initialized")

    def fetch(self, url: str) -> bytes:
        """
        Download url and return its body, decompressed if gzip

        Raises:
            FetchError: network failure or status other than 200
            DecompressError: gzip body could not be decompressed
        """
        self.total_requests += 1
        logging.info("Downloading %s", url)

        try:
            with self.session.get(url) as response:
                if response.status_code != 200:
                    raise FetchError(
                        url,
                        f"HTTP request failed with status code {response.status_code}",
                        status_code=response.status_code,
                    )
                body = response.content
        except requests.exceptions.RequestException as e:
            raise FetchError(url, f"HTTP request failed: {e}") from e

        self.bytes_downloaded += len(body)
        logging.debug("  Success: %d bytes received", len(body))

        if body[:2] == GZIP_MAGIC:
            return self._decompress(url, body)

        return body

    def _decompress(self, url: str, body: bytes) -> bytes:
        try:
            content = gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as e:
            raise DecompressError(url, f"cannot decompress gzip body: {e}") from e

        logging.debug("  Decompressed gzip body: %d -> %d bytes", len(body), len(content))
        return content

    def close(self):
        if self.session:
            self.session.close()
            self.session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
