"""
xmltv_url.exceptions - Error types raised by the grabber pipeline

Every stage raises immediately; nothing is retried or recovered locally.
"""

from typing import Optional


class GrabberError(Exception):
    """Base class for all errors reported by tv_grab_xmltv_url"""


class FetchError(GrabberError):
    """Download failed: transport error or HTTP status other than 200"""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DecompressError(FetchError):
    """Body started with the gzip magic number but could not be decompressed"""


class ParseError(GrabberError):
    """Document is not well-formed XML or does not look like XMLTV"""

    def __init__(self, message: str, url: Optional[str] = None):
        if url:
            message = f"{url}: {message}"
        super().__init__(message)
        self.url = url


class SerializeError(GrabberError):
    """Merged document could not be encoded as XML"""


class ConfigError(GrabberError):
    """Configuration file is unreadable or holds invalid values"""
