"""
xmltv_url - XMLTV URL grabber for Tvheadend

Downloads XMLTV documents from one or more URLs, restricts the programmes to
the requested days and merges everything into a single guide.
"""

__version__ = "1.0.0"
__license__ = "GPL-3.0"

from .downloader import XmltvDownloader
from .exceptions import (
    ConfigError,
    DecompressError,
    FetchError,
    GrabberError,
    ParseError,
    SerializeError,
)
from .grabber import Request, XmltvUrlGrabber, merge_all, merge_documents, run
from .timerange import TimeRange, compute_range, filter_programmes, is_in_range
from .xmltv import (
    Channel,
    GuideDocument,
    Programme,
    XmltvGenerator,
    XmltvParser,
    parse_document,
    serialize_document,
)

__all__ = [
    "XmltvDownloader",
    "XmltvUrlGrabber",
    "Request",
    "run",
    "merge_all",
    "merge_documents",
    "TimeRange",
    "compute_range",
    "is_in_range",
    "filter_programmes",
    "Channel",
    "Programme",
    "GuideDocument",
    "XmltvParser",
    "XmltvGenerator",
    "parse_document",
    "serialize_document",
    "GrabberError",
    "FetchError",
    "DecompressError",
    "ParseError",
    "SerializeError",
    "ConfigError",
]
