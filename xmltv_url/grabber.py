"""
xmltv_url.grabber - Download, filter and merge XMLTV sources

Each source is downloaded, parsed and filtered in turn. The first error
aborts the whole run so that no partial guide is ever produced.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from .downloader import XmltvDownloader
from .timerange import compute_range, filter_programmes
from .xmltv import GuideDocument, XmltvGenerator, parse_document

DESCRIPTION = "Tvheadend XMLTV URL Generator"
CAPABILITIES = ["baseline"]


def local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class Request:
    urls: Sequence[str]
    length_in_days: int = 0
    offset_in_days: int = 0
    quiet: bool = False
    clock: Callable[[], datetime] = field(default=local_now, compare=False)


def merge_documents(documents: Iterable[GuideDocument], now: datetime) -> GuideDocument:
    """Concatenate channels and programmes in source order, stamped with now"""
    channels = []
    programmes = []
    for document in documents:
        channels.extend(document.channels)
        programmes.extend(document.programmes)

    return GuideDocument(date=now, channels=tuple(channels), programmes=tuple(programmes))


def merge_all(
    urls: Sequence[str],
    length_in_days: int,
    offset_in_days: int,
    now: datetime,
    downloader: XmltvDownloader,
) -> GuideDocument:
    """
    Download every url and merge the filtered documents

    Args:
        urls: Sources, processed in the given order
        length_in_days: Window length, 0 for the default
        offset_in_days: Days to skip from today
        now: Reference instant shared by every source
        downloader: Used for all requests

    Raises:
        GrabberError: first failure of any source
    """
    time_range = compute_range(now, offset_in_days, length_in_days)
    logging.info(
        "TV Guide window: %s to %s (%g days)",
        time_range.earliest.isoformat(),
        time_range.latest.isoformat(),
        time_range.days,
    )

    documents: List[GuideDocument] = []
    for index, url in enumerate(urls, start=1):
        body = downloader.fetch(url)
        document = parse_document(body, source=url)
        kept = filter_programmes(document.programmes, time_range)

        logging.info(
            "  [Source %d] %d channels, %d of %d programmes in window",
            index,
            len(document.channels),
            len(kept),
            len(document.programmes),
        )
        for channel in document.channels:
            logging.debug(
                "    Channel %s: %s", channel.id, ", ".join(channel.display_names) or "(no name)"
            )
        documents.append(
            GuideDocument(date=document.date, channels=document.channels, programmes=kept)
        )

    return merge_documents(documents, now)


def run(request: Request, downloader: Optional[XmltvDownloader] = None) -> str:
    """
    Produce the merged XMLTV document for request

    A downloader created here is closed before returning; a downloader passed
    in is left open for the caller.
    """
    now = request.clock()
    owns_downloader = downloader is None
    if owns_downloader:
        downloader = XmltvDownloader()

    try:
        merged = merge_all(
            request.urls, request.length_in_days, request.offset_in_days, now, downloader
        )
    finally:
        if owns_downloader:
            downloader.close()

    generator = XmltvGenerator()
    content = generator.generate(merged)
    logging.info(
        "%d Stations and %d Programmes merged from %d source(s)",
        generator.station_count,
        generator.programme_count,
        len(request.urls),
    )
    return content


class XmltvUrlGrabber:
    """Grabber behaviours used by the command line"""

    def __init__(self, downloader: Optional[XmltvDownloader] = None):
        self.downloader = downloader

    def get_description(self) -> str:
        return DESCRIPTION

    def get_capabilities(self) -> List[str]:
        return list(CAPABILITIES)

    def get_content(self, request: Request) -> str:
        return run(request, self.downloader)
