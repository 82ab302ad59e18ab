"""
xmltv_url.xmltv - XMLTV document model, parser and generator

Channels and programmes are carried through the pipeline without being
interpreted: only the attributes needed for filtering (channel, start, stop)
are decoded, everything else is kept as immutable XmlNode trees and written
back unchanged.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional, Tuple

from .exceptions import ParseError, SerializeError

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
XMLTV_DOCTYPE = '<!DOCTYPE tv SYSTEM "xmltv.dtd">'
INDENT = "  "

XMLTV_TIME_FORMAT = "%Y%m%d%H%M%S %z"

# YYYYMMDD[hh[mm[ss]]] followed by an optional zone
_TIMESTAMP_PATTERN = re.compile(
    r"^(?P<digits>\d{8}(?:\d{2}){0,3})\s*(?P<zone>[+-]\d{4}|Z|UTC|GMT)?$"
)

Attributes = Tuple[Tuple[str, str], ...]


class XmlNode(NamedTuple):
    """Immutable copy of an XML element (tails and comments are dropped)"""

    tag: str
    attrib: Attributes
    text: Optional[str]
    children: Tuple["XmlNode", ...]

    @classmethod
    def from_element(cls, element: ET.Element) -> "XmlNode":
        text = element.text
        if text is not None and not text.strip():
            text = None
        return cls(
            element.tag,
            tuple(element.attrib.items()),
            text,
            tuple(cls.from_element(child) for child in element),
        )

    def to_element(self, parent: Optional[ET.Element] = None) -> ET.Element:
        if parent is None:
            element = ET.Element(self.tag, dict(self.attrib))
        else:
            element = ET.SubElement(parent, self.tag, dict(self.attrib))
        element.text = self.text
        for child in self.children:
            child.to_element(element)
        return element


def parse_timestamp(value: str) -> datetime:
    """
    Parse an XMLTV timestamp such as "20251005120000 +0200"

    Truncated forms (date only, no seconds) are accepted and a missing zone
    is read as UTC.

    Raises:
        ValueError: value is not an XMLTV timestamp
    """
    match = _TIMESTAMP_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"invalid XMLTV timestamp: {value!r}")

    digits = match.group("digits").ljust(14, "0")
    zone = match.group("zone")

    tz = timezone.utc
    if zone and zone[0] in "+-":
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[3:5])))

    return datetime.strptime(digits, "%Y%m%d%H%M%S").replace(tzinfo=tz)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a full XMLTV timestamp with zone offset"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.strftime(XMLTV_TIME_FORMAT)


@dataclass(frozen=True)
class Channel:
    id: str
    attributes: Attributes = ()
    children: Tuple[XmlNode, ...] = ()

    @property
    def display_names(self) -> List[str]:
        return [
            child.text for child in self.children if child.tag == "display-name" and child.text
        ]


@dataclass(frozen=True)
class Programme:
    channel: str
    start: datetime
    stop: Optional[datetime] = None
    attributes: Attributes = ()
    children: Tuple[XmlNode, ...] = ()

    @property
    def title(self) -> Optional[str]:
        for child in self.children:
            if child.tag == "title":
                return child.text
        return None


@dataclass(frozen=True)
class GuideDocument:
    date: Optional[datetime] = None
    channels: Tuple[Channel, ...] = ()
    programmes: Tuple[Programme, ...] = ()
    attributes: Attributes = ()


class XmltvParser:
    """Decodes raw XMLTV bytes into a GuideDocument"""

    def __init__(self, source: Optional[str] = None):
        self.source = source

    def parse(self, data: bytes) -> GuideDocument:
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ParseError(f"malformed XML: {e}", self.source) from e

        if root.tag != "tv":
            raise ParseError(f"root element is <{root.tag}>, expected <tv>", self.source)

        date = None
        attributes = []
        for name, value in root.attrib.items():
            if name == "date":
                date = self._timestamp(value, "tv date")
            else:
                attributes.append((name, value))

        channels = []
        programmes = []
        for element in root:
            if element.tag == "channel":
                channels.append(self._parse_channel(element))
            elif element.tag == "programme":
                programmes.append(self._parse_programme(element))
            else:
                logging.debug("  Ignoring unexpected <%s> element", element.tag)

        logging.debug(
            "  Parsed %d channels and %d programmes%s",
            len(channels),
            len(programmes),
            f" from {self.source}" if self.source else "",
        )

        return GuideDocument(
            date=date,
            channels=tuple(channels),
            programmes=tuple(programmes),
            attributes=tuple(attributes),
        )

    def _parse_channel(self, element: ET.Element) -> Channel:
        channel_id = element.get("id")
        if not channel_id:
            raise ParseError("<channel> without id attribute", self.source)

        return Channel(
            id=channel_id,
            attributes=tuple((k, v) for k, v in element.attrib.items() if k != "id"),
            children=tuple(XmlNode.from_element(child) for child in element),
        )

    def _parse_programme(self, element: ET.Element) -> Programme:
        channel = element.get("channel")
        if not channel:
            raise ParseError("<programme> without channel attribute", self.source)

        start_value = element.get("start")
        if not start_value:
            raise ParseError(f"<programme> on {channel} without start attribute", self.source)

        stop_value = element.get("stop")

        return Programme(
            channel=channel,
            start=self._timestamp(start_value, "programme start"),
            stop=self._timestamp(stop_value, "programme stop") if stop_value else None,
            attributes=tuple(
                (k, v) for k, v in element.attrib.items() if k not in ("channel", "start", "stop")
            ),
            children=tuple(XmlNode.from_element(child) for child in element),
        )

    def _timestamp(self, value: str, what: str) -> datetime:
        try:
            return parse_timestamp(value)
        except ValueError as e:
            raise ParseError(f"{what}: {e}", self.source) from e


class XmltvGenerator:
    """Encodes a GuideDocument as indented XMLTV text"""

    def __init__(self):
        self.station_count = 0
        self.programme_count = 0

    def generate(self, document: GuideDocument) -> str:
        root = ET.Element("tv")
        if document.date is not None:
            root.set("date", format_timestamp(document.date))
        for name, value in document.attributes:
            root.set(name, value)

        self.station_count = 0
        for channel in document.channels:
            element = ET.SubElement(root, "channel", {"id": channel.id})
            element.attrib.update(channel.attributes)
            for child in channel.children:
                child.to_element(element)
            self.station_count += 1

        self.programme_count = 0
        for programme in document.programmes:
            element = ET.SubElement(root, "programme")
            element.set("start", format_timestamp(programme.start))
            if programme.stop is not None:
                element.set("stop", format_timestamp(programme.stop))
            element.set("channel", programme.channel)
            element.attrib.update(programme.attributes)
            for child in programme.children:
                child.to_element(element)
            self.programme_count += 1

        ET.indent(root, space=INDENT)

        try:
            body = ET.tostring(root, encoding="unicode")
        except (TypeError, ValueError) as e:
            raise SerializeError(f"cannot encode XMLTV document: {e}") from e

        return f"{XML_DECLARATION}\n{XMLTV_DOCTYPE}\n{body}"


def parse_document(data: bytes, source: Optional[str] = None) -> GuideDocument:
    return XmltvParser(source).parse(data)


def serialize_document(document: GuideDocument) -> str:
    return XmltvGenerator().generate(document)
