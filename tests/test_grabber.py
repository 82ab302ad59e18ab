from datetime import datetime, timezone

import pytest

from xmltv_url.exceptions import FetchError, ParseError
from xmltv_url.grabber import Request, XmltvUrlGrabber, merge_all, merge_documents, run
from xmltv_url.xmltv import Channel, GuideDocument, Programme, parse_document

UTC = timezone.utc


def single_channel(channel_id, title):
    return (
        f'<tv><channel id="{channel_id}"><display-name>{channel_id}</display-name></channel>'
        f'<programme start="20251005200000 +0000" stop="20251005210000 +0000"'
        f' channel="{channel_id}"><title>{title}</title></programme></tv>'
    ).encode("utf-8")


class FakeDownloader:
    """Returns canned bodies by url and records what was fetched"""

    def __init__(self, responses):
        self.responses = responses
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def titles(document):
    return [p.title for p in document.programmes]


class TestMergeAll:
    def test_source_order(self, now):
        downloader = FakeDownloader(
            {"http://a": single_channel("a", "From A"), "http://b": single_channel("b", "From B")}
        )

        merged = merge_all(["http://a", "http://b"], 0, 0, now, downloader)

        assert [c.id for c in merged.channels] == ["a", "b"]
        assert titles(merged) == ["From A", "From B"]
        assert merged.date == now

    def test_reversed_source_order(self, now):
        downloader = FakeDownloader(
            {"http://a": single_channel("a", "From A"), "http://b": single_channel("b", "From B")}
        )

        merged = merge_all(["http://b", "http://a"], 0, 0, now, downloader)

        assert [c.id for c in merged.channels] == ["b", "a"]

    def test_duplicate_channels_are_kept(self, now):
        downloader = FakeDownloader({"http://a": single_channel("a", "From A")})

        merged = merge_all(["http://a", "http://a"], 0, 0, now, downloader)

        assert [c.id for c in merged.channels] == ["a", "a"]
        assert len(merged.programmes) == 2

    def test_fails_fast(self, now):
        error = FetchError("http://b", "HTTP request failed with status code 500", 500)
        downloader = FakeDownloader(
            {
                "http://a": single_channel("a", "From A"),
                "http://b": error,
                "http://c": single_channel("c", "From C"),
            }
        )

        with pytest.raises(FetchError) as excinfo:
            merge_all(["http://a", "http://b", "http://c"], 0, 0, now, downloader)

        assert excinfo.value is error
        assert downloader.fetched == ["http://a", "http://b"]

    def test_parse_error_aborts(self, now):
        downloader = FakeDownloader({"http://a": b"<html>", "http://b": single_channel("b", "B")})

        with pytest.raises(ParseError, match="http://a"):
            merge_all(["http://a", "http://b"], 0, 0, now, downloader)

        assert downloader.fetched == ["http://a"]

    @pytest.mark.parametrize(
        "length, offset, expected",
        [
            (
                0,
                0,
                [
                    "Crosses Midnight",
                    "Morning Show",
                    "Late Movie",
                    "Second Day Noon",
                    "Third Day Noon",
                    "Open Ended",
                    "Last Slot",
                ],
            ),
            (1, 0, ["Crosses Midnight", "Morning Show", "Late Movie"]),
            (1, 1, ["Late Movie", "Second Day Noon"]),
            (0, 2, ["Third Day Noon", "Open Ended", "Last Slot", "After Window"]),
        ],
    )
    def test_window(self, now, guide_xml, length, offset, expected):
        downloader = FakeDownloader({"http://guide": guide_xml})

        merged = merge_all(["http://guide"], length, offset, now, downloader)

        assert titles(merged) == expected
        assert [c.id for c in merged.channels] == ["533.example"]

    def test_logs_channel_names(self, now, caplog):
        downloader = FakeDownloader({"http://a": single_channel("a.example", "From A")})

        with caplog.at_level("DEBUG"):
            merge_all(["http://a"], 0, 0, now, downloader)

        assert "Channel a.example: a.example" in caplog.text


def test_merge_documents_drops_source_attributes(now):
    first = GuideDocument(
        date=datetime(2020, 1, 1, tzinfo=UTC),
        channels=(Channel("a"),),
        programmes=(Programme("a", datetime(2025, 10, 5, tzinfo=UTC)),),
        attributes=(("source-info-name", "first"),),
    )
    second = GuideDocument(channels=(Channel("b"),))

    merged = merge_documents([first, second], now)

    assert merged == GuideDocument(
        date=now,
        channels=(Channel("a"), Channel("b")),
        programmes=(Programme("a", datetime(2025, 10, 5, tzinfo=UTC)),),
    )


def test_merge_documents_empty(now):
    assert merge_documents([], now) == GuideDocument(date=now)


class TestRun:
    def test_over_http(self, xmltv_server, guide_xml, guide_gzip, now):
        plain = xmltv_server.route("/533.xml", guide_xml)
        compressed = xmltv_server.route("/other.xml.gz", guide_gzip)
        request = Request(urls=[plain, compressed], length_in_days=1, clock=lambda: now)

        content = run(request)

        assert content.startswith(
            '<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE tv SYSTEM "xmltv.dtd">\n'
            '<tv date="20251005120000 +0000">'
        )
        document = parse_document(content.encode("utf-8"))
        assert [c.id for c in document.channels] == ["533.example", "533.example"]
        assert titles(document) == ["Crosses Midnight", "Morning Show", "Late Movie"] * 2

    def test_error_produces_no_content(self, xmltv_server, guide_xml, now):
        first = xmltv_server.route("/first.xml", guide_xml)
        broken = xmltv_server.route("/broken.xml", status=500)
        third = xmltv_server.route("/third.xml", guide_xml)

        with pytest.raises(FetchError):
            run(Request(urls=[first, broken, third], clock=lambda: now))

        assert xmltv_server.requests == ["/first.xml", "/broken.xml"]

    def test_clock_is_read_once(self, now):
        calls = []

        def clock():
            calls.append(1)
            return now

        downloader = FakeDownloader(
            {"http://a": single_channel("a", "A"), "http://b": single_channel("b", "B")}
        )
        run(Request(urls=["http://a", "http://b"], clock=clock), downloader)

        assert len(calls) == 1

    def test_naive_clock(self):
        downloader = FakeDownloader({"http://a": single_channel("a", "A")})

        content = run(
            Request(urls=["http://a"], clock=lambda: datetime(2025, 10, 5, 12)), downloader
        )

        document = parse_document(content.encode("utf-8"))
        assert document.date == datetime(2025, 10, 5, 12, tzinfo=UTC)
        assert titles(document) == ["A"]

    def test_default_clock_is_timezone_aware(self):
        assert Request(urls=[]).clock().tzinfo is not None


class TestXmltvUrlGrabber:
    def test_description(self):
        assert XmltvUrlGrabber().get_description() == "Tvheadend XMLTV URL Generator"

    def test_capabilities(self):
        assert XmltvUrlGrabber().get_capabilities() == ["baseline"]

    def test_content_uses_given_downloader(self, now):
        downloader = FakeDownloader({"http://a": single_channel("a", "A")})
        grabber = XmltvUrlGrabber(downloader)

        content = grabber.get_content(Request(urls=["http://a"], clock=lambda: now))

        assert "<title>A</title>" in content
        assert downloader.fetched == ["http://a"]
