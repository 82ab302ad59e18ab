import gzip
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"

# 2025-10-05 12:00:00 UTC
TEST_NOW = datetime(2025, 10, 5, 12, 0, 0, tzinfo=timezone.utc)


class XmltvServer:
    """Serves canned responses by path, like a tiny httptest server"""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), self._make_handler())
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    def _make_handler(self):
        server = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):
                server.requests.append(self.path)
                status, body = server.routes.get(self.path, (404, b"not found"))
                self.send_response(status)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format, *args):
                pass

        return Handler

    def route(self, path, body=b"", status=200):
        self.routes[path] = (status, body)
        return self.url(path)

    def url(self, path):
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}{path}"

    def start(self):
        self.thread.start()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()


@pytest.fixture
def xmltv_server():
    server = XmltvServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def guide_xml():
    return (DATA_DIR / "guide.xml").read_bytes()


@pytest.fixture
def guide_gzip(guide_xml):
    return gzip.compress(guide_xml)


@pytest.fixture
def now():
    return TEST_NOW
