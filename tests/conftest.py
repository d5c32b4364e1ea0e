# tests/conftest.py
import sys
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path

import pytest

# Add the source directory to the import path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "node-metadata"))


class IMDSStub:
    """Canned IMDS responses keyed by (method, path), plus a log of received requests."""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.url = None

    def route(self, method, path, status=200, body=""):
        self.routes[(method, path)] = (status, body)

    def paths(self):
        return [path for _, path, _ in self.requests]


class _IMDSHandler(BaseHTTPRequestHandler):
    def _respond(self):
        stub = self.server.stub
        stub.requests.append((self.command, self.path, self.headers))
        status, body = stub.routes.get((self.command, self.path), (404, ""))
        data = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _respond
    do_PUT = _respond

    def log_message(self, format, *args):
        return


@pytest.fixture
def imds_server():
    """Local IMDS stub served from a background thread."""
    server = HTTPServer(("127.0.0.1", 0), _IMDSHandler)
    server.stub = IMDSStub()
    server.stub.url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.stub
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture
def imds(imds_server):
    """IMDS stub answering token, instance-id and lifecycle requests successfully."""
    imds_server.route("PUT", "/latest/api/token", body="mock-token")
    imds_server.route(
        "GET", "/latest/meta-data/instance-id", body="i-1234567890abcdef0"
    )
    imds_server.route("GET", "/latest/meta-data/instance-life-cycle", body="spot")
    yield imds_server


@pytest.fixture
def no_env_overrides(monkeypatch):
    monkeypatch.delenv("DEBUG_NM_INSTANCE_ID", raising=False)
    monkeypatch.delenv("DEBUG_NM_LIFECYCLE", raising=False)
