"""Pytest configuration and fixtures."""

import http.server
import json
import socketserver
import threading
from urllib.parse import parse_qs, urlparse

import pytest

from alert_dashboard.models.layer_record import Coordinate, RasterHandle
from alert_dashboard.models.legend import GradientLegend
from tests.fakes import FakeMapHost, RecordingLabel, RecordingMarker, ScriptedBackend, make_record


@pytest.fixture
def record_factory():
    """Fixture returning make_record."""
    return make_record


@pytest.fixture
def gradient_legend():
    """Alert date style gradient legend."""
    return GradientLegend(
        palette=("ffffcc", "fd8d3c", "800026"),
        min=20000,
        max=24000,
        label_min="2000",
        label_max="2024",
    )


@pytest.fixture
def map_host():
    """Fixture for a fake map host."""
    return FakeMapHost()


@pytest.fixture
def label():
    """Fixture for a recording display label."""
    return RecordingLabel()


@pytest.fixture
def marker():
    """Fixture for a recording marker overlay."""
    return RecordingMarker()


@pytest.fixture
def backend():
    """Fixture for a scripted raster backend."""
    return ScriptedBackend()


@pytest.fixture
def raster():
    """Raster sampled by the controller in tests."""
    return RasterHandle(asset_id="projects/radar-wur/raddalert/v1", band="Date")


@pytest.fixture
def point():
    """A clicked point in central Africa."""
    return Coordinate(lon=10.0, lat=-2.0)


@pytest.fixture
def sample_server():
    """
    Fixture for a local raster sampling service.

    Tests queue responses as (status, payload) tuples; each request pops the
    next one, and repeats the last one once the queue is down to one entry.

    Usage:
        def test_sample(sample_server):
            sample_server.responses.append((200, {"value": 24001}))
            client = HttpRasterClient(sample_server.url)
            ...

    Attributes:
        port (int): The port the server is listening on
        url (str): Base URL of the service
        responses (list): Queued (status, payload) responses
        requests (list): Query parameters of every received request
    """

    class SampleServer:
        def __init__(self, port):
            self.port = port
            self.responses = []
            self.requests = []

        @property
        def url(self):
            return f"http://127.0.0.1:{self.port}"

    state = {}

    class SampleHTTPRequestHandler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            server_state = state["server"]
            parsed = urlparse(self.path)
            server_state.requests.append({key: values[0] for key, values in parse_qs(parsed.query).items()})

            if len(server_state.responses) > 1:
                status, payload = server_state.responses.pop(0)
            else:
                status, payload = server_state.responses[0]

            body = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass  # Suppress logging during tests

    # Start server on auto-assigned port
    server = socketserver.TCPServer(("127.0.0.1", 0), SampleHTTPRequestHandler)
    port = server.server_address[1]
    state["server"] = SampleServer(port)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield state["server"]

    # Cleanup: shutdown server
    server.shutdown()
    server.server_close()
    thread.join(timeout=1.0)
