"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from plainrest import RestServer, ServerConfig, create_app
from plainrest.http import Context, HTTPRequest


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "Mouse", "price": 30000}'
    return (
        b"POST /api/products HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        b"Content-Length: %d\r\n"
        b"Connection: close\r\n"
        b"\r\n"
    ) % len(body) + body


def make_request(
    method: str = "GET",
    path: str = "/",
    body: bytes = b"",
    query_string: str = "",
    headers: dict = None,
) -> HTTPRequest:
    """Build an HTTPRequest without going through the parser."""
    return HTTPRequest(
        method=method,
        path=path,
        query_string=query_string,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        body=body,
        client_address=("127.0.0.1", 50000),
    )


def make_context(method: str = "GET", path: str = "/", **kwargs) -> Context:
    return Context(make_request(method, path, **kwargs))


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        workers=2,
        timeout=5.0,
        log_level="WARNING",
        seed_data=False,
    )


@pytest.fixture
def app(config: ServerConfig) -> RestServer:
    """Fully wired application with empty stores (no sockets)."""
    return create_app(config)


class ServerThread:
    """Runs a RestServer in a background thread for integration tests."""

    def __init__(self, server: RestServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def live_server(app: RestServer) -> Generator[ServerThread, None, None]:
    """The default application listening on a free local port."""
    server_thread = ServerThread(app)
    server_thread.start()

    yield server_thread

    server_thread.stop()


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def tiny_server(free_port: int) -> Generator[ServerThread, None, None]:
    """A server with a single worker and a one-slot queue."""
    app = create_app(ServerConfig(
        host="127.0.0.1",
        port=free_port,
        workers=1,
        queue_size=1,
        timeout=2.0,
        log_level="WARNING",
        seed_data=False,
    ))
    server_thread = ServerThread(app)
    server_thread.start()

    yield server_thread

    server_thread.stop()
