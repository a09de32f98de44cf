"""
pytest configuration and fixtures.
"""

import json
import threading
from typing import Any, Callable, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from userapi import HTTPServer, ServerConfig, create_app
from userapi.server import serve_in_background
from userapi.http import HTTPRequest, HTTPResponse


SEED_USERS = [
    {"id": 1, "name": "John Doe", "email": "john@example.com", "age": 30,
     "createdAt": "2024-01-01T00:00:00.000Z"},
    {"id": 2, "name": "Jane Smith", "email": "jane@example.com", "age": 25,
     "createdAt": "2024-01-01T00:00:00.000Z"},
    {"id": 5, "name": "Bob Johnson", "email": "bob@example.com",
     "createdAt": "2024-01-02T00:00:00.000Z"},
]


@pytest.fixture
def seed_file(tmp_path: Path) -> Path:
    """A seed file with three users (ids 1, 2, 5)."""
    path = tmp_path / "users.json"
    path.write_text(json.dumps(SEED_USERS), encoding="utf-8")
    return path


@pytest.fixture
def app(seed_file: Path) -> HTTPServer:
    """Application backed by the temporary seed file."""
    return create_app(ServerConfig(seed_file=str(seed_file), min_workers=2, max_workers=4))


@pytest.fixture
def call(app: HTTPServer) -> Callable[..., HTTPResponse]:
    """
    Send one request through the application's handler chain.

        response = call("POST", "/api/users", json={"name": ..., "email": ...})
    """
    def _call(
        method: str,
        target: str,
        json: Any = None,
        body: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> HTTPResponse:
        request_headers = {k.lower(): v for k, v in (headers or {}).items()}
        if json is not None:
            body = _json_bytes(json)
            request_headers.setdefault("content-type", "application/json")
        path = target.split("?", 1)[0]
        request = HTTPRequest(
            method=method,
            path=path,
            target=target,
            headers=request_headers,
            body=body or b"",
            client_address=("127.0.0.1", 50000),
        )
        return app.handle(request)

    return _call


def _json_bytes(data: Any) -> bytes:
    return json.dumps(data).encode("utf-8")


class LiveServer:
    """An HTTPServer running on a background thread, bound to an ephemeral port."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "LiveServer":
        self._thread = serve_in_background(self.server)
        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")
        return self

    def stop(self):
        self.server.stop()
        if self._thread is not None:
            self._thread.join(timeout=10.0)


@pytest.fixture
def serve() -> Generator[Callable[[HTTPServer], LiveServer], None, None]:
    """Start any HTTPServer in the background; every started server is stopped at teardown."""
    started = []

    def _serve(server: HTTPServer) -> LiveServer:
        live = LiveServer(server).start()
        started.append(live)
        return live

    yield _serve

    for live in started:
        live.stop()


@pytest.fixture
def live_server(seed_file: Path, serve) -> LiveServer:
    """The full application listening on a free local port."""
    return serve(create_app(ServerConfig(
        port=0,
        min_workers=2,
        max_workers=4,
        seed_file=str(seed_file),
        keep_alive_timeout=1.0,
        log_level="WARNING",
    )))
