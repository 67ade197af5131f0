"""Live HTTP stub standing in for the document store server."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from couchlink import ConnectionConfig, CouchClient, Credentials


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: dict[str, str]
    body: bytes


@dataclass
class Reply:
    status: int = 200
    body: bytes = b'{"ok":true}'


class StubServer(ThreadingHTTPServer):
    """Server that records every request and answers with a configurable reply."""

    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _RecordingHandler)
        self.reply = Reply()
        self.recorded: list[RecordedRequest] = []
        self._lock = threading.Lock()

    @property
    def config(self) -> ConnectionConfig:
        host, port = self.server_address[:2]
        return ConnectionConfig(host=str(host), port=int(port), timeout=2.0)

    def respond_with(self, status: int, body: bytes | str) -> None:
        self.reply = Reply(status=status, body=body.encode("utf-8") if isinstance(body, str) else body)

    def record(self, request: RecordedRequest) -> None:
        with self._lock:
            self.recorded.append(request)


class _RecordingHandler(BaseHTTPRequestHandler):
    server: StubServer

    def log_message(self, _format: str, *args: object) -> None:  # pragma: no cover - quiet server
        return

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.server.record(
            RecordedRequest(
                method=self.command,
                path=self.path,
                headers={key: value for key, value in self.headers.items()},
                body=body,
            )
        )
        reply = self.server.reply
        self.send_response(reply.status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(reply.body)))
        self.end_headers()
        self.wfile.write(reply.body)

    def do_GET(self) -> None:  # noqa: N802 - required by BaseHTTPRequestHandler
        self._handle()

    def do_POST(self) -> None:  # noqa: N802
        self._handle()

    def do_PUT(self) -> None:  # noqa: N802
        self._handle()

    def do_DELETE(self) -> None:  # noqa: N802
        self._handle()


@pytest.fixture(name="stub_server")
def _stub_server() -> Iterator[StubServer]:
    """Yield a live stub server on an ephemeral port."""

    server = StubServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join()


@pytest.fixture
def live_client(stub_server: StubServer) -> Iterator[CouchClient]:
    with CouchClient(
        "posts",
        stub_server.config,
        Credentials(username="foo", password="bar"),
        trace=False,
    ) as client:
        yield client
