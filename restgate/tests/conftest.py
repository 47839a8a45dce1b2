from __future__ import annotations

import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class _Handler(BaseHTTPRequestHandler):
    """Tiny fixture API.

    - /items/<id>: 200 JSON item
    - /echo: 200 JSON describing the request as received
    - /slow: sleeps before answering
    - /truncated: promises more body than it sends
    - anything else: 404 text
    """

    def _send(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        path, _, query = self.path.partition("?")

        if path.startswith("/items/"):
            item_id = int(path.rsplit("/", 1)[-1])
            payload = {"id": item_id, "name": f"item-{item_id}"}
            self._send(200, json.dumps(payload).encode("utf-8"), "application/json")
        elif path == "/echo":
            payload = {
                "method": self.command,
                "path": path,
                "query": query,
                "accept": self.headers.get("Accept"),
                "content_type": self.headers.get("Content-Type"),
                "body": body.decode("utf-8"),
            }
            self._send(200, json.dumps(payload).encode("utf-8"), "application/json; charset=utf-8")
        elif path == "/truncated":
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", "100")
            self.end_headers()
            self.wfile.write(b"short")
        elif path == "/slow":
            time.sleep(1.0)
            self._send(200, b"{}", "application/json")
        else:
            self._send(404, b"nope", "text/plain")

    do_GET = do_POST = do_PUT = do_DELETE = _handle

    def log_message(self, format, *args):  # noqa: A002
        pass


@pytest.fixture
def http_server():
    """Base URL of a local HTTP server running on a background thread."""

    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.daemon_threads = True
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


@pytest.fixture
def closed_port_url():
    """URL on a port nothing listens on."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}"
