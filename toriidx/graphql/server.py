"""HTTP server exposing the query API and a small explorer page."""

from __future__ import annotations

import html
import json
import logging
import sqlite3
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from toriidx.graphql.query import Query

_log = logging.getLogger(__name__)

_ENDPOINTS = ("/query", "/playground")

_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Torii query explorer</title></head>
<body>
<h1>Torii query explorer</h1>
<p>Endpoint: <code>{endpoint}</code></p>
<label>Field <input id="field" value="entities"></label>
<p><label>Arguments<br>
<textarea id="arguments" rows="6" cols="60">{{"partitionId": "0"}}</textarea></label></p>
<button id="run">Run</button>
<pre id="result"></pre>
<script>
document.getElementById("run").onclick = async () => {{
  const body = {{
    field: document.getElementById("field").value,
    arguments: JSON.parse(document.getElementById("arguments").value || "{{}}")
  }};
  const response = await fetch("{endpoint}", {{
    method: "POST",
    headers: {{"Content-Type": "application/json"}},
    body: JSON.stringify(body)
  }});
  document.getElementById("result").textContent =
    JSON.stringify(await response.json(), null, 2);
}};
</script>
</body>
</html>
"""


class _GraphQLServer(HTTPServer):
    def __init__(self, address: tuple[str, int], query: Query) -> None:
        super().__init__(address, _Handler)
        self.query = query


class _Handler(BaseHTTPRequestHandler):
    server: _GraphQLServer

    def _send(self, status: HTTPStatus, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, status: HTTPStatus, payload: Any) -> None:
        self._send(status, json.dumps(payload).encode("utf-8"), "application/json")

    def do_GET(self) -> None:
        path = self.path.split("?", 1)[0]
        if path not in _ENDPOINTS:
            self._send(HTTPStatus.NOT_FOUND, b"not found", "text/plain")
            return
        page = _PAGE.format(endpoint=html.escape(path))
        self._send(HTTPStatus.OK, page.encode("utf-8"), "text/html; charset=utf-8")

    def do_POST(self) -> None:
        path = self.path.split("?", 1)[0]
        if path not in _ENDPOINTS:
            self._send(HTTPStatus.NOT_FOUND, b"not found", "text/plain")
            return
        length = int(self.headers.get("Content-Length") or 0)
        try:
            request = json.loads(self.rfile.read(length) or b"null")
        except ValueError:
            self._send_json(HTTPStatus.BAD_REQUEST, {"errors": [{"message": "invalid JSON"}]})
            return
        if not isinstance(request, dict) or not isinstance(request.get("field"), str):
            self._send_json(
                HTTPStatus.BAD_REQUEST,
                {"errors": [{"message": "request must name a field"}]},
            )
            return
        field = request["field"]
        arguments = request.get("arguments") or {}
        if not isinstance(arguments, dict):
            self._send_json(
                HTTPStatus.BAD_REQUEST,
                {"errors": [{"message": "arguments must be an object"}]},
            )
            return
        try:
            value = self.server.query.execute(field, arguments)
        except (LookupError, ValueError, TypeError, sqlite3.Error) as exc:
            self._send_json(HTTPStatus.OK, {"data": None, "errors": [{"message": str(exc)}]})
            return
        self._send_json(HTTPStatus.OK, {"data": {field: value}})

    def log_message(self, format: str, *args: Any) -> None:
        _log.debug("%s - %s", self.address_string(), format % args)


def build_server(
    connection: sqlite3.Connection, host: str = "127.0.0.1", port: int = 8080
) -> HTTPServer:
    """Bind the API server to an address without starting it."""
    return _GraphQLServer((host, port), Query(connection))


def start_graphql(
    connection: sqlite3.Connection, host: str = "127.0.0.1", port: int = 8080
) -> None:
    """Serve the API until the server is shut down."""
    server = build_server(connection, host, port)
    try:
        _log.info("serving queries on http://%s:%d/query", host, server.server_address[1])
        server.serve_forever()
    finally:
        server.server_close()