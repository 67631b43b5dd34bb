import socket
import sqlite3
import threading

import httpx
import pytest

from toriidx.graphql.server import build_server, start_graphql

SCHEMA = """
CREATE TABLE entities (
    id TEXT PRIMARY KEY, name TEXT NOT NULL, partition_id TEXT NOT NULL, keys TEXT,
    transaction_hash TEXT NOT NULL, created_at TEXT NOT NULL
);
INSERT INTO entities VALUES
    ('entity_1', 'Player', '420', '0x1', '0x444', '2023-05-19T21:04:04Z');
"""


@pytest.fixture
def base_url():
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.executescript(SCHEMA)
    server = build_server(conn, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
    conn.close()


def test_explorer_page_names_endpoint(base_url):
    response = httpx.get(f"{base_url}/query")
    assert response.status_code == 200
    assert "/query" in response.text


def test_playground_page_served(base_url):
    response = httpx.get(f"{base_url}/playground")
    assert response.status_code == 200
    assert "/playground" in response.text


def test_post_returns_field_data(base_url):
    response = httpx.post(
        f"{base_url}/query", json={"field": "entity", "arguments": {"id": "entity_1"}}
    )
    assert response.status_code == 200
    assert response.json()["data"]["entity"]["id"] == "entity_1"


def test_missing_record_reported_as_error(base_url):
    response = httpx.post(
        f"{base_url}/query", json={"field": "entity", "arguments": {"id": "missing"}}
    )
    body = response.json()
    assert body["data"] is None
    assert len(body["errors"]) == 1


def test_invalid_json_rejected(base_url):
    response = httpx.post(f"{base_url}/query", content=b"{not json")
    assert response.status_code == 400


def test_unknown_path_not_found(base_url):
    response = httpx.get(f"{base_url}/elsewhere")
    assert response.status_code == 404


def test_start_graphql_fails_when_port_taken():
    conn = sqlite3.connect(":memory:")
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
        holder.bind(("127.0.0.1", 0))
        holder.listen(1)
        port = holder.getsockname()[1]
        with pytest.raises(OSError):
            start_graphql(conn, "127.0.0.1", port)
    conn.close()