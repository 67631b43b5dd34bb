import sqlite3

import pytest

from toriidx.graphql.models import NotFoundError
from toriidx.graphql.query import Query

SCHEMA = """
CREATE TABLE components (
    id TEXT PRIMARY KEY, name TEXT NOT NULL, properties TEXT, address TEXT NOT NULL,
    class_hash TEXT NOT NULL, transaction_hash TEXT NOT NULL, created_at TEXT NOT NULL
);
CREATE TABLE systems (
    id TEXT PRIMARY KEY, name TEXT NOT NULL, address TEXT NOT NULL,
    class_hash TEXT NOT NULL, transaction_hash TEXT NOT NULL, created_at TEXT NOT NULL
);
CREATE TABLE system_calls (
    id INTEGER PRIMARY KEY, system_id TEXT NOT NULL, transaction_hash TEXT NOT NULL,
    data TEXT, created_at TEXT NOT NULL
);
CREATE TABLE entities (
    id TEXT PRIMARY KEY, name TEXT NOT NULL, partition_id TEXT NOT NULL, keys TEXT,
    transaction_hash TEXT NOT NULL, created_at TEXT NOT NULL
);
CREATE TABLE entity_states (
    entity_id TEXT NOT NULL, component_id TEXT NOT NULL, data TEXT,
    created_at TEXT NOT NULL, updated_at TEXT NOT NULL
);
CREATE TABLE events (
    id TEXT PRIMARY KEY, keys TEXT NOT NULL, data TEXT NOT NULL,
    system_call_id INTEGER NOT NULL, created_at TEXT NOT NULL
);
"""

FIXTURES = """
INSERT INTO components VALUES
    ('component_1', 'Position', NULL, '0x1', '0x11', '0x111', '2023-05-19T21:04:04Z');
INSERT INTO systems VALUES
    ('system_1', 'Move', '0x2', '0x22', '0x222', '2023-05-19T21:04:04Z');
INSERT INTO system_calls VALUES (1, 'system_1', '0x333', '0x1,0x2', '2023-05-19T21:05:00Z');
INSERT INTO entities VALUES
    ('entity_1', 'Player', '420', '0x1,0x2', '0x444', '2023-05-19T21:04:04Z'),
    ('entity_2', 'Player', '420', '0x3', '0x555', '2023-05-19T21:05:04Z'),
    ('entity_3', 'Monster', '69', '420,7', '0x666', '2023-05-19T21:06:04Z');
INSERT INTO entity_states VALUES
    ('entity_1', 'component_1', '0x5', '2023-05-19T21:04:04Z', '2023-05-19T21:04:04Z');
INSERT INTO events VALUES
    ('event_1', 'key_1,key_2,key_3', '0x1', 1, '2023-05-19T21:04:04Z'),
    ('event_2', 'key_1,key_2', '0x2', 1, '2023-05-19T21:05:04Z'),
    ('event_3', 'key_3', '0x3', 1, '2023-05-19T21:06:04Z');
"""


@pytest.fixture
def query():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA)
    conn.executescript(FIXTURES)
    yield Query(conn)
    conn.close()


def test_entity(query):
    entity = query.execute("entity", {"id": "entity_1"})
    assert entity["id"] == "entity_1"
    assert entity["partitionId"] == "420"
    assert entity["transactionHash"] == "0x444"


def test_entities_partition_id(query):
    entities = query.execute("entities", {"partitionId": "420"})
    assert len(entities["edges"]) == 2


def test_entities_partition_id_keys(query):
    entities = query.execute("entities", {"partitionId": "69", "keys": ["420"]})
    assert entities["edges"][0]["node"]["id"] == "entity_3"


def test_event(query):
    event = query.execute("event", {"id": "event_1"})
    assert event["id"] == "event_1"
    assert event["systemCallId"] == 1


def test_event_by_keys(query):
    events = query.execute("events", {"keys": ["key_1", "key_2", "key_3"]})
    assert events["edges"][0]["node"]["id"] == "event_1"

    events = query.execute("events", {"keys": ["key_1", "key_2"]})
    assert len(events["edges"]) == 2

    events = query.execute("events", {"keys": ["key_3"]})
    assert events["edges"][0]["node"]["id"] == "event_3"


def test_direct_methods_return_records(query):
    assert query.entity("entity_2").name == "Player"
    assert [c.id for c in query.components()] == ["component_1"]
    assert [s.id for s in query.systems()] == ["system_1"]
    assert query.system("system_1").name == "Move"
    assert query.component("component_1").properties is None
    assert query.event("event_3").keys == "key_3"


def test_entities_first_limits_page(query):
    page = query.entities("420", first=1)
    assert len(page.edges) == 1
    assert page.edges[0].node.id == "entity_2"


def test_components_serialized_with_camel_case_keys(query):
    (component,) = query.execute("components")
    assert component["classHash"] == "0x11"
    assert component["createdAt"].startswith("2023-05-19T21:04:04")


def test_unknown_field_rejected(query):
    with pytest.raises(ValueError):
        query.execute("players", {})


def test_missing_argument_rejected(query):
    with pytest.raises(ValueError):
        query.execute("entity", {})


def test_missing_record_raises_not_found(query):
    with pytest.raises(NotFoundError):
        query.execute("entity", {"id": "nope"})