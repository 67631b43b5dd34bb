import sqlite3

import pytest

from toriidx.storage.sql import SqlStorage


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def storage(connection):
    store = SqlStorage(connection)
    store.create_component(0x10, [1, 2, 3])
    return store


def test_head_starts_at_zero(connection):
    assert SqlStorage(connection).head() == 0


def test_set_head_round_trip(connection):
    store = SqlStorage(connection)
    store.set_head(17)
    store.set_head(18)
    assert store.head() == 18
    assert SqlStorage(connection).head() == 18


def test_negative_head_is_rejected(connection):
    with pytest.raises(ValueError):
        SqlStorage(connection).set_head(-5)


def test_entity_round_trip(storage):
    storage.set_entity(0x10, 7, 3, [100, 2**200])
    assert storage.entity(0x10, 7, 3) == [100, 2**200]


def test_set_entity_replaces(storage):
    storage.set_entity(0x10, 7, 3, [1, 2, 3])
    storage.set_entity(0x10, 7, 3, [4])
    assert storage.entity(0x10, 7, 3) == [4]


def test_too_many_values_rejected(storage):
    with pytest.raises(ValueError):
        storage.set_entity(0x10, 7, 3, [1, 2, 3, 4])


def test_unknown_component_rejected(storage):
    with pytest.raises(LookupError):
        storage.set_entity(0x99, 7, 3, [1])


def test_missing_entity_raises(storage):
    with pytest.raises(LookupError):
        storage.entity(0x10, 7, 3)


def test_delete_entity(storage):
    storage.set_entity(0x10, 7, 3, [9])
    storage.set_entity(0x10, 7, 4, [8])
    storage.delete_entity(0x10, 7, 3)
    with pytest.raises(LookupError):
        storage.entity(0x10, 7, 3)
    assert storage.entities(0x10, 7) == [[8]]


def test_entities_per_partition(storage):
    storage.set_entity(0x10, 1, 1, [11])
    storage.set_entity(0x10, 1, 2, [12, 13])
    storage.set_entity(0x10, 2, 1, [21])
    assert storage.entities(0x10, 1) == [[11], [12, 13]]
    assert storage.entities(0x10, 2) == [[21]]
    assert storage.entities(0x10, 3) == []


def test_create_component_is_idempotent(storage):
    storage.set_entity(0x10, 1, 1, [5])
    storage.create_component(0x10, [1, 2, 3])
    assert storage.entity(0x10, 1, 1) == [5]