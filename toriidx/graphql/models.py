"""Records served by the GraphQL API and the queries that load them."""

from __future__ import annotations

import base64
import json
import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

DEFAULT_LIMIT = 10

T = TypeVar("T")


class NotFoundError(LookupError):
    """Raised when a record looked up by identifier does not exist."""


@dataclass(frozen=True)
class Edge(Generic[T]):
    """One node of a paginated result together with its opaque cursor."""

    cursor: str
    node: T


@dataclass
class Connection(Generic[T]):
    """A page of results in the relay connection shape."""

    has_previous_page: bool
    has_next_page: bool
    edges: list[Edge[T]] = field(default_factory=list)

    @property
    def nodes(self) -> list[T]:
        return [edge.node for edge in self.edges]


def encode_cursor(id: str) -> str:
    """Encode a record identifier as an opaque pagination cursor."""
    raw = json.dumps(id, ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> str:
    """Return the record identifier held by an opaque cursor."""
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        value = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except ValueError as exc:
        raise ValueError(f"invalid cursor: {cursor!r}") from exc
    if not isinstance(value, str):
        raise ValueError(f"invalid cursor: {cursor!r}")
    return value


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _fetch_one(
    conn: sqlite3.Connection,
    sql: str,
    params: Sequence[Any],
    build: Callable[[Sequence[Any]], T],
    description: str,
) -> T:
    row = conn.execute(sql, tuple(params)).fetchone()
    if row is None:
        raise NotFoundError(f"{description} not found")
    return build(row)


def _fetch_all(
    conn: sqlite3.Connection,
    sql: str,
    params: Sequence[Any],
    build: Callable[[Sequence[Any]], T],
) -> list[T]:
    return [build(row) for row in conn.execute(sql, tuple(params)).fetchall()]


def _paginate(
    conn: sqlite3.Connection,
    *,
    table: str,
    columns: str,
    conditions: Sequence[str],
    params: Sequence[Any],
    build: Callable[[Sequence[Any]], Any],
    lookup: Callable[[sqlite3.Connection, str], Any],
    after: Optional[str],
    before: Optional[str],
    first: Optional[int],
    last: Optional[int],
) -> Connection[Any]:
    """Load one page of a table ordered by creation time."""
    if first is not None and last is not None:
        raise ValueError('The "first" and "last" parameters cannot exist at the same time')
    if first is not None and first < 0:
        raise ValueError('The "first" parameter must be a non-negative number')
    if last is not None and last < 0:
        raise ValueError('The "last" parameter must be a non-negative number')

    after_id = decode_cursor(after) if after is not None else None
    before_id = decode_cursor(before) if before is not None else None

    where = list(conditions)
    values = list(params)
    if after_id is not None:
        anchor = lookup(conn, after_id)
        where.append("datetime(created_at) > datetime(?)")
        values.append(_format_timestamp(anchor.created_at))
    if before_id is not None:
        anchor = lookup(conn, before_id)
        where.append("datetime(created_at) < datetime(?)")
        values.append(_format_timestamp(anchor.created_at))

    order = "ASC" if last is not None else "DESC"
    if first is not None:
        limit = first
    elif last is not None:
        limit = last
    else:
        limit = DEFAULT_LIMIT

    sql = f"SELECT {columns} FROM {table}"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += f" ORDER BY created_at {order} LIMIT ?"
    values.append(limit)

    nodes = _fetch_all(conn, sql, values, build)
    return Connection(
        has_previous_page=True,
        has_next_page=True,
        edges=[Edge(encode_cursor(node.id), node) for node in nodes],
    )


_COMPONENT_COLUMNS = "id, name, properties, address, class_hash, transaction_hash, created_at"
_ENTITY_COLUMNS = "id, name, partition_id, keys, transaction_hash, created_at"
_ENTITY_STATE_COLUMNS = "entity_id, component_id, data, created_at, updated_at"
_SYSTEM_COLUMNS = "id, name, address, class_hash, transaction_hash, created_at"
_SYSTEM_CALL_COLUMNS = "id, system_id, transaction_hash, data, created_at"


@dataclass
class Component:
    """A registered component of the world."""

    id: str
    name: str
    properties: Optional[str]
    address: str
    class_hash: str
    transaction_hash: str
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> Component:
        id, name, properties, address, class_hash, transaction_hash, created_at = row
        return cls(
            id, name, properties, address, class_hash, transaction_hash,
            _parse_timestamp(created_at),
        )

    def entity_states(self, conn: sqlite3.Connection) -> list[EntityState]:
        return entity_states_by_component(conn, self.id)


@dataclass
class EntityState:
    """The data an entity holds for one component."""

    entity_id: str
    component_id: str
    data: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> EntityState:
        entity_id, component_id, data, created_at, updated_at = row
        return cls(
            entity_id, component_id, data,
            _parse_timestamp(created_at), _parse_timestamp(updated_at),
        )

    def entity(self, conn: sqlite3.Connection) -> Entity:
        return entity_by_id(conn, self.entity_id)

    def component(self, conn: sqlite3.Connection) -> Component:
        return component_by_id(conn, self.component_id)


@dataclass
class Entity:
    """An entity of the world, identified within a partition by its keys."""

    id: str
    name: str
    partition_id: str
    keys: Optional[str]
    transaction_hash: str
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> Entity:
        id, name, partition_id, keys, transaction_hash, created_at = row
        return cls(
            id, name, partition_id, keys, transaction_hash,
            _parse_timestamp(created_at),
        )

    def states(self, conn: sqlite3.Connection) -> list[EntityState]:
        return entity_states_by_entity(conn, self.id)


@dataclass
class System:
    """A registered system of the world."""

    id: str
    name: str
    address: str
    class_hash: str
    transaction_hash: str
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> System:
        id, name, address, class_hash, transaction_hash, created_at = row
        return cls(
            id, name, address, class_hash, transaction_hash,
            _parse_timestamp(created_at),
        )

    def system_calls(self, conn: sqlite3.Connection) -> list[SystemCall]:
        return system_calls_by_system(conn, self.id)


@dataclass
class SystemCall:
    """One execution of a system."""

    id: int
    system_id: str
    transaction_hash: str
    data: Optional[str]
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> SystemCall:
        id, system_id, transaction_hash, data, created_at = row
        return cls(id, system_id, transaction_hash, data, _parse_timestamp(created_at))

    def system(self, conn: sqlite3.Connection) -> System:
        return system_by_id(conn, self.system_id)


def component_by_id(conn: sqlite3.Connection, id: str) -> Component:
    return _fetch_one(
        conn,
        f"SELECT {_COMPONENT_COLUMNS} FROM components WHERE id = ?",
        (id,),
        Component._from_row,
        f"component {id!r}",
    )


def components(conn: sqlite3.Connection) -> list[Component]:
    return _fetch_all(
        conn, f"SELECT {_COMPONENT_COLUMNS} FROM components", (), Component._from_row
    )


def entity_states_by_entity(conn: sqlite3.Connection, entity_id: str) -> list[EntityState]:
    return _fetch_all(
        conn,
        f"SELECT {_ENTITY_STATE_COLUMNS} FROM entity_states WHERE entity_id = ?",
        (entity_id,),
        EntityState._from_row,
    )


def entity_states_by_component(
    conn: sqlite3.Connection, component_id: str
) -> list[EntityState]:
    return _fetch_all(
        conn,
        f"SELECT {_ENTITY_STATE_COLUMNS} FROM entity_states WHERE component_id = ?",
        (component_id,),
        EntityState._from_row,
    )


def entity_by_id(conn: sqlite3.Connection, id: str) -> Entity:
    return _fetch_one(
        conn,
        f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE id = ?",
        (id,),
        Entity._from_row,
        f"entity {id!r}",
    )


def entities_by_pk(
    conn: sqlite3.Connection,
    partition_id: str,
    keys: Optional[Sequence[str]] = None,
    after: Optional[str] = None,
    before: Optional[str] = None,
    first: Optional[int] = None,
    last: Optional[int] = None,
) -> Connection[Entity]:
    """Page through the entities of a partition, optionally by key prefix."""
    conditions = ["partition_id = ?"]
    params: list[Any] = [partition_id]
    if keys is not None:
        conditions.append("keys LIKE ?")
        params.append(",".join(keys) + "%")
    return _paginate(
        conn,
        table="entities",
        columns=_ENTITY_COLUMNS,
        conditions=conditions,
        params=params,
        build=Entity._from_row,
        lookup=entity_by_id,
        after=after,
        before=before,
        first=first,
        last=last,
    )


def system_by_id(conn: sqlite3.Connection, id: str) -> System:
    return _fetch_one(
        conn,
        f"SELECT {_SYSTEM_COLUMNS} FROM systems WHERE id = ?",
        (id,),
        System._from_row,
        f"system {id!r}",
    )


def systems(conn: sqlite3.Connection) -> list[System]:
    return _fetch_all(conn, f"SELECT {_SYSTEM_COLUMNS} FROM systems", (), System._from_row)


def system_call_by_id(conn: sqlite3.Connection, id: int) -> SystemCall:
    return _fetch_one(
        conn,
        f"SELECT {_SYSTEM_CALL_COLUMNS} FROM system_calls WHERE id = ?",
        (id,),
        SystemCall._from_row,
        f"system call {id!r}",
    )


def system_calls_by_system(conn: sqlite3.Connection, system_id: str) -> list[SystemCall]:
    return _fetch_all(
        conn,
        f"SELECT {_SYSTEM_CALL_COLUMNS} FROM system_calls WHERE system_id = ?",
        (system_id,),
        SystemCall._from_row,
    )