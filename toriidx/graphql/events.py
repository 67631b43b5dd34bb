"""Events emitted by system calls, and the queries that load them."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from toriidx.graphql.models import (
    Connection,
    SystemCall,
    _fetch_one,
    _paginate,
    _parse_timestamp,
    system_call_by_id,
)

_EVENT_COLUMNS = "id, keys, data, system_call_id, created_at"


@dataclass
class Event:
    """An event emitted during a system call."""

    id: str
    keys: str
    data: str
    system_call_id: int
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> Event:
        id, keys, data, system_call_id, created_at = row
        return cls(id, keys, data, system_call_id, _parse_timestamp(created_at))

    def system_call(self, conn: sqlite3.Connection) -> SystemCall:
        return system_call_by_id(conn, self.system_call_id)


def event_by_id(conn: sqlite3.Connection, id: str) -> Event:
    return _fetch_one(
        conn,
        f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?",
        (id,),
        Event._from_row,
        f"event {id!r}",
    )


def events_by_keys(
    conn: sqlite3.Connection,
    keys: Sequence[str],
    after: Optional[str] = None,
    before: Optional[str] = None,
    first: Optional[int] = None,
    last: Optional[int] = None,
) -> Connection[Event]:
    """Page through the events whose keys start with the given keys."""
    return _paginate(
        conn,
        table="events",
        columns=_EVENT_COLUMNS,
        conditions=["keys LIKE ?"],
        params=[",".join(keys) + "%"],
        build=Event._from_row,
        lookup=event_by_id,
        after=after,
        before=before,
        first=first,
        last=last,
    )