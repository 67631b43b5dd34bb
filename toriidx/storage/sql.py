"""Storage backed by an SQLite database, one table per component."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from toriidx.storage.base import Storage

_RESERVED_COLUMNS = 2  # id and partition precede the value columns


def _quote(identifier: object) -> str:
    text = str(identifier).replace('"', '""')
    return f'"{text}"'


class SqlStorage(Storage):
    """Storage that writes to an SQLite connection.

    Each component becomes a table named after the component, holding an
    ``id`` and ``partition`` column followed by one column per value.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        with self._connection:
            self._connection.execute(
                "CREATE TABLE IF NOT EXISTS indexer "
                "(id INTEGER PRIMARY KEY, head INTEGER NOT NULL DEFAULT 0)"
            )
            self._connection.execute(
                "INSERT OR IGNORE INTO indexer (id, head) VALUES (1, 0)"
            )

    def head(self) -> int:
        row = self._connection.execute(
            "SELECT head FROM indexer WHERE id = 1"
        ).fetchone()
        if row is None:
            raise LookupError("indexer head is not recorded")
        head = row[0]
        if head < 0:
            raise ValueError(f"stored head does not fit an unsigned integer: {head}")
        return head

    def set_head(self, head: int) -> None:
        if head < 0:
            raise ValueError(f"head must not be negative: {head}")
        with self._connection:
            self._connection.execute(
                "INSERT INTO indexer (id, head) VALUES (1, ?) "
                "ON CONFLICT (id) DO UPDATE SET head = excluded.head",
                (head,),
            )

    def create_component(self, name: int, columns: Sequence[int]) -> None:
        definitions = ["id TEXT NOT NULL", "partition TEXT NOT NULL"]
        definitions.extend(f"{_quote(column)} TEXT" for column in columns)
        definitions.append("PRIMARY KEY (id, partition)")
        with self._connection:
            self._connection.execute(
                f"CREATE TABLE IF NOT EXISTS {_quote(name)} ({', '.join(definitions)})"
            )

    def _value_columns(self, component: int) -> list[str]:
        info = self._connection.execute(
            f"PRAGMA table_info({_quote(component)})"
        ).fetchall()
        if not info:
            raise LookupError(f"component {component} has no table")
        ordered = sorted(info, key=lambda column: column[0])
        return [column[1] for column in ordered[_RESERVED_COLUMNS:]]

    def set_entity(
        self, component: int, partition: int, key: int, values: Sequence[int]
    ) -> None:
        columns = self._value_columns(component)
        if len(values) > len(columns):
            raise ValueError(
                f"component {component} has {len(columns)} columns, "
                f"got {len(values)} values"
            )
        names = ["id", "partition", *(_quote(c) for c in columns[: len(values)])]
        params = [str(key), str(partition), *(str(v) for v in values)]
        placeholders = ", ".join("?" for _ in params)
        with self._connection:
            self._connection.execute(
                f"INSERT OR REPLACE INTO {_quote(component)} "
                f"({', '.join(names)}) VALUES ({placeholders})",
                params,
            )

    def delete_entity(self, component: int, partition: int, key: int) -> None:
        with self._connection:
            self._connection.execute(
                f"DELETE FROM {_quote(component)} WHERE id = ? AND partition = ?",
                (str(key), str(partition)),
            )

    @staticmethod
    def _row_values(row: Sequence[object]) -> list[int]:
        return [int(v) for v in row[_RESERVED_COLUMNS:] if v is not None]

    def entity(self, component: int, partition: int, key: int) -> list[int]:
        row = self._connection.execute(
            f"SELECT * FROM {_quote(component)} WHERE id = ? AND partition = ?",
            (str(key), str(partition)),
        ).fetchone()
        if row is None:
            raise LookupError(
                f"no entity {key} in partition {partition} of component {component}"
            )
        return self._row_values(row)

    def entities(self, component: int, partition: int) -> list[list[int]]:
        rows = self._connection.execute(
            f"SELECT * FROM {_quote(component)} WHERE partition = ? ORDER BY rowid",
            (str(partition),),
        ).fetchall()
        return [self._row_values(row) for row in rows]