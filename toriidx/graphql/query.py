"""Root query of the GraphQL API and its JSON rendering."""

from __future__ import annotations

import re
import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import fields, is_dataclass
from datetime import datetime
from typing import Any, Optional

from toriidx.graphql import models
from toriidx.graphql.events import Event, event_by_id, events_by_keys
from toriidx.graphql.models import (
    Component,
    Connection,
    Entity,
    System,
    component_by_id,
    entities_by_pk,
    entity_by_id,
    system_by_id,
)

_PAGE_ARGUMENTS = frozenset({"after", "before", "first", "last"})

# Root field -> (required arguments, optional arguments).
_FIELDS: dict[str, tuple[frozenset[str], frozenset[str]]] = {
    "component": (frozenset({"id"}), frozenset()),
    "components": (frozenset(), frozenset()),
    "system": (frozenset({"id"}), frozenset()),
    "systems": (frozenset(), frozenset()),
    "entity": (frozenset({"id"}), frozenset()),
    "entities": (frozenset({"partition_id"}), _PAGE_ARGUMENTS | {"keys"}),
    "event": (frozenset({"id"}), frozenset()),
    "events": (frozenset({"keys"}), _PAGE_ARGUMENTS),
}


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _to_json(value: Any) -> Any:
    if isinstance(value, Connection):
        return {
            "edges": [
                {"cursor": edge.cursor, "node": _to_json(edge.node)}
                for edge in value.edges
            ],
            "pageInfo": {
                "hasPreviousPage": value.has_previous_page,
                "hasNextPage": value.has_next_page,
            },
        }
    if is_dataclass(value) and not isinstance(value, type):
        return {
            _camel_case(item.name): _to_json(getattr(value, item.name))
            for item in fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class Query:
    """Root fields of the API, each answered from one SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def component(self, id: str) -> Component:
        return component_by_id(self._connection, str(id))

    def components(self) -> list[Component]:
        return models.components(self._connection)

    def system(self, id: str) -> System:
        return system_by_id(self._connection, str(id))

    def systems(self) -> list[System]:
        return models.systems(self._connection)

    def entity(self, id: str) -> Entity:
        return entity_by_id(self._connection, str(id))

    def entities(
        self,
        partition_id: str,
        keys: Optional[Sequence[str]] = None,
        after: Optional[str] = None,
        before: Optional[str] = None,
        first: Optional[int] = None,
        last: Optional[int] = None,
    ) -> Connection[Entity]:
        return entities_by_pk(
            self._connection, partition_id, keys, after, before, first, last
        )

    def event(self, id: str) -> Event:
        return event_by_id(self._connection, str(id))

    def events(
        self,
        keys: Sequence[str],
        after: Optional[str] = None,
        before: Optional[str] = None,
        first: Optional[int] = None,
        last: Optional[int] = None,
    ) -> Connection[Event]:
        return events_by_keys(self._connection, keys, after, before, first, last)

    def execute(self, field: str, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """Resolve one root field and return its value as JSON-ready data.

        Argument names may be given in camelCase as in the API or in
        snake_case. Raises ValueError for an unknown field or bad arguments.
        """
        if field not in _FIELDS:
            raise ValueError(f"unknown field: {field!r}")
        required, optional = _FIELDS[field]
        kwargs = {_snake_case(name): value for name, value in (arguments or {}).items()}
        unknown = set(kwargs) - required - optional
        if unknown:
            raise ValueError(
                f"invalid arguments for {field!r}: unknown {sorted(unknown)}"
            )
        missing = required - set(kwargs)
        if missing:
            raise ValueError(
                f"invalid arguments for {field!r}: missing {sorted(missing)}"
            )
        return _to_json(getattr(self, field)(**kwargs))