"""In-process storage kept in nested dictionaries."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from toriidx.storage.base import Storage

# component -> partition -> key -> values
_Components = dict[int, dict[int, dict[int, list[int]]]]


class MemoryStorage(Storage):
    """Storage that keeps everything in memory and forgets it on exit."""

    def __init__(self) -> None:
        self._head = 0
        self._data: _Components = {}
        self._lock = threading.RLock()

    def head(self) -> int:
        return self._head

    def set_head(self, head: int) -> None:
        if head < 0:
            raise ValueError(f"head must not be negative: {head}")
        self._head = head

    def create_component(self, name: int, columns: Sequence[int]) -> None:
        with self._lock:
            self._data.setdefault(name, {})

    def set_entity(
        self, component: int, partition: int, key: int, values: Sequence[int]
    ) -> None:
        with self._lock:
            component_data = self._data.get(component)
            if component_data is None:
                return
            component_data.setdefault(partition, {})[key] = list(values)

    def delete_entity(self, component: int, partition: int, key: int) -> None:
        with self._lock:
            partition_data = self._data.get(component, {}).get(partition)
            if partition_data is not None:
                partition_data.pop(key, None)

    def entity(self, component: int, partition: int, key: int) -> list[int]:
        with self._lock:
            values = self._data.get(component, {}).get(partition, {}).get(key)
            return list(values) if values is not None else []

    def entities(self, component: int, partition: int) -> list[list[int]]:
        with self._lock:
            partition_data = self._data.get(component, {}).get(partition, {})
            return [list(values) for values in partition_data.values()]