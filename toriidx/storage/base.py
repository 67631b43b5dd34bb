"""Abstract interface shared by all world-state storages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class Storage(ABC):
    """Persistent store for the indexer head and component entity values.

    Field elements are represented as Python integers.
    """

    @abstractmethod
    def head(self) -> int:
        """Return the number of the next block to index."""

    @abstractmethod
    def set_head(self, head: int) -> None:
        """Record the number of the next block to index."""

    @abstractmethod
    def create_component(self, name: int, columns: Sequence[int]) -> None:
        """Register a component with the given value columns."""

    @abstractmethod
    def set_entity(
        self, component: int, partition: int, key: int, values: Sequence[int]
    ) -> None:
        """Store the values of one entity of a component."""

    @abstractmethod
    def delete_entity(self, component: int, partition: int, key: int) -> None:
        """Remove one entity of a component."""

    @abstractmethod
    def entity(self, component: int, partition: int, key: int) -> list[int]:
        """Return the values of one entity of a component."""

    @abstractmethod
    def entities(self, component: int, partition: int) -> list[list[int]]:
        """Return the values of every entity in a partition of a component."""