"""Interfaces for handlers run on indexed blocks, transactions and events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from toriidx.storage.base import Storage


class EventProcessor(ABC):
    """Handles one kind of event emitted in a transaction receipt."""

    @abstractmethod
    def event_key(self) -> str:
        """Return the key of the events this processor handles."""

    @abstractmethod
    def process(self, storage: Storage, provider: Any, event: Any) -> None:
        """Apply one event to storage."""


class BlockProcessor(ABC):
    """Handles a whole block with its transactions."""

    @abstractmethod
    def get_block_number(self) -> str:
        """Return the block number this processor is concerned with."""

    @abstractmethod
    def process(self, storage: Storage, provider: Any, block: Any) -> None:
        """Apply one block to storage."""


class TransactionProcessor(ABC):
    """Handles the receipt of one transaction."""

    @abstractmethod
    def get_transaction_hash(self) -> str:
        """Return the transaction hash this processor is concerned with."""

    @abstractmethod
    def process(self, storage: Storage, provider: Any, receipt: Any) -> None:
        """Apply one transaction receipt to storage."""