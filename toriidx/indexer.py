"""Polls a node for blocks and hands them to processors."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any, Optional

import httpx

from toriidx.processors import BlockProcessor, EventProcessor, TransactionProcessor
from toriidx.storage.base import Storage

_log = logging.getLogger(__name__)

_BLOCK_NOT_FOUND = 24


class ProviderError(Exception):
    """Raised when the node cannot answer a request."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class BlockNotFoundError(ProviderError):
    """Raised when the requested block does not exist yet."""


class JsonRpcProvider:
    """Minimal JSON-RPC client for the node's block and receipt methods."""

    def __init__(self, url: str, client: Optional[httpx.Client] = None) -> None:
        self._url = url
        self._client = client if client is not None else httpx.Client(timeout=30.0)
        self._ids = itertools.count(1)

    def _call(self, method: str, params: Mapping[str, Any]) -> Any:
        request = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self._client.post(self._url, json=request)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(str(exc)) from exc
        if not isinstance(payload, dict):
            raise ProviderError("malformed JSON-RPC response")
        error = payload.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            if code == _BLOCK_NOT_FOUND:
                raise BlockNotFoundError(message, code)
            raise ProviderError(message, code)
        if "result" not in payload:
            raise ProviderError("JSON-RPC response has no result")
        return payload["result"]

    def get_block_with_txs(self, block_number: int) -> dict[str, Any]:
        return self._call("starknet_getBlockWithTxs", {"block_id": {"block_number": block_number}})

    def get_transaction_receipt(self, transaction_hash: str) -> dict[str, Any]:
        return self._call(
            "starknet_getTransactionReceipt", {"transaction_hash": transaction_hash}
        )


def _is_pending(item: Mapping[str, Any]) -> bool:
    return "block_hash" not in item or item.get("status") == "PENDING"


def _version(transaction: Mapping[str, Any]) -> int:
    version = transaction.get("version", 0)
    if isinstance(version, str):
        try:
            return int(version, 16)
        except ValueError:
            return -1
    return int(version)


def process_block(
    storage: Storage, provider: Any, processors: Sequence[BlockProcessor], block: Any
) -> None:
    for processor in processors:
        processor.process(storage, provider, block)


def process_transaction(
    storage: Storage,
    provider: Any,
    processors: Sequence[TransactionProcessor],
    receipt: Any,
) -> None:
    for processor in processors:
        processor.process(storage, provider, receipt)


def process_event(
    storage: Storage,
    provider: Any,
    processors: Sequence[EventProcessor],
    receipt: Any,
    event: Any,
) -> None:
    for processor in processors:
        processor.process(storage, provider, event)


def start_indexer(
    cancel: threading.Event,
    world: int,
    storage: Storage,
    provider: Any,
    block_processors: Sequence[BlockProcessor] = (),
    transaction_processors: Sequence[TransactionProcessor] = (),
    event_processors: Sequence[EventProcessor] = (),
    poll_interval: float = 1.0,
) -> None:
    """Index blocks from the storage head onwards until cancelled.

    Errors raised by processors propagate; errors from the provider are
    logged and the block is requested again on the next poll.
    """
    _log.info("starting indexer")
    current_block_number = storage.head()

    while not cancel.wait(poll_interval):
        try:
            block = provider.get_block_with_txs(current_block_number)
        except BlockNotFoundError:
            continue
        except ProviderError as exc:
            _log.error("getting block: %s", exc)
            continue

        if _is_pending(block):
            continue

        process_block(storage, provider, block_processors, block)

        for transaction in block.get("transactions", []):
            if transaction.get("type") != "INVOKE" or _version(transaction) != 1:
                continue
            try:
                receipt = provider.get_transaction_receipt(transaction["transaction_hash"])
            except ProviderError:
                continue
            if _is_pending(receipt):
                continue

            process_transaction(storage, provider, transaction_processors, receipt)

            if receipt.get("type") == "INVOKE":
                for event in receipt.get("events", []):
                    process_event(storage, provider, event_processors, receipt, event)

        current_block_number += 1