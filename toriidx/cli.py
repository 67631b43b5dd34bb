"""Command line entry point: index a world and serve queries over it."""

from __future__ import annotations

import argparse
import logging
import sqlite3
import string
import threading
from collections.abc import Sequence
from typing import Optional
from urllib.parse import urlsplit

from toriidx.graphql.server import build_server
from toriidx.indexer import JsonRpcProvider, start_indexer
from toriidx.storage.sql import SqlStorage

_log = logging.getLogger(__name__)

_HEX_DIGITS = frozenset(string.hexdigits)


def parse_world(value: str) -> int:
    """Parse a world address written as 0x followed by hex digits."""
    if len(value) < 2:
        raise ValueError(f"world address too short: {value!r}")
    digits = value[2:]
    if not digits or not set(digits) <= _HEX_DIGITS:
        raise ValueError(f"invalid hex digits in world address: {value!r}")
    return int(digits, 16)


def _database_path(url: str) -> str:
    if url in ("sqlite::memory:", "sqlite://:memory:"):
        return ":memory:"
    for prefix in ("sqlite://", "sqlite:"):
        if url.startswith(prefix):
            path = url[len(prefix):]
            if path:
                return path
    raise ValueError(f"unsupported database url: {url!r}")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="torii", description="Dojo World Indexer")
    parser.add_argument("-w", "--world", default="0x420", help="The world to index")
    parser.add_argument(
        "--rpc", default="http://localhost:5050", help="The rpc endpoint to use"
    )
    parser.add_argument(
        "-d", "--database-url", default="sqlite::memory:", help="Database url"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)

    try:
        world = parse_world(args.world)
    except ValueError as exc:
        parser.error(f"Failed parsing world address: {exc}")
    rpc = urlsplit(args.rpc)
    if rpc.scheme not in ("http", "https") or not rpc.netloc:
        parser.error(f"invalid rpc url: {args.rpc!r}")
    try:
        database = _database_path(args.database_url)
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(level=logging.INFO)

    connection = sqlite3.connect(database, check_same_thread=False)
    try:
        storage = SqlStorage(connection)
        provider = JsonRpcProvider(args.rpc)
        try:
            server = build_server(connection)
        except OSError as exc:
            _log.error("GraphQL server failed with error: %s", exc)
            return 1

        cancel = threading.Event()
        finished = threading.Event()

        def run_indexer() -> None:
            try:
                start_indexer(cancel, world, storage, provider)
            except Exception:
                _log.exception("Indexer failed with error")
            finally:
                finished.set()

        def run_server() -> None:
            try:
                server.serve_forever()
            except Exception:
                _log.exception("GraphQL server failed with error")
            finally:
                finished.set()

        threads = [
            threading.Thread(target=run_indexer, name="indexer", daemon=True),
            threading.Thread(target=run_server, name="graphql", daemon=True),
        ]
        for thread in threads:
            thread.start()

        try:
            while not finished.wait(0.5):
                pass
        except KeyboardInterrupt:
            print("Received Ctrl+C, shutting down")
        finally:
            cancel.set()
            server.shutdown()
            server.server_close()
    finally:
        connection.close()
    return 0