# toriidx

An indexer for a Starknet game world. It follows the chain block by block
through a JSON-RPC endpoint and passes blocks, transaction receipts and events
to processors. Indexed components, systems, entities and events are read from
SQLite and served over HTTP as JSON.

## Installing

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Running

    toriidx --world 0x420 --rpc http://localhost:5050 --database-url sqlite::memory:

Options:

- `-w`, `--world` — address of the world, `0x` followed by hexadecimal digits
  (default `0x420`).
- `--rpc` — HTTP or HTTPS JSON-RPC endpoint of the node
  (default `http://localhost:5050`).
- `-d`, `--database-url` — `sqlite::memory:`, `sqlite://<path>` or
  `sqlite:<path>` (default `sqlite::memory:`).

The indexer and the query server run side by side in one process. The
indexer starts at the head recorded in the database, asks the node for one
block per second, and for every invoke (version 1) transaction fetches its
receipt and events. The server listens on `127.0.0.1:8080`. Press Ctrl+C to
stop.

## The query endpoint

`/query` and `/playground` both answer:

- `GET` with a small HTML page for trying queries by hand;
- `POST` with a JSON body `{"field": ..., "arguments": {...}}`, answered with
  `{"data": {field: value}}`, or with `{"data": null, "errors": [...]}` when
  the lookup fails.

The fields are `component(id)`, `components`, `system(id)`, `systems`,
`entity(id)`, `entities(partitionId, keys, after, before, first, last)`,
`event(id)` and `events(keys, after, before, first, last)`. Argument names
may be written in camelCase or snake_case.

Requests are not GraphQL documents: one root field is resolved per request,
and the whole record is returned rather than a selection of its fields.

## Using it as a library

Storage backends share the `Storage` interface in `toriidx.storage.base`:
`MemoryStorage` (`toriidx.storage.memory`) keeps everything in nested
dictionaries, `SqlStorage` (`toriidx.storage.sql`) works on an open `sqlite3`
connection and keeps one table per component.

Queries go through `toriidx.graphql.query.Query`:

    import sqlite3
    from toriidx.graphql.query import Query

    conn = sqlite3.connect("world.db")
    query = Query(conn)
    entity = query.entity("entity_1")
    page = query.entities("420")
    for edge in page.edges:
        print(edge.cursor, edge.node.id)

    print(query.execute("events", {"keys": ["key_1"], "first": 5}))

Lists of entities and events are paged by creation time: pass a cursor from
an edge as `after` or `before`, and a page size as `first` or `last` (ten by
default; `last` reverses the order to oldest first). A missing record raises
`toriidx.graphql.models.NotFoundError`.

`toriidx.indexer.start_indexer` can be run with your own block, transaction
and event processors (the abstract classes in `toriidx.processors`) and any
provider offering `get_block_with_txs` and `get_transaction_receipt`;
`JsonRpcProvider` is the one built on `httpx`.

## What it does not do

- No processors ship with the package, and the command starts the indexer
  with none, so indexed blocks are walked but nothing is written from them.
- The package does not create the `components`, `systems`, `system_calls`,
  `entities`, `entity_states` or `events` tables that the query endpoint
  reads; they must already exist in the database. With the default in-memory
  database every query field except the plain lists returns an error.
- The indexer's position is read at start-up but is not advanced in storage
  as blocks are processed.