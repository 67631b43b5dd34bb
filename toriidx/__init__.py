"""World indexer with SQLite storage and a JSON query service."""

__version__ = "0.1.0"