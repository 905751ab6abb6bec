"""
Row Sources for Table Sync

Fetch rows for one side of a sync, optionally limited to what changed since
the last checkpoint.

Usage:
    from tablesync.sources import InMemoryRowSource, PostgresRowSource

    source = PostgresRowSource(conn, schema="public")
    records = source.fetch_rows("players", sync_filter=sync_filter)
"""

from tablesync.sources.base import InMemoryRowSource, RowSource
from tablesync.sources.postgres import PostgresRowSource

__all__ = [
    "InMemoryRowSource",
    "PostgresRowSource",
    "RowSource",
]
