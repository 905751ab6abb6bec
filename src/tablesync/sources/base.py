"""
Row Source Interface for Table Sync

A row source returns plain records (column name to value) for a table. The
runner turns them into rows; the reconciliation engine never calls a source.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from tablesync.utils.checkpoint import SyncFilter

logger = logging.getLogger(__name__)


class RowSource(ABC):
    """Fetches records for a table."""

    @abstractmethod
    def fetch_rows(
        self,
        table_name: str,
        columns: Optional[Sequence[str]] = None,
        sync_filter: Optional[SyncFilter] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch records for a table.

        Args:
            table_name: Table to read
            columns: Columns to return (all columns when None)
            sync_filter: Incremental filter (all rows when None)

        Returns:
            List of records
        """


class InMemoryRowSource(RowSource):
    """Row source over records held in memory, keyed by table name."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = {name: list(records) for name, records in (tables or {}).items()}

    def fetch_rows(
        self,
        table_name: str,
        columns: Optional[Sequence[str]] = None,
        sync_filter: Optional[SyncFilter] = None
    ) -> List[Dict[str, Any]]:
        if table_name not in self.tables:
            raise KeyError(f"Unknown table '{table_name}'")

        records = self.tables[table_name]
        if sync_filter is not None:
            records = [record for record in records if sync_filter.matches(record)]

        if columns:
            records = [
                {column: record[column] for column in columns if column in record}
                for record in records
            ]
        else:
            records = [dict(record) for record in records]

        logger.info(f"Fetched {len(records)} rows from in-memory {table_name}")
        return records
