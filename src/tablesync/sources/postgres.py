"""
PostgreSQL Row Source for Table Sync

Reads rows and denormalisation lookup tables from PostgreSQL with psycopg2.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from psycopg2.extras import RealDictCursor

from tablesync.reconciliation.models import DenormalisationDetail, DenormalisationEntry
from tablesync.sources.base import RowSource
from tablesync.utils.checkpoint import SyncFilter, quote_identifier

logger = logging.getLogger(__name__)


class PostgresRowSource(RowSource):
    """Row source reading one PostgreSQL schema."""

    def __init__(self, conn, schema: str = "public"):
        """
        Initialize the row source.

        Args:
            conn: psycopg2 connection
            schema: Schema holding the synced tables
        """
        self.conn = conn
        self.schema = schema

    def _table_ref(self, table_name: str) -> str:
        return f"{quote_identifier(self.schema)}.{quote_identifier(table_name)}"

    def fetch_rows(
        self,
        table_name: str,
        columns: Optional[Sequence[str]] = None,
        sync_filter: Optional[SyncFilter] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch rows from PostgreSQL.

        Args:
            table_name: Table name
            columns: Columns to select (all when None)
            sync_filter: Incremental filter rendered as a WHERE clause

        Returns:
            List of rows
        """
        columns_sql = ", ".join(quote_identifier(c) for c in columns) if columns else "*"
        query = f"SELECT {columns_sql} FROM {self._table_ref(table_name)}"
        params: tuple = ()

        if sync_filter is not None:
            clause, params = sync_filter.to_sql()
            query += f" WHERE {clause}"

        logger.debug(f"Executing PostgreSQL query: {query}")

        with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query, params)
            rows = [dict(row) for row in cursor.fetchall()]

        logger.info(f"Fetched {len(rows)} rows from PostgreSQL {table_name}")
        return rows

    def fetch_denormalisation_detail(
        self,
        column: str,
        referenced_table: str,
        key_column: str = "id",
        label_column: str = "name"
    ) -> DenormalisationDetail:
        """
        Build a column's denormalisation detail from its referenced table.

        Args:
            column: Foreign key column on the synced table
            referenced_table: Table the foreign key points to
            key_column: Key column of the referenced table
            label_column: Column holding the label shared across sides

        Returns:
            DenormalisationDetail ordered by key
        """
        key = quote_identifier(key_column)
        label = quote_identifier(label_column)
        query = (
            f"SELECT {key} AS native, {label} AS label "
            f"FROM {self._table_ref(referenced_table)} ORDER BY {key}"
        )

        with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query)
            rows = cursor.fetchall()

        logger.info(
            f"Loaded {len(rows)} denormalisation entries for {column} from {referenced_table}"
        )
        return DenormalisationDetail(
            column,
            [DenormalisationEntry(row["native"], row["label"]) for row in rows]
        )
