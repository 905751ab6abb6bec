"""
Sync Checkpoints for Table Sync

Tracks the last successful sync time per table and builds the incremental row
filter for the next run. Stores are injected by the caller; there is no
process-wide tracking state.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from psycopg2.extras import RealDictCursor

from tablesync.reconciliation.errors import InvalidTimestamp

logger = logging.getLogger(__name__)

TRACKING_TABLE = "simple_db_sync_tracking"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing "Z" for UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier, escaping embedded double quotes."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


class CheckpointStore(ABC):
    """Keyed store of "table name -> last successful sync time"."""

    @abstractmethod
    def get_last_sync_time(self, table_name: str) -> Optional[datetime]:
        """Return the last sync time for a table, or None if never synced."""

    @abstractmethod
    def set_last_sync_time(self, table_name: str, sync_time: datetime) -> None:
        """Record a successful sync of a table."""

    @abstractmethod
    def list_checkpoints(self) -> List[Dict[str, Any]]:
        """List every stored checkpoint as ``{"table", "last_sync_time"}``."""


class InMemoryCheckpointStore(CheckpointStore):
    """Checkpoint store held in a dict, for tests and one-shot runs."""

    def __init__(self, initial: Optional[Dict[str, datetime]] = None):
        self._times: Dict[str, datetime] = dict(initial or {})

    def get_last_sync_time(self, table_name: str) -> Optional[datetime]:
        return self._times.get(table_name)

    def set_last_sync_time(self, table_name: str, sync_time: datetime) -> None:
        self._times[table_name] = _as_utc(sync_time)

    def list_checkpoints(self) -> List[Dict[str, Any]]:
        return [
            {"table": table, "last_sync_time": sync_time.isoformat()}
            for table, sync_time in sorted(self._times.items())
        ]


class FileCheckpointStore(CheckpointStore):
    """Checkpoint store keeping one JSON file per table in a directory."""

    def __init__(self, checkpoint_dir: str = ".tablesync"):
        """
        Initialize checkpoint store.

        Args:
            checkpoint_dir: Directory to store checkpoint files
        """
        self.checkpoint_dir = Path(checkpoint_dir)
        self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Checkpoint directory: {self.checkpoint_dir}")

    def _path(self, table_name: str) -> Path:
        return self.checkpoint_dir / f"{table_name}_checkpoint.json"

    def get_last_sync_time(self, table_name: str) -> Optional[datetime]:
        checkpoint_file = self._path(table_name)

        if not checkpoint_file.exists():
            logger.debug(f"No checkpoint found for {table_name}")
            return None

        with open(checkpoint_file, 'r') as f:
            checkpoint = json.load(f)

        return parse_timestamp(checkpoint["last_sync_time"])

    def set_last_sync_time(self, table_name: str, sync_time: datetime) -> None:
        checkpoint_file = self._path(table_name)

        checkpoint_data = {
            "table": table_name,
            "last_sync_time": _as_utc(sync_time).isoformat(),
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }

        with open(checkpoint_file, 'w') as f:
            json.dump(checkpoint_data, f, indent=2)

        logger.info(f"Checkpoint saved: {checkpoint_file}")

    def clear_checkpoint(self, table_name: str) -> None:
        checkpoint_file = self._path(table_name)

        if checkpoint_file.exists():
            checkpoint_file.unlink()
            logger.info(f"Checkpoint cleared for {table_name}")

    def list_checkpoints(self) -> List[Dict[str, Any]]:
        checkpoints = []

        for checkpoint_file in sorted(self.checkpoint_dir.glob("*_checkpoint.json")):
            with open(checkpoint_file, 'r') as f:
                data = json.load(f)
            checkpoints.append({
                "table": data.get("table", checkpoint_file.stem.replace("_checkpoint", "")),
                "last_sync_time": data.get("last_sync_time"),
            })

        return checkpoints


class PostgresCheckpointStore(CheckpointStore):
    """Checkpoint store backed by a tracking table in PostgreSQL."""

    def __init__(self, conn, tracking_table: str = TRACKING_TABLE):
        """
        Initialize checkpoint store.

        Args:
            conn: psycopg2 connection
            tracking_table: Name of the tracking table
        """
        self.conn = conn
        self.tracking_table = quote_identifier(tracking_table)
        self._ensure_table()

    def _ensure_table(self) -> None:
        with self.conn.cursor() as cursor:
            cursor.execute(
                f"CREATE TABLE IF NOT EXISTS {self.tracking_table} ("
                "table_name TEXT PRIMARY KEY, "
                "last_sync_time TIMESTAMPTZ NOT NULL)"
            )
        self.conn.commit()

    def get_last_sync_time(self, table_name: str) -> Optional[datetime]:
        with self.conn.cursor() as cursor:
            cursor.execute(
                f"SELECT last_sync_time FROM {self.tracking_table} WHERE table_name = %s",
                (table_name,)
            )
            row = cursor.fetchone()

        if row is None:
            return None
        return _as_utc(row[0])

    def set_last_sync_time(self, table_name: str, sync_time: datetime) -> None:
        with self.conn.cursor() as cursor:
            cursor.execute(
                f"INSERT INTO {self.tracking_table} (table_name, last_sync_time) "
                "VALUES (%s, %s) "
                "ON CONFLICT (table_name) DO UPDATE SET last_sync_time = EXCLUDED.last_sync_time",
                (table_name, _as_utc(sync_time))
            )
        self.conn.commit()
        logger.info(f"Checkpoint saved for {table_name} in {self.tracking_table}")

    def list_checkpoints(self) -> List[Dict[str, Any]]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(
                f"SELECT table_name, last_sync_time FROM {self.tracking_table} ORDER BY table_name"
            )
            rows = cursor.fetchall()

        return [
            {"table": row["table_name"], "last_sync_time": _as_utc(row["last_sync_time"]).isoformat()}
            for row in rows
        ]


@dataclass(frozen=True)
class SyncFilter:
    """
    Incremental row filter relative to the last sync time.

    A row is selected when any of its created/updated/deleted columns is null
    or not earlier than ``since``. In memory, ISO strings, epoch seconds and
    dates are read as UTC; any other value raises ``InvalidTimestamp``.
    """

    since: datetime
    created_at: str = "created_at"
    updated_at: str = "updated_at"
    deleted_at: str = "deleted_at"
    table_name: Optional[str] = field(default=None, compare=False)

    @property
    def columns(self) -> Tuple[str, str, str]:
        return (self.created_at, self.updated_at, self.deleted_at)

    def to_sql(self) -> Tuple[str, Tuple[datetime, ...]]:
        """
        Render the filter as a parameterized SQL condition.

        Returns:
            (clause, params) for ``cursor.execute``
        """
        parts = []
        for column in self.columns:
            quoted = quote_identifier(column)
            parts.append(f"({quoted} IS NULL OR {quoted} >= %s)")

        clause = "(" + " OR ".join(parts) + ")"
        since = _as_utc(self.since)
        return clause, (since, since, since)

    def matches(self, record: Dict[str, Any]) -> bool:
        """Apply the filter to an in-memory record."""
        since = _as_utc(self.since)

        for column in self.columns:
            value = record.get(column)
            if value is None:
                return True
            if self._to_datetime(column, value) >= since:
                return True

        return False

    def _to_datetime(self, column: str, value: Any) -> datetime:
        if isinstance(value, datetime):
            return _as_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if isinstance(value, str):
            try:
                return _as_utc(parse_timestamp(value))
            except ValueError as e:
                raise InvalidTimestamp(self.table_name or "fetched", column, value) from e

        raise InvalidTimestamp(self.table_name or "fetched", column, value)


def build_sync_filter(
    store: CheckpointStore,
    table_name: str,
    created_at: str = "created_at",
    updated_at: str = "updated_at",
    deleted_at: str = "deleted_at"
) -> Optional[SyncFilter]:
    """
    Build the incremental filter for a table from its checkpoint.

    Args:
        store: Checkpoint store
        table_name: Table to filter
        created_at: Created-at column name on that table
        updated_at: Updated-at column name on that table
        deleted_at: Deleted-at column name on that table

    Returns:
        SyncFilter, or None when the table was never synced (full fetch)
    """
    last_sync_time = store.get_last_sync_time(table_name)

    if last_sync_time is None:
        logger.info(f"No checkpoint for {table_name}, fetching all rows")
        return None

    logger.info(f"Fetching {table_name} rows changed since {last_sync_time.isoformat()}")
    return SyncFilter(
        since=last_sync_time,
        created_at=created_at,
        updated_at=updated_at,
        deleted_at=deleted_at,
        table_name=table_name
    )
