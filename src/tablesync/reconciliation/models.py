"""
Data Model for Table Reconciliation

Cells, rows, table descriptors and the sync result shared by every
reconciliation component.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cell:
    """
    One column value of a row.

    Attributes:
        column: Column name on the side the row belongs to
        value: Side-native raw value (e.g. a surrogate id)
        denormalised_value: Label shared across sides for foreign key columns
    """

    column: str
    value: Any
    denormalised_value: Any = None


class Row:
    """
    Immutable ordered collection of cells with a keyed view.

    When a column appears more than once the first cell wins lookups.
    """

    __slots__ = ("_cells", "_index")

    def __init__(self, cells: Iterable[Cell] = ()):
        self._cells = tuple(cells)
        index: Dict[str, Cell] = {}
        for cell in self._cells:
            index.setdefault(cell.column, cell)
        self._index = index

    @classmethod
    def from_dict(
        cls,
        mapping: Dict[str, Any],
        labels: Optional[Dict[str, Any]] = None
    ) -> "Row":
        """
        Build a row from a plain column/value mapping.

        Args:
            mapping: Column name to raw value
            labels: Optional column name to denormalised label

        Returns:
            Row preserving the mapping's column order
        """
        labels = labels or {}
        return cls(
            Cell(column, value, labels.get(column))
            for column, value in mapping.items()
        )

    @property
    def cells(self) -> tuple:
        return self._cells

    @property
    def columns(self) -> List[str]:
        return list(self._index.keys())

    def cell(self, column: str) -> Optional[Cell]:
        return self._index.get(column)

    def get(self, column: str, default: Any = None) -> Any:
        cell = self._index.get(column)
        return cell.value if cell is not None else default

    def as_dict(self) -> Dict[str, Any]:
        return {column: cell.value for column, cell in self._index.items()}

    def __getitem__(self, column: str) -> Any:
        return self._index[column].value

    def __contains__(self, column: object) -> bool:
        return column in self._index

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self._cells == other._cells

    def __hash__(self) -> int:
        return hash(self._cells)

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"


@dataclass(frozen=True)
class DenormalisationEntry:
    """One (native value, shared label) pair of a column bijection."""

    normalised_value: Any
    denormalised_value: Any


@dataclass
class DenormalisationDetail:
    """
    Bijection between a column's native values and cross-side labels.

    Attributes:
        column: Column name on the side that owns this detail
        entries: Ordered (native value, label) pairs
    """

    column: str
    entries: List[DenormalisationEntry] = field(default_factory=list)

    @classmethod
    def from_pairs(cls, column: str, pairs: Iterable[tuple]) -> "DenormalisationDetail":
        return cls(column, [DenormalisationEntry(native, label) for native, label in pairs])

    def native_for(self, label: Any) -> Optional[DenormalisationEntry]:
        """Return the first entry whose label equals ``label``."""
        for entry in self.entries:
            if entry.denormalised_value == label:
                return entry
        return None

    def label_for(self, native: Any) -> Optional[DenormalisationEntry]:
        """Return the first entry whose native value equals ``native``."""
        for entry in self.entries:
            if entry.normalised_value == native:
                return entry
        return None


@dataclass
class TableDescriptor:
    """
    Metadata and materialized rows for one side of a sync.

    ``denormalisation_details`` of None means the side provides no details,
    which is distinct from an empty list.
    """

    name: str
    rows: List[Row] = field(default_factory=list)
    foreign_key_columns: List[str] = field(default_factory=list)
    denormalisation_details: Optional[List[DenormalisationDetail]] = None

    def denormalisation_detail_for(self, column: str) -> Optional[DenormalisationDetail]:
        for detail in self.denormalisation_details or []:
            if detail.column == column:
                return detail
        return None

    def row_from_record(self, record: Dict[str, Any]) -> Row:
        """
        Build a row from a fetched record, labelling foreign key cells.

        Labels come from this table's own denormalisation details. A foreign
        key whose native value has no entry is left unlabelled.
        """
        labels = {}
        for column in self.foreign_key_columns:
            if column not in record:
                continue
            detail = self.denormalisation_detail_for(column)
            entry = detail.label_for(record[column]) if detail else None
            if entry is not None:
                labels[column] = entry.denormalised_value
            elif record[column] is not None:
                logger.debug(
                    f"No label for {self.name}.{column}={record[column]!r}"
                )
        return Row.from_dict(record, labels)


@dataclass
class LeftTable(TableDescriptor):
    """
    The left side, canonical source of key and timestamp column names.

    Right-side equivalents of every column are derived through ``column_map``,
    a partial left-to-right name map; unmapped names pass through unchanged.
    """

    primary_key: str = "id"
    created_at: str = "createdAt"
    updated_at: str = "updatedAt"
    deleted_at: str = "deletedAt"
    comparison_columns: List[str] = field(default_factory=list)
    column_map: Optional[Dict[str, str]] = None


@dataclass
class RightTable(TableDescriptor):
    """The right side; its column names are derived from the left table."""
    pass


@dataclass
class SyncResult:
    """
    Structured diff returned by one reconciliation.

    Payload dicts never contain the receiving side's primary key and already
    use the receiving side's column names and native foreign key values.
    """

    rows_to_add_to_right: List[Dict[str, Any]] = field(default_factory=list)
    rows_to_add_to_left: List[Dict[str, Any]] = field(default_factory=list)
    rows_to_update_on_right: List[Dict[str, Any]] = field(default_factory=list)
    rows_to_update_on_left: List[Dict[str, Any]] = field(default_factory=list)
    primary_keys_to_delete_from_right: List[Any] = field(default_factory=list)
    primary_keys_to_delete_from_left: List[Any] = field(default_factory=list)
    left_table_name: Optional[str] = field(default=None, compare=False)
    right_table_name: Optional[str] = field(default=None, compare=False)

    BUCKETS = (
        "rows_to_add_to_right",
        "rows_to_add_to_left",
        "rows_to_update_on_right",
        "rows_to_update_on_left",
        "primary_keys_to_delete_from_right",
        "primary_keys_to_delete_from_left",
    )

    def is_empty(self) -> bool:
        return not any(getattr(self, bucket) for bucket in self.BUCKETS)

    def summary(self) -> Dict[str, int]:
        """Count of entries per bucket."""
        return {bucket: len(getattr(self, bucket)) for bucket in self.BUCKETS}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "left_table": self.left_table_name,
            "right_table": self.right_table_name,
        }
        for bucket in self.BUCKETS:
            data[bucket] = list(getattr(self, bucket))
        return data

    def update_sync_times(self, checkpoint_store, sync_time: Optional[datetime] = None) -> None:
        """
        Record a successful sync of both tables in a checkpoint store.

        Call only after the result has been applied to both sides.

        Args:
            checkpoint_store: Store with ``set_last_sync_time(table, time)``
            sync_time: Time to record (defaults to now, UTC)
        """
        sync_time = sync_time or datetime.now(timezone.utc)
        for table_name in (self.left_table_name, self.right_table_name):
            if table_name:
                checkpoint_store.set_last_sync_time(table_name, sync_time)
        logger.info(
            f"Recorded sync time {sync_time.isoformat()} for "
            f"{self.left_table_name} and {self.right_table_name}"
        )
