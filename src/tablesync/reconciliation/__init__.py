"""
Reconciliation Module for Table Sync

This module reconciles two tables that describe the same entities under
different schemas, column names and foreign key surrogate values.

Main components:
- column_mapper: Left/right column name translation
- denormalization: Foreign key translation through shared labels
- comparer: Row identity matching
- rules: Ordered last-write-wins conflict rules
- engine: Two-pass reconciliation producing a SyncResult

Usage:
    from tablesync.reconciliation import ReconciliationEngine, LeftTable, RightTable, Row

    left = LeftTable(name="players", primary_key="id", comparison_columns=["name"],
                     rows=[Row.from_dict({"id": 1, "name": "John", ...})])
    right = RightTable(name="members", rows=[])

    result = ReconciliationEngine().reconcile(left, right)
    result.rows_to_add_to_right
"""

from tablesync.reconciliation.column_mapper import ColumnMapper, to_left, to_right
from tablesync.reconciliation.comparer import RowMatcher
from tablesync.reconciliation.denormalization import DenormalizationResolver
from tablesync.reconciliation.engine import ReconciliationEngine, sync
from tablesync.reconciliation.errors import (
    ConfigurationError,
    DataError,
    DescriptorValidationError,
    InvalidSyncConfig,
    InvalidTimestamp,
    MissingColumnDenormalization,
    MissingDenormalizationDetails,
    MissingPrimaryKey,
    MissingTimestamp,
    ResolutionError,
    SyncError,
    UnresolvableDenormalizedValue,
)
from tablesync.reconciliation.models import (
    Cell,
    DenormalisationDetail,
    DenormalisationEntry,
    LeftTable,
    RightTable,
    Row,
    SyncResult,
    TableDescriptor,
)
from tablesync.reconciliation.rules import CONFLICT_RULES, ConflictRule, Decision, RowTimestamps, resolve_conflict

__all__ = [
    "Cell",
    "ColumnMapper",
    "CONFLICT_RULES",
    "ConfigurationError",
    "ConflictRule",
    "DataError",
    "Decision",
    "DenormalisationDetail",
    "DenormalisationEntry",
    "DenormalizationResolver",
    "DescriptorValidationError",
    "InvalidSyncConfig",
    "InvalidTimestamp",
    "LeftTable",
    "MissingColumnDenormalization",
    "MissingDenormalizationDetails",
    "MissingPrimaryKey",
    "MissingTimestamp",
    "ReconciliationEngine",
    "ResolutionError",
    "RightTable",
    "Row",
    "RowMatcher",
    "RowTimestamps",
    "SyncError",
    "SyncResult",
    "TableDescriptor",
    "UnresolvableDenormalizedValue",
    "resolve_conflict",
    "sync",
    "to_left",
    "to_right",
]
