"""
Reconciliation Engine for Table Sync

Computes the insert/update/delete operations that converge a left and a right
table. Two independent passes:

- Pass 1 walks the left rows, pairs each with its right counterpart and either
  proposes an insert on the right or applies the conflict rules to the pair.
- Pass 2 walks the right rows and proposes an insert on the left for every row
  with no left counterpart.

The engine is pure: it never fetches or writes rows and keeps no state
between calls.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.comparer import RowMatcher
from tablesync.reconciliation.denormalization import DenormalizationResolver
from tablesync.reconciliation.errors import InvalidTimestamp, MissingPrimaryKey, MissingTimestamp
from tablesync.reconciliation.models import LeftTable, RightTable, Row, SyncResult
from tablesync.reconciliation.rules import (
    CONFLICT_RULES,
    Decision,
    RowTimestamps,
    resolve_conflict,
)

logger = logging.getLogger(__name__)


class _SyncContext:
    """Per-invocation helpers shared by both passes."""

    def __init__(self, left: LeftTable, right: RightTable):
        self.left = left
        self.right = right
        self.mapper = ColumnMapper(left.column_map)
        self.resolver = DenormalizationResolver(left, right, self.mapper)

        self.right_primary_key = self.mapper.to_right(left.primary_key)
        self.right_updated_at = self.mapper.to_right(left.updated_at)
        self.right_deleted_at = self.mapper.to_right(left.deleted_at)

    def payload_for_right(self, left_row: Row) -> Dict[str, Any]:
        payload = {}
        for cell in left_row:
            if cell.column == self.left.primary_key:
                continue
            payload[self.mapper.to_right(cell.column)] = self.resolver.translate_for_right(cell)
        return payload

    def payload_for_left(self, right_row: Row) -> Dict[str, Any]:
        payload = {}
        for cell in right_row:
            if cell.column == self.right_primary_key:
                continue
            payload[self.mapper.to_left(cell.column)] = self.resolver.translate_for_left(cell)
        return payload


class ReconciliationEngine:
    """
    Bi-directional reconciliation of two table descriptors.

    Matched pairs end in exactly one of no-op, delete-right, delete-left,
    update-right or update-left; unmatched rows are added to the other side.
    """

    def __init__(self, matcher: Optional[RowMatcher] = None, rules=CONFLICT_RULES):
        """
        Initialize the reconciliation engine.

        Args:
            matcher: Row matcher used for identity matching
            rules: Ordered conflict rule table
        """
        self.matcher = matcher or RowMatcher()
        self.rules = rules
        logger.debug("Initialized ReconciliationEngine")

    def reconcile(self, left: LeftTable, right: RightTable) -> SyncResult:
        """
        Compute the operations that converge both tables.

        Args:
            left: Left table descriptor with its rows
            right: Right table descriptor with its rows

        Returns:
            SyncResult with the six operation buckets

        Raises:
            ConfigurationError: A side lacks denormalisation metadata
            ResolutionError: A foreign key label cannot be resolved
            DataError: A matched row lacks timestamp or primary key data
        """
        logger.info(
            f"Reconciling {left.name} ({len(left.rows)} rows) with "
            f"{right.name} ({len(right.rows)} rows)"
        )

        context = _SyncContext(left, right)
        result = SyncResult(left_table_name=left.name, right_table_name=right.name)

        self._reconcile_left_rows(context, result)
        self._add_missing_right_rows(context, result)

        summary = result.summary()
        logger.info(
            f"Reconciliation summary for {left.name}/{right.name}: "
            f"{summary['rows_to_add_to_right']} add right, "
            f"{summary['rows_to_add_to_left']} add left, "
            f"{summary['rows_to_update_on_right']} update right, "
            f"{summary['rows_to_update_on_left']} update left, "
            f"{summary['primary_keys_to_delete_from_right']} delete right, "
            f"{summary['primary_keys_to_delete_from_left']} delete left"
        )

        return result

    def _reconcile_left_rows(self, context: _SyncContext, result: SyncResult) -> None:
        left = context.left

        for left_row in left.rows:
            right_row = self.matcher.find_right_counterpart(
                left_row,
                context.right.rows,
                left.comparison_columns,
                context.mapper
            )

            if right_row is None:
                result.rows_to_add_to_right.append(context.payload_for_right(left_row))
                continue

            decision = self.decide(context, left_row, right_row)
            logger.debug(f"Matched pair decision: {decision.value} for {left_row!r}")

            if decision is Decision.DELETE_RIGHT:
                result.primary_keys_to_delete_from_right.append(
                    self._primary_key_value(right_row, context.right_primary_key, "right")
                )
            elif decision is Decision.DELETE_LEFT:
                result.primary_keys_to_delete_from_left.append(
                    self._primary_key_value(left_row, left.primary_key, "left")
                )
            elif decision is Decision.UPDATE_RIGHT:
                result.rows_to_update_on_right.append(context.payload_for_right(left_row))
            elif decision is Decision.UPDATE_LEFT:
                result.rows_to_update_on_left.append(context.payload_for_left(right_row))

    def _add_missing_right_rows(self, context: _SyncContext, result: SyncResult) -> None:
        for right_row in context.right.rows:
            left_row = self.matcher.find_left_counterpart(
                right_row,
                context.left.rows,
                context.left.comparison_columns,
                context.mapper
            )

            if left_row is None:
                result.rows_to_add_to_left.append(context.payload_for_left(right_row))

    def decide(self, context: _SyncContext, left_row: Row, right_row: Row) -> Decision:
        """
        Apply the conflict rules to a matched pair.

        Raises:
            MissingTimestamp: Either row has no updated-at value
            InvalidTimestamp: The timestamps cannot be ordered
        """
        left_timestamps = self._timestamps(
            left_row, context.left.updated_at, context.left.deleted_at, "left"
        )
        right_timestamps = self._timestamps(
            right_row, context.right_updated_at, context.right_deleted_at, "right"
        )

        try:
            return resolve_conflict(left_timestamps, right_timestamps, self.rules)
        except TypeError as e:
            side, column, value = self._unorderable_timestamp(
                context, left_timestamps, right_timestamps
            )
            raise InvalidTimestamp(side, column, value) from e

    def _unorderable_timestamp(
        self,
        context: _SyncContext,
        left: RowTimestamps,
        right: RowTimestamps
    ) -> Tuple[str, str, Any]:
        """
        Find the timestamp that cannot be ordered against the others.

        Each value is compared with a reference value, preferring a datetime
        and then a number; the first value that fails is the offender.
        """
        candidates = [
            ("left", context.left.updated_at, left.updated_at),
            ("left", context.left.deleted_at, left.deleted_at),
            ("right", context.right_updated_at, right.updated_at),
            ("right", context.right_deleted_at, right.deleted_at),
        ]
        candidates = [candidate for candidate in candidates if candidate[2] is not None]

        for kind in (datetime, (int, float)):
            reference = next(
                (
                    value for _, _, value in candidates
                    if isinstance(value, kind) and not isinstance(value, bool)
                ),
                None
            )
            if reference is None:
                continue

            for side, column, value in candidates:
                try:
                    value < reference
                except TypeError:
                    return side, column, value

        return candidates[-1]

    def _timestamps(
        self,
        row: Row,
        updated_at_column: str,
        deleted_at_column: str,
        side: str
    ) -> RowTimestamps:
        updated_at = row.get(updated_at_column)
        if updated_at is None:
            raise MissingTimestamp(side, updated_at_column)

        return RowTimestamps(
            updated_at=self.matcher.normalize_timestamp(updated_at),
            deleted_at=self.matcher.normalize_timestamp(row.get(deleted_at_column))
        )

    def _primary_key_value(self, row: Row, primary_key: str, side: str) -> Any:
        value = row.get(primary_key)
        if value is None:
            raise MissingPrimaryKey(side, primary_key)
        return value


def sync(left: LeftTable, right: RightTable) -> SyncResult:
    """Reconcile two table descriptors with a default engine."""
    return ReconciliationEngine().reconcile(left, right)
