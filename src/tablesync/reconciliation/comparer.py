"""
Row Matcher for Table Reconciliation

Decides whether a left row and a right row denote the same logical entity by
comparing the configured comparison columns through the column mapper.
Values compare with plain equality; naive datetimes are read as UTC.
"""

import logging
from typing import Any, List, Optional, Sequence
from datetime import datetime, timezone

from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.models import Row

logger = logging.getLogger(__name__)


class RowMatcher:
    """
    Identity join between left and right rows.

    Nested-loop matching, O(L x R) per direction: fine for batch sizes,
    not for continuous high-volume streams.
    """

    def __init__(self):
        """Initialize the row matcher."""
        logger.debug("Initialized RowMatcher")

    def matches(
        self,
        left_row: Row,
        right_row: Row,
        comparison_columns: Sequence[str],
        mapper: ColumnMapper
    ) -> bool:
        """
        Check whether two rows denote the same entity.

        Args:
            left_row: Row from the left table
            right_row: Row from the right table
            comparison_columns: Left-side names of the identity columns
            mapper: Column mapper for the table pair

        Returns:
            True if every comparison column holds equal values on both sides
        """
        for column in comparison_columns:
            left_value = self._normalize_value(left_row.get(column))
            right_value = self._normalize_value(right_row.get(mapper.to_right(column)))

            if left_value != right_value:
                return False

        return True

    def find_right_counterpart(
        self,
        left_row: Row,
        right_rows: List[Row],
        comparison_columns: Sequence[str],
        mapper: ColumnMapper
    ) -> Optional[Row]:
        """Return the first right row matching ``left_row``, or None."""
        for right_row in right_rows:
            if self.matches(left_row, right_row, comparison_columns, mapper):
                return right_row
        return None

    def find_left_counterpart(
        self,
        right_row: Row,
        left_rows: List[Row],
        comparison_columns: Sequence[str],
        mapper: ColumnMapper
    ) -> Optional[Row]:
        """Return the first left row matching ``right_row``, or None."""
        for left_row in left_rows:
            if self.matches(left_row, right_row, comparison_columns, mapper):
                return left_row
        return None

    def normalize_timestamp(self, value: Any) -> Any:
        """Normalize a timestamp for ordering comparisons (naive means UTC)."""
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def _normalize_value(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return self.normalize_timestamp(value)
        return value
