"""
Denormalization Resolver for Table Reconciliation

The two sides may use unrelated surrogate keys for the same referenced entity
(left teamId=2 and right teamId=3 both meaning "Blue Team"). Foreign key values
crossing sides are translated through the shared label, never by comparing raw
ids directly.
"""

import logging
from typing import Any

from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.errors import (
    MissingColumnDenormalization,
    MissingDenormalizationDetails,
    UnresolvableDenormalizedValue,
)
from tablesync.reconciliation.models import Cell, LeftTable, RightTable, TableDescriptor

logger = logging.getLogger(__name__)


class DenormalizationResolver:
    """Translates foreign key values between the left and right tables."""

    def __init__(
        self,
        left_table: LeftTable,
        right_table: RightTable,
        mapper: ColumnMapper = None
    ):
        self.left_table = left_table
        self.right_table = right_table
        self.mapper = mapper or ColumnMapper(left_table.column_map)

    def translate_for_right(self, cell: Cell) -> Any:
        """
        Produce the right table value for a left table cell.

        A null reference (no value and no label) translates to None without
        consulting the right table's denormalisation details, so it never
        raises even when those details are missing.

        Args:
            cell: Cell from a left table row

        Returns:
            The raw value, or the right side's native value for foreign keys

        Raises:
            MissingDenormalizationDetails: Right table provides no details
            MissingColumnDenormalization: No detail for the mapped column
            UnresolvableDenormalizedValue: No entry carries the cell's label
        """
        if cell.column not in self.left_table.foreign_key_columns:
            return cell.value

        right_column = self.mapper.to_right(cell.column)
        return self._translate(cell, self.right_table, "right", right_column)

    def translate_for_left(self, cell: Cell) -> Any:
        """
        Produce the left table value for a right table cell.

        Mirror of :meth:`translate_for_right` using the right table's foreign
        key columns and the left table's details. A null reference likewise
        translates to None without consulting them.
        """
        if cell.column not in self.right_table.foreign_key_columns:
            return cell.value

        left_column = self.mapper.to_left(cell.column)
        return self._translate(cell, self.left_table, "left", left_column)

    def _translate(
        self,
        cell: Cell,
        receiving_table: TableDescriptor,
        side: str,
        receiving_column: str
    ) -> Any:
        # A null reference has nothing to resolve
        if cell.value is None and cell.denormalised_value is None:
            return None

        if receiving_table.denormalisation_details is None:
            raise MissingDenormalizationDetails(side, receiving_column)

        detail = receiving_table.denormalisation_detail_for(receiving_column)
        if detail is None:
            raise MissingColumnDenormalization(side, receiving_column, cell.column)

        entry = detail.native_for(cell.denormalised_value)
        if entry is None:
            raise UnresolvableDenormalizedValue(side, receiving_column, cell.denormalised_value)

        logger.debug(
            f"Translated {cell.column}={cell.value!r} ({cell.denormalised_value!r}) "
            f"to {side} {receiving_column}={entry.normalised_value!r}"
        )
        return entry.normalised_value
