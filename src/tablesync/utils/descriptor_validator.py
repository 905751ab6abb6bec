"""
Descriptor Validator for Table Sync

Checks a left/right descriptor pair for configuration mistakes before a run.
The engine itself only fails on metadata it actually needs; validation
reports every problem up front.
"""

import logging
from collections import Counter
from typing import List

from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.errors import DescriptorValidationError
from tablesync.reconciliation.models import DenormalisationDetail, LeftTable, RightTable

logger = logging.getLogger(__name__)


class DescriptorValidator:
    """
    Validator for sync table descriptors.

    Reports comparison columns that overlap key or timestamp columns,
    non-injective column maps, foreign keys the other side cannot resolve
    and denormalisation details that are not bijections.
    """

    def validate(self, left: LeftTable, right: RightTable) -> List[str]:
        """
        Validate a descriptor pair.

        Args:
            left: Left table descriptor
            right: Right table descriptor

        Returns:
            List of human-readable issues (empty when valid)
        """
        mapper = ColumnMapper(left.column_map)
        issues: List[str] = []

        issues.extend(self._check_comparison_columns(left))

        if not mapper.is_injective():
            duplicates = sorted(
                value for value, count in Counter(mapper.column_map.values()).items()
                if count > 1
            )
            issues.append(
                f"Column map for '{left.name}' is not injective: "
                f"right columns {duplicates} have several left sources"
            )

        for column in left.foreign_key_columns:
            right_column = mapper.to_right(column)
            if right.denormalisation_detail_for(right_column) is None:
                issues.append(
                    f"Left foreign key '{column}' has no denormalisation detail "
                    f"for '{right_column}' on right table '{right.name}'"
                )

        for column in right.foreign_key_columns:
            left_column = mapper.to_left(column)
            if left.denormalisation_detail_for(left_column) is None:
                issues.append(
                    f"Right foreign key '{column}' has no denormalisation detail "
                    f"for '{left_column}' on left table '{left.name}'"
                )

        for table in (left, right):
            for detail in table.denormalisation_details or []:
                issues.extend(self._check_bijection(table.name, detail))

        if issues:
            logger.warning(f"Descriptor validation found {len(issues)} issue(s)")
        return issues

    def validate_or_raise(self, left: LeftTable, right: RightTable) -> None:
        """
        Validate a descriptor pair, raising on any issue.

        Raises:
            DescriptorValidationError: If any issue is found
        """
        issues = self.validate(left, right)
        if issues:
            raise DescriptorValidationError(issues)

    def _check_comparison_columns(self, left: LeftTable) -> List[str]:
        reserved = {
            left.primary_key: "primary key",
            left.created_at: "created-at",
            left.updated_at: "updated-at",
            left.deleted_at: "deleted-at",
        }

        issues = []
        if not left.comparison_columns:
            issues.append(
                f"Left table '{left.name}' has no comparison columns; every row would match"
            )

        for column in left.comparison_columns:
            if column in reserved:
                issues.append(
                    f"Comparison column '{column}' of '{left.name}' is the "
                    f"{reserved[column]} column"
                )
        return issues

    def _check_bijection(self, table_name: str, detail: DenormalisationDetail) -> List[str]:
        issues = []

        labels = Counter(entry.denormalised_value for entry in detail.entries)
        natives = Counter(entry.normalised_value for entry in detail.entries)

        for label, count in labels.items():
            if count > 1:
                issues.append(
                    f"Denormalisation detail '{detail.column}' of '{table_name}' "
                    f"repeats label '{label}'"
                )
        for native, count in natives.items():
            if count > 1:
                issues.append(
                    f"Denormalisation detail '{detail.column}' of '{table_name}' "
                    f"repeats value '{native}'"
                )
        return issues
