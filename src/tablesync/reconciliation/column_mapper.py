"""
Column Mapper for Table Reconciliation

Translates column names between the left and right tables given a partial
left-to-right name map. Unmapped names pass through unchanged.
"""

from typing import Any, Dict, Optional


def to_right(left_column: str, column_map: Optional[Dict[str, str]]) -> str:
    """
    Get the right table column name for a left table column.

    Args:
        left_column: Column name in the left table
        column_map: Partial map of left column names to right column names

    Returns:
        Mapped right column name, or the left name when unmapped
    """
    if not column_map:
        return left_column
    return column_map.get(left_column, left_column)


def to_left(right_column: str, column_map: Optional[Dict[str, str]]) -> str:
    """
    Get the left table column name for a right table column.

    Reverse lookup by value: the first left key mapped to ``right_column``
    wins, so the map must be injective for a well-defined answer.

    Args:
        right_column: Column name in the right table
        column_map: Partial map of left column names to right column names

    Returns:
        Left column name, or the right name when unmapped
    """
    if not column_map:
        return right_column

    for left_column, right_equivalent in column_map.items():
        if right_equivalent == right_column:
            return left_column

    return right_column


class ColumnMapper:
    """Column name translation bound to one left-to-right map."""

    def __init__(self, column_map: Optional[Dict[str, str]] = None):
        self.column_map = dict(column_map or {})

    def to_right(self, left_column: str) -> str:
        return to_right(left_column, self.column_map)

    def to_left(self, right_column: str) -> str:
        return to_left(right_column, self.column_map)

    def map_to_right(self, mapping: Dict[str, Any]) -> Dict[str, Any]:
        """Rename the keys of a left-side mapping to right-side names."""
        return {self.to_right(column): value for column, value in mapping.items()}

    def map_to_left(self, mapping: Dict[str, Any]) -> Dict[str, Any]:
        """Rename the keys of a right-side mapping to left-side names."""
        return {self.to_left(column): value for column, value in mapping.items()}

    def is_injective(self) -> bool:
        return len(set(self.column_map.values())) == len(self.column_map)
