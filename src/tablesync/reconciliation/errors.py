"""
Sync Errors for Table Reconciliation

Exception hierarchy raised by the reconciliation engine and its collaborators.
Every error is fatal for the current invocation: no partial result is returned.
"""

from typing import Any, List, Optional


class SyncError(Exception):
    """Base class for all reconciliation failures."""
    pass


class ConfigurationError(SyncError):
    """Raised when a side lacks metadata the reconciliation needs."""
    pass


class MissingDenormalizationDetails(ConfigurationError):
    """Raised when the receiving side provides no denormalisation details at all."""

    def __init__(self, side: str, column: Optional[str] = None):
        self.side = side
        self.column = column
        message = f"{side.capitalize()} table does not provide denormalisation details"
        if column:
            message += f" (needed for foreign key column '{column}')"
        super().__init__(message)


class MissingColumnDenormalization(ConfigurationError):
    """Raised when the receiving side has no denormalisation detail for a column."""

    def __init__(self, side: str, column: str, source_column: str):
        self.side = side
        self.column = column
        self.source_column = source_column
        source_side = "left" if side == "right" else "right"
        super().__init__(
            f"{source_side.capitalize()} table has a foreign key column '{source_column}' "
            f"which in the {side} table is the '{column}' column, but the {side} table "
            f"does not provide denormalisation details for '{column}'"
        )


class InvalidSyncConfig(ConfigurationError):
    """Raised when a sync job configuration file is malformed."""
    pass


class DescriptorValidationError(ConfigurationError):
    """Raised when strict descriptor validation finds problems."""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__(
            f"Table descriptors failed validation with {len(self.issues)} issue(s): "
            + "; ".join(self.issues)
        )


class ResolutionError(SyncError):
    """Raised when denormalisation metadata exists but cannot resolve a label."""
    pass


class UnresolvableDenormalizedValue(ResolutionError):
    """Raised when no denormalisation entry matches the observed shared label."""

    def __init__(self, side: str, column: str, label: Any):
        self.side = side
        self.column = column
        self.label = label
        super().__init__(
            f"The {side} table does not provide denormalisation details for "
            f"'{column}' with the value '{label}'"
        )


class DataError(SyncError):
    """Raised when row data cannot support a conflict-resolution decision."""
    pass


class MissingTimestamp(DataError):
    """Raised when a matched row has no value for a required timestamp column."""

    def __init__(self, side: str, column: str):
        self.side = side
        self.column = column
        super().__init__(
            f"Timestamp column '{column}' has no value on a matched {side} table row"
        )


class InvalidTimestamp(DataError):
    """Raised when timestamps on the two sides cannot be compared."""

    def __init__(self, side: str, column: str, value: Any):
        self.side = side
        self.column = column
        self.value = value
        super().__init__(
            f"Timestamp column '{column}' on the {side} table holds a value that "
            f"cannot be compared: {value!r}"
        )


class MissingPrimaryKey(DataError):
    """Raised when a row selected for deletion carries no primary-key value."""

    def __init__(self, side: str, column: str):
        self.side = side
        self.column = column
        super().__init__(
            f"Primary key column '{column}' has no value on the {side} table row "
            f"selected for deletion"
        )
