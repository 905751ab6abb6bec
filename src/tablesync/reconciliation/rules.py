"""
Conflict Rules for Table Reconciliation

Last-write-wins decision for a matched row pair, expressed as an ordered rule
table. Rules are evaluated in order and the first satisfied one wins, so the
outcomes are mutually exclusive. Comparisons are strict: equal timestamps are
never "after" each other and lead to no action.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple


class Decision(Enum):
    """Terminal state of a matched row pair."""
    DELETE_RIGHT = "delete_right"
    DELETE_LEFT = "delete_left"
    UPDATE_RIGHT = "update_right"
    UPDATE_LEFT = "update_left"
    NO_OP = "no_op"


@dataclass(frozen=True)
class RowTimestamps:
    """Timestamps of one row; ``deleted_at`` of None means not tombstoned."""

    updated_at: Any
    deleted_at: Any = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class ConflictRule:
    """One entry of the ordered rule table."""

    name: str
    decision: Decision
    predicate: Callable[[RowTimestamps, RowTimestamps], bool]


def _left_deleted_after_right_update(left: RowTimestamps, right: RowTimestamps) -> bool:
    return left.is_deleted and not right.is_deleted and right.updated_at < left.deleted_at


def _right_deleted_after_left_update(left: RowTimestamps, right: RowTimestamps) -> bool:
    return right.is_deleted and not left.is_deleted and left.updated_at < right.deleted_at


def _left_updated_last(left: RowTimestamps, right: RowTimestamps) -> bool:
    return (
        left.updated_at > right.updated_at
        and not right.is_deleted
        and right.updated_at < left.updated_at
    )


def _right_updated_last(left: RowTimestamps, right: RowTimestamps) -> bool:
    return (
        right.updated_at > left.updated_at
        and not left.is_deleted
        and left.updated_at < right.updated_at
    )


CONFLICT_RULES: Tuple[ConflictRule, ...] = (
    ConflictRule("left_tombstone_wins", Decision.DELETE_RIGHT, _left_deleted_after_right_update),
    ConflictRule("right_tombstone_wins", Decision.DELETE_LEFT, _right_deleted_after_left_update),
    ConflictRule("left_write_wins", Decision.UPDATE_RIGHT, _left_updated_last),
    ConflictRule("right_write_wins", Decision.UPDATE_LEFT, _right_updated_last),
)


def matching_rule(
    left: RowTimestamps,
    right: RowTimestamps,
    rules: Tuple[ConflictRule, ...] = CONFLICT_RULES
) -> Optional[ConflictRule]:
    """Return the first satisfied rule, or None when no rule applies."""
    for rule in rules:
        if rule.predicate(left, right):
            return rule
    return None


def resolve_conflict(
    left: RowTimestamps,
    right: RowTimestamps,
    rules: Tuple[ConflictRule, ...] = CONFLICT_RULES
) -> Decision:
    """
    Decide the terminal state of a matched pair.

    Args:
        left: Timestamps of the left row
        right: Timestamps of the right row
        rules: Ordered rule table

    Returns:
        Decision of the first satisfied rule, or ``Decision.NO_OP``

    Raises:
        TypeError: If the timestamps cannot be ordered against each other
    """
    rule = matching_rule(left, right, rules)
    return rule.decision if rule else Decision.NO_OP
