"""
Pytest configuration and shared fixtures for unit and integration tests.

Provides timestamps and a players/members table pair where the left table
references teams through ``teamId`` and the right table through ``squadId``,
with unrelated surrogate ids on each side.
"""

import pytest
from datetime import datetime, timedelta, timezone

from tablesync.reconciliation.models import (
    DenormalisationDetail,
    LeftTable,
    RightTable,
    Row,
)
from tablesync.utils.correlation import clear_correlation_id


NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
YESTERDAY = NOW - timedelta(days=1)
LAST_WEEK = NOW - timedelta(days=7)


@pytest.fixture(autouse=True)
def reset_correlation_id():
    """Ensure no correlation ID leaks between tests."""
    clear_correlation_id()
    yield
    clear_correlation_id()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def yesterday():
    return YESTERDAY


@pytest.fixture
def last_week():
    return LAST_WEEK


@pytest.fixture
def left_team_detail():
    """Left teams: 1 is Red Team, 2 is Blue Team."""
    return DenormalisationDetail.from_pairs("teamId", [(1, "Red Team"), (2, "Blue Team")])


@pytest.fixture
def right_squad_detail():
    """Right squads: 3 is Blue Team, 7 is Red Team."""
    return DenormalisationDetail.from_pairs("squadId", [(3, "Blue Team"), (7, "Red Team")])


@pytest.fixture
def make_left():
    """Factory for a players table keyed on name, with teamId renamed to squadId."""

    def _make(rows=(), details=None, **overrides):
        kwargs = {
            "name": "players",
            "rows": list(rows),
            "comparison_columns": ["name"],
            "column_map": {"teamId": "squadId"},
            "foreign_key_columns": ["teamId"],
            "denormalisation_details": details,
        }
        kwargs.update(overrides)
        return LeftTable(**kwargs)

    return _make


@pytest.fixture
def make_right():
    """Factory for the members table mirroring ``make_left``."""

    def _make(rows=(), details=None, **overrides):
        kwargs = {
            "name": "members",
            "rows": list(rows),
            "foreign_key_columns": ["squadId"],
            "denormalisation_details": details,
        }
        kwargs.update(overrides)
        return RightTable(**kwargs)

    return _make


@pytest.fixture
def plain_left():
    """Factory for a left table without foreign keys or renamed columns."""

    def _make(rows=(), **overrides):
        kwargs = {"name": "players", "rows": list(rows), "comparison_columns": ["name"]}
        kwargs.update(overrides)
        return LeftTable(**kwargs)

    return _make


@pytest.fixture
def plain_right():
    def _make(rows=(), **overrides):
        kwargs = {"name": "members", "rows": list(rows)}
        kwargs.update(overrides)
        return RightTable(**kwargs)

    return _make


def player(id, name, updated_at, created_at=None, deleted_at=None, team=None, team_label=None, team_column="teamId"):
    """Build a player row; the team cell is only added when given."""
    values = {
        "id": id,
        "name": name,
        "createdAt": created_at or updated_at,
        "updatedAt": updated_at,
        "deletedAt": deleted_at,
    }
    labels = {}
    if team is not None or team_label is not None:
        values[team_column] = team
        labels[team_column] = team_label
    return Row.from_dict(values, labels)


@pytest.fixture
def make_player():
    return player
