"""
Unit tests for reconciliation comparer module.

Tests identity matching of left and right rows.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.models import Row


class TestRowMatcher:
    """Test row matching functionality."""

    @pytest.fixture
    def matcher(self):
        """Create a RowMatcher instance."""
        from tablesync.reconciliation.comparer import RowMatcher
        return RowMatcher()

    @pytest.fixture
    def mapper(self):
        return ColumnMapper({"name": "full_name"})

    def test_equal_comparison_columns_match(self, matcher, mapper):
        left = Row.from_dict({"id": 1, "name": "John", "age": 30})
        right = Row.from_dict({"id": 9, "full_name": "John", "age": 31})

        assert matcher.matches(left, right, ["name"], mapper) is True

    def test_different_comparison_columns_do_not_match(self, matcher, mapper):
        left = Row.from_dict({"name": "John"})
        right = Row.from_dict({"full_name": "Jane"})

        assert matcher.matches(left, right, ["name"], mapper) is False

    def test_all_comparison_columns_must_match(self, matcher):
        left = Row.from_dict({"first": "John", "last": "Smith"})
        right = Row.from_dict({"first": "John", "last": "Doe"})

        assert matcher.matches(left, right, ["first", "last"], ColumnMapper()) is False

    def test_missing_columns_on_both_sides_match(self, matcher):
        left = Row.from_dict({"id": 1})
        right = Row.from_dict({"id": 2})

        assert matcher.matches(left, right, ["name"], ColumnMapper()) is True

    def test_missing_column_on_one_side_does_not_match(self, matcher):
        left = Row.from_dict({"name": "John"})
        right = Row.from_dict({"id": 2})

        assert matcher.matches(left, right, ["name"], ColumnMapper()) is False

    def test_empty_comparison_columns_match_everything(self, matcher):
        left = Row.from_dict({"name": "John"})
        right = Row.from_dict({"name": "Jane"})

        assert matcher.matches(left, right, [], ColumnMapper()) is True

    def test_uuid_does_not_match_its_string(self, matcher):
        uuid_str = "123e4567-e89b-12d3-a456-426614174000"
        left = Row.from_dict({"ref": UUID(uuid_str)})
        right = Row.from_dict({"ref": uuid_str})

        assert matcher.matches(left, right, ["ref"], ColumnMapper()) is False

    def test_equal_uuids_match(self, matcher):
        uuid_str = "123e4567-e89b-12d3-a456-426614174000"
        left = Row.from_dict({"ref": UUID(uuid_str)})
        right = Row.from_dict({"ref": UUID(uuid_str)})

        assert matcher.matches(left, right, ["ref"], ColumnMapper()) is True

    def test_number_does_not_match_its_string(self, matcher):
        left = Row.from_dict({"code": 42})
        right = Row.from_dict({"code": "42"})

        assert matcher.matches(left, right, ["code"], ColumnMapper()) is False

    def test_equal_decimals_match(self, matcher):
        left = Row.from_dict({"price": Decimal("10.50")})
        right = Row.from_dict({"price": Decimal("10.5")})

        assert matcher.matches(left, right, ["price"], ColumnMapper()) is True

    def test_naive_datetime_treated_as_utc(self, matcher):
        left = Row.from_dict({"born": datetime(2000, 1, 1, 12, 0)})
        right = Row.from_dict({"born": datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)})

        assert matcher.matches(left, right, ["born"], ColumnMapper()) is True

    def test_equal_nested_collections_match(self, matcher):
        left = Row.from_dict({"tags": ["a", {"k": Decimal("1.0")}]})
        right = Row.from_dict({"tags": ["a", {"k": Decimal("1")}]})

        assert matcher.matches(left, right, ["tags"], ColumnMapper()) is True

    def test_list_length_mismatch(self, matcher):
        left = Row.from_dict({"tags": ["a", "b"]})
        right = Row.from_dict({"tags": ["a"]})

        assert matcher.matches(left, right, ["tags"], ColumnMapper()) is False

    def test_find_right_counterpart_returns_first_match(self, matcher, mapper):
        left = Row.from_dict({"name": "John"})
        first = Row.from_dict({"id": 1, "full_name": "John"})
        second = Row.from_dict({"id": 2, "full_name": "John"})

        found = matcher.find_right_counterpart(left, [Row.from_dict({"full_name": "Jane"}), first, second], ["name"], mapper)

        assert found is first

    def test_find_right_counterpart_none(self, matcher, mapper):
        left = Row.from_dict({"name": "John"})

        assert matcher.find_right_counterpart(left, [], ["name"], mapper) is None

    def test_find_left_counterpart(self, matcher, mapper):
        right = Row.from_dict({"full_name": "Jane"})
        jane = Row.from_dict({"name": "Jane"})

        assert matcher.find_left_counterpart(right, [Row.from_dict({"name": "John"}), jane], ["name"], mapper) is jane

    def test_normalize_timestamp(self, matcher):
        naive = datetime(2024, 1, 1)

        assert matcher.normalize_timestamp(naive).tzinfo is timezone.utc
        assert matcher.normalize_timestamp(None) is None
        assert matcher.normalize_timestamp(5) == 5
