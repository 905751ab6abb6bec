"""
Unit tests for descriptor_validator module.
"""

import pytest

from tablesync.reconciliation.errors import DescriptorValidationError
from tablesync.reconciliation.models import DenormalisationDetail
from tablesync.utils.descriptor_validator import DescriptorValidator


class TestDescriptorValidator:
    """Test descriptor validation."""

    @pytest.fixture
    def validator(self):
        return DescriptorValidator()

    def test_valid_pair(self, validator, make_left, make_right, left_team_detail, right_squad_detail):
        left = make_left(details=[left_team_detail])
        right = make_right(details=[right_squad_detail])

        assert validator.validate(left, right) == []
        validator.validate_or_raise(left, right)

    def test_no_comparison_columns(self, validator, plain_left, plain_right):
        issues = validator.validate(plain_left(comparison_columns=[]), plain_right())

        assert len(issues) == 1
        assert "no comparison columns" in issues[0]

    @pytest.mark.parametrize("column,kind", [
        ("id", "primary key"),
        ("updatedAt", "updated-at"),
        ("deletedAt", "deleted-at"),
    ])
    def test_comparison_column_overlaps_reserved_column(self, validator, plain_left, plain_right, column, kind):
        issues = validator.validate(plain_left(comparison_columns=[column]), plain_right())

        assert any(kind in issue for issue in issues)

    def test_non_injective_map(self, validator, plain_left, plain_right):
        left = plain_left(column_map={"a": "x", "b": "x"})

        issues = validator.validate(left, plain_right())

        assert any("not injective" in issue and "'x'" in issue for issue in issues)

    def test_foreign_keys_without_details(self, validator, make_left, make_right):
        issues = validator.validate(make_left(), make_right())

        assert any("Left foreign key 'teamId'" in issue and "squadId" in issue for issue in issues)
        assert any("Right foreign key 'squadId'" in issue and "teamId" in issue for issue in issues)

    def test_detail_that_is_not_a_bijection(self, validator, make_left, make_right, right_squad_detail):
        broken = DenormalisationDetail.from_pairs("teamId", [(1, "Red Team"), (2, "Red Team"), (2, "Blue Team")])

        issues = validator.validate(make_left(details=[broken]), make_right(details=[right_squad_detail]))

        assert any("repeats label 'Red Team'" in issue for issue in issues)
        assert any("repeats value '2'" in issue for issue in issues)

    def test_validate_or_raise(self, validator, plain_left, plain_right):
        with pytest.raises(DescriptorValidationError) as exc_info:
            validator.validate_or_raise(plain_left(comparison_columns=[]), plain_right())

        assert len(exc_info.value.issues) == 1
