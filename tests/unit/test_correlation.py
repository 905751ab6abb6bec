"""
Unit tests for correlation module.
"""

import logging

import pytest
import uuid
from tablesync.utils.correlation import (
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    CorrelationContext,
    correlation_id_filter,
    get_sync_table,
    setup_correlation_logging,
)


class TestCorrelationIdGeneration:
    """Test correlation ID generation functions."""

    def test_generate_correlation_id_returns_valid_uuid(self):
        """Test that generated correlation ID is a valid UUID."""
        correlation_id = generate_correlation_id()

        assert isinstance(correlation_id, str)
        assert len(correlation_id) == 36

        uuid_obj = uuid.UUID(correlation_id)
        assert str(uuid_obj) == correlation_id

    def test_generate_correlation_id_returns_unique_values(self):
        """Test that multiple generated IDs are unique."""
        id1 = generate_correlation_id()
        id2 = generate_correlation_id()

        assert id1 != id2


class TestCorrelationIdContext:
    """Test correlation ID context management."""

    def test_get_correlation_id_returns_none_when_not_set(self):
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        set_correlation_id("sync-run-123")

        assert get_correlation_id() == "sync-run-123"

    @pytest.mark.parametrize("value", ["", None, 12345])
    def test_set_invalid_correlation_id_raises_error(self, value):
        with pytest.raises(ValueError, match="non-empty string"):
            set_correlation_id(value)

    def test_clear_correlation_id(self):
        set_correlation_id("test-id")
        clear_correlation_id()

        assert get_correlation_id() is None


class TestCorrelationContext:
    """Test CorrelationContext context manager."""

    def test_context_creates_new_id(self):
        with CorrelationContext() as correlation_id:
            assert correlation_id is not None
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() is None

    def test_context_uses_provided_id(self):
        with CorrelationContext("custom-id-789") as correlation_id:
            assert correlation_id == "custom-id-789"
            assert get_correlation_id() == "custom-id-789"

    def test_nested_contexts(self):
        with CorrelationContext("outer"):
            with CorrelationContext("inner"):
                assert get_correlation_id() == "inner"

            assert get_correlation_id() == "outer"

        assert get_correlation_id() is None

    def test_context_clears_on_exception(self):
        with pytest.raises(RuntimeError):
            with CorrelationContext():
                raise RuntimeError("Test exception")

        assert get_correlation_id() is None

    def test_context_carries_table_pair(self):
        with CorrelationContext(table="players/members"):
            assert get_sync_table() == "players/members"

        assert get_sync_table() is None

    def test_nested_runs_restore_outer_table_pair(self):
        with CorrelationContext("outer", table="players/members"):
            with CorrelationContext("inner", table="teams/squads"):
                assert get_sync_table() == "teams/squads"

            assert get_correlation_id() == "outer"
            assert get_sync_table() == "players/members"

    def test_nested_context_without_table_keeps_outer_pair(self):
        with CorrelationContext(table="players/members"):
            with CorrelationContext():
                assert get_sync_table() == "players/members"


class TestCorrelationLogging:
    """Test log record stamping."""

    @pytest.fixture
    def record(self):
        return logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="test.py",
            lineno=1,
            msg="Test message",
            args=(),
            exc_info=None
        )

    def test_filter_when_no_id(self, record):
        assert correlation_id_filter(record) is True
        assert record.correlation_id == "N/A"
        assert record.sync_table == "N/A"

    def test_filter_with_id(self, record):
        with CorrelationContext("run-1", table="players/members"):
            correlation_id_filter(record)

        assert record.correlation_id == "run-1"
        assert record.sync_table == "players/members"

    def test_setup_correlation_logging_adds_filter(self):
        handler = logging.StreamHandler()

        setup_correlation_logging(handler)

        assert correlation_id_filter in handler.filters
