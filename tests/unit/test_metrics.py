"""
Unit tests for monitoring metrics module.
"""

import pytest
from prometheus_client import CollectorRegistry
from unittest.mock import patch

from tablesync.monitoring.metrics import OPERATION_LABELS, ReconciliationMetrics
from tablesync.reconciliation.models import SyncResult


class TestReconciliationMetrics:
    """Test suite for ReconciliationMetrics."""

    @pytest.fixture
    def registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def metrics(self, registry):
        return ReconciliationMetrics(registry=registry)

    @pytest.fixture
    def result(self):
        return SyncResult(
            rows_to_add_to_right=[{"name": "a"}, {"name": "b"}],
            primary_keys_to_delete_from_left=[7],
        )

    def test_init_with_custom_registry(self, registry, metrics):
        assert metrics.registry is registry
        assert metrics.namespace == "tablesync"

    def test_operation_labels_cover_every_bucket(self):
        assert set(OPERATION_LABELS) == set(SyncResult.BUCKETS)

    def test_record_sync_run(self, registry, metrics, result):
        metrics.record_sync_run("players/members", 0.25, result, left_rows=3, right_rows=1)

        assert registry.get_sample_value(
            "tablesync_sync_runs_total", {"table": "players/members", "status": "success"}
        ) == 1.0
        assert registry.get_sample_value(
            "tablesync_sync_operations_total", {"table": "players/members", "operation": "add_right"}
        ) == 2.0
        assert registry.get_sample_value(
            "tablesync_sync_operations_total", {"table": "players/members", "operation": "delete_left"}
        ) == 1.0
        assert registry.get_sample_value(
            "tablesync_sync_operations_total", {"table": "players/members", "operation": "update_right"}
        ) == 0.0
        assert registry.get_sample_value(
            "tablesync_rows_processed_total", {"table": "players/members", "side": "left"}
        ) == 3.0
        assert registry.get_sample_value(
            "tablesync_sync_duration_seconds_count", {"table": "players/members"}
        ) == 1.0
        assert registry.get_sample_value(
            "tablesync_last_success_timestamp_seconds", {"table": "players/members"}
        ) > 0

    def test_record_sync_failure(self, registry, metrics):
        metrics.record_sync_failure("players/members", "MissingTimestamp", 0.1)

        assert registry.get_sample_value(
            "tablesync_sync_runs_total", {"table": "players/members", "status": "failure"}
        ) == 1.0
        assert registry.get_sample_value(
            "tablesync_sync_errors_total", {"table": "players/members", "error_type": "MissingTimestamp"}
        ) == 1.0

    def test_custom_namespace(self, registry, result):
        metrics = ReconciliationMetrics(registry=registry, namespace="crm")
        metrics.record_sync_run("a/b", 0.1, result)

        assert registry.get_sample_value("crm_sync_runs_total", {"table": "a/b", "status": "success"}) == 1.0

    def test_start_server(self, metrics):
        with patch("tablesync.monitoring.metrics.start_http_server") as mock_start:
            metrics.start_server(9100)

        mock_start.assert_called_once_with(9100, registry=metrics.registry)

    def test_start_server_already_running(self, metrics):
        with patch("tablesync.monitoring.metrics.start_http_server",
                   side_effect=OSError("Address already in use")):
            metrics.start_server(9100)

    def test_start_server_other_error(self, metrics):
        with patch("tablesync.monitoring.metrics.start_http_server",
                   side_effect=OSError("Permission denied")):
            with pytest.raises(OSError):
                metrics.start_server(80)
