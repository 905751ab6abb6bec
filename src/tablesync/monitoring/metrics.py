"""
Prometheus Metrics for Table Sync

Tracks sync runs, proposed operations, failures and durations per table pair.
Metrics live on an injectable registry and can be exposed for scraping.
"""

import logging
import time
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, REGISTRY, start_http_server

from tablesync.reconciliation.models import SyncResult

logger = logging.getLogger(__name__)

OPERATION_LABELS = {
    "rows_to_add_to_right": "add_right",
    "rows_to_add_to_left": "add_left",
    "rows_to_update_on_right": "update_right",
    "rows_to_update_on_left": "update_left",
    "primary_keys_to_delete_from_right": "delete_right",
    "primary_keys_to_delete_from_left": "delete_left",
}


class ReconciliationMetrics:
    """Prometheus metrics for sync runs."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "tablesync"):
        """
        Initialize reconciliation metrics.

        Args:
            registry: Registry to register metrics on (default registry if None)
            namespace: Metric name prefix
        """
        self.registry = registry if registry is not None else REGISTRY
        self.namespace = namespace

        self.sync_runs_total = Counter(
            f'{namespace}_sync_runs_total',
            'Total number of sync runs',
            ['table', 'status'],
            registry=self.registry
        )

        self.sync_operations_total = Counter(
            f'{namespace}_sync_operations_total',
            'Total operations proposed by sync runs',
            ['table', 'operation'],
            registry=self.registry
        )

        self.sync_duration_seconds = Histogram(
            f'{namespace}_sync_duration_seconds',
            'Duration of sync runs in seconds',
            ['table'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300],
            registry=self.registry
        )

        self.rows_processed_total = Counter(
            f'{namespace}_rows_processed_total',
            'Total rows considered by sync runs',
            ['table', 'side'],
            registry=self.registry
        )

        self.sync_errors_total = Counter(
            f'{namespace}_sync_errors_total',
            'Total failed sync runs by error type',
            ['table', 'error_type'],
            registry=self.registry
        )

        self.last_success_timestamp = Gauge(
            f'{namespace}_last_success_timestamp_seconds',
            'Unix time of the last successful sync run',
            ['table'],
            registry=self.registry
        )

        logger.info("ReconciliationMetrics initialized")

    def record_sync_run(
        self,
        table: str,
        duration_seconds: float,
        result: SyncResult,
        left_rows: int = 0,
        right_rows: int = 0
    ) -> None:
        """
        Record a successful sync run.

        Args:
            table: Table pair label
            duration_seconds: Duration in seconds
            result: Result of the run
            left_rows: Left rows considered
            right_rows: Right rows considered
        """
        self.sync_runs_total.labels(table=table, status='success').inc()
        self.sync_duration_seconds.labels(table=table).observe(duration_seconds)

        for bucket, count in result.summary().items():
            self.sync_operations_total.labels(
                table=table,
                operation=OPERATION_LABELS[bucket]
            ).inc(count)

        self.rows_processed_total.labels(table=table, side='left').inc(left_rows)
        self.rows_processed_total.labels(table=table, side='right').inc(right_rows)
        self.last_success_timestamp.labels(table=table).set(time.time())

        logger.debug(
            f"Recorded sync metrics for {table}: duration={duration_seconds}s, "
            f"operations={result.summary()}"
        )

    def record_sync_failure(
        self,
        table: str,
        error_type: str,
        duration_seconds: float
    ) -> None:
        """
        Record a failed sync run.

        Args:
            table: Table pair label
            error_type: Exception class name
            duration_seconds: Time spent before failing
        """
        self.sync_runs_total.labels(table=table, status='failure').inc()
        self.sync_errors_total.labels(table=table, error_type=error_type).inc()
        self.sync_duration_seconds.labels(table=table).observe(duration_seconds)

    def start_server(self, port: int = 9090) -> None:
        """Start Prometheus metrics HTTP server."""
        try:
            start_http_server(port, registry=self.registry)
            logger.info(f"Metrics server started on port {port}")
        except OSError as e:
            if "Address already in use" in str(e):
                logger.warning(f"Metrics server already running on port {port}")
            else:
                raise
