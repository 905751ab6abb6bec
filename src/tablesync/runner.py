"""
Sync Runner for Table Sync

Wraps the pure reconciliation engine with the operational steps of a run:
descriptor validation, incremental fetching, correlation IDs, metrics and
checkpoints. Applying the result to either table stays with the caller.
"""

import dataclasses
import logging
import time
from datetime import datetime
from typing import Optional

from tablesync.monitoring.metrics import ReconciliationMetrics
from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.engine import ReconciliationEngine
from tablesync.reconciliation.errors import SyncError
from tablesync.reconciliation.models import LeftTable, RightTable, SyncResult
from tablesync.sources.base import RowSource
from tablesync.utils.checkpoint import CheckpointStore, build_sync_filter
from tablesync.utils.correlation import CorrelationContext
from tablesync.utils.descriptor_validator import DescriptorValidator

logger = logging.getLogger(__name__)


class SyncRunner:
    """Runs reconciliations of table pairs and records their outcome."""

    def __init__(
        self,
        engine: Optional[ReconciliationEngine] = None,
        checkpoint_store: Optional[CheckpointStore] = None,
        metrics: Optional[ReconciliationMetrics] = None,
        strict: bool = False,
        validator: Optional[DescriptorValidator] = None
    ):
        """
        Initialize the sync runner.

        Args:
            engine: Reconciliation engine (default engine if None)
            checkpoint_store: Store for last sync times (no incremental fetch if None)
            metrics: Metrics recorder (no metrics if None)
            strict: Raise on descriptor validation issues instead of warning
            validator: Descriptor validator
        """
        self.engine = engine or ReconciliationEngine()
        self.checkpoint_store = checkpoint_store
        self.metrics = metrics
        self.strict = strict
        self.validator = validator or DescriptorValidator()

    @staticmethod
    def pair_label(left: LeftTable, right: RightTable) -> str:
        return f"{left.name}/{right.name}"

    def run(self, left: LeftTable, right: RightTable) -> SyncResult:
        """
        Validate and reconcile a descriptor pair.

        Args:
            left: Left table descriptor with rows
            right: Right table descriptor with rows

        Returns:
            SyncResult

        Raises:
            DescriptorValidationError: Validation failed in strict mode
            SyncError: Reconciliation failed
        """
        table = self.pair_label(left, right)

        with CorrelationContext(table=table) as correlation_id:
            logger.info(f"Starting sync {table} (correlation_id={correlation_id})")
            start_time = time.time()

            try:
                if self.strict:
                    self.validator.validate_or_raise(left, right)
                else:
                    for issue in self.validator.validate(left, right):
                        logger.warning(f"Descriptor issue for {table}: {issue}")

                result = self.engine.reconcile(left, right)

            except SyncError as e:
                duration = time.time() - start_time
                logger.error(f"Sync {table} failed after {duration:.3f}s: {e}")
                if self.metrics:
                    self.metrics.record_sync_failure(table, type(e).__name__, duration)
                raise

            except Exception as e:
                duration = time.time() - start_time
                logger.error(f"Unexpected error during sync {table}: {e}", exc_info=True)
                if self.metrics:
                    self.metrics.record_sync_failure(table, type(e).__name__, duration)
                raise

            duration = time.time() - start_time
            if self.metrics:
                self.metrics.record_sync_run(
                    table=table,
                    duration_seconds=duration,
                    result=result,
                    left_rows=len(left.rows),
                    right_rows=len(right.rows)
                )

            logger.info(
                f"Sync {table} completed in {duration:.3f}s",
                extra={"table": table, "duration": duration, "operations": result.summary()}
            )
            return result

    def fetch_and_run(
        self,
        left: LeftTable,
        right: RightTable,
        left_source: RowSource,
        right_source: RowSource,
        incremental: bool = True
    ) -> SyncResult:
        """
        Fetch rows for both sides and reconcile them.

        The given descriptors supply metadata only; their rows are replaced by
        the fetched ones on copies, so the inputs are left untouched.

        Args:
            left: Left table descriptor
            right: Right table descriptor
            left_source: Source of left records
            right_source: Source of right records
            incremental: Only fetch rows changed since the last checkpoint

        Returns:
            SyncResult
        """
        left_filter = None
        right_filter = None

        if incremental and self.checkpoint_store is not None:
            mapper = ColumnMapper(left.column_map)
            left_filter = build_sync_filter(
                self.checkpoint_store,
                left.name,
                created_at=left.created_at,
                updated_at=left.updated_at,
                deleted_at=left.deleted_at
            )
            right_filter = build_sync_filter(
                self.checkpoint_store,
                right.name,
                created_at=mapper.to_right(left.created_at),
                updated_at=mapper.to_right(left.updated_at),
                deleted_at=mapper.to_right(left.deleted_at)
            )

        left_records = left_source.fetch_rows(left.name, sync_filter=left_filter)
        right_records = right_source.fetch_rows(right.name, sync_filter=right_filter)

        left = dataclasses.replace(
            left, rows=[left.row_from_record(record) for record in left_records]
        )
        right = dataclasses.replace(
            right, rows=[right.row_from_record(record) for record in right_records]
        )

        return self.run(left, right)

    def commit(self, result: SyncResult, sync_time: Optional[datetime] = None) -> None:
        """
        Record checkpoints for an applied result.

        Args:
            result: Result the caller has applied to both tables
            sync_time: Time to record (defaults to now)

        Raises:
            ValueError: If the runner has no checkpoint store
        """
        if self.checkpoint_store is None:
            raise ValueError("SyncRunner has no checkpoint store to commit to")

        result.update_sync_times(self.checkpoint_store, sync_time)
