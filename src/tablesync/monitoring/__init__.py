"""
Monitoring Module for Table Sync

Observability components for sync runs:
- Prometheus metrics for runs, operations and failures
- Alert rule definitions

Usage:
    from tablesync.monitoring import ReconciliationMetrics, AlertRuleGenerator

    metrics = ReconciliationMetrics()
    metrics.record_sync_run(table="players/members", duration_seconds=0.4, result=result)

    AlertRuleGenerator().export_to_yaml("tablesync_alerts.yml")
"""

from tablesync.monitoring.metrics import ReconciliationMetrics
from tablesync.monitoring.alerts import AlertRuleGenerator

__all__ = [
    "ReconciliationMetrics",
    "AlertRuleGenerator",
]
