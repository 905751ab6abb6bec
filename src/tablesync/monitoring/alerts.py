"""
Alert Rule Generator for Prometheus AlertManager

Generates alert rule definitions for table sync monitoring.
Rules cover failing runs, stale checkpoints and unusual delete volume.
"""

import logging
from typing import Dict, Any
import yaml

logger = logging.getLogger(__name__)


class AlertRuleGenerator:
    """Generates Prometheus AlertManager alert rules for table sync."""

    def __init__(
        self,
        namespace: str = "tablesync",
        stale_after_seconds: int = 3600,
        delete_threshold: int = 100
    ):
        """
        Initialize alert rule generator.

        Args:
            namespace: Metric name prefix used by ReconciliationMetrics
            stale_after_seconds: Age of the last success that counts as stale
            delete_threshold: Deletes per hour that count as a bulk delete
        """
        self.namespace = namespace
        self.stale_after_seconds = stale_after_seconds
        self.delete_threshold = delete_threshold
        logger.info("AlertRuleGenerator initialized")

    def generate_alert_rules(self) -> Dict[str, Any]:
        """
        Generate complete alert rule configuration.

        Returns:
            Dict with alert rule groups in Prometheus format
        """
        groups = [
            self._generate_failure_alerts(),
            self._generate_freshness_alerts(),
            self._generate_volume_alerts(),
        ]

        logger.info(f"Generated {len(groups)} alert rule groups")
        return {"groups": groups}

    def _generate_failure_alerts(self) -> Dict[str, Any]:
        ns = self.namespace
        return {
            "name": f"{ns}_failures",
            "interval": "1m",
            "rules": [
                {
                    "alert": "SyncRunFailing",
                    "expr": f"increase({ns}_sync_runs_total{{status=\"failure\"}}[15m]) > 0",
                    "for": "5m",
                    "labels": {
                        "severity": "critical",
                        "component": "reconciliation"
                    },
                    "annotations": {
                        "summary": "Table sync is failing",
                        "description": "Sync runs for {{ $labels.table }} failed in the last 15 minutes. Check denormalisation details and row timestamps."
                    }
                },
                {
                    "alert": "SyncUnresolvedForeignKeys",
                    "expr": f"increase({ns}_sync_errors_total{{error_type=\"UnresolvableDenormalizedValue\"}}[1h]) > 0",
                    "for": "0m",
                    "labels": {
                        "severity": "warning",
                        "component": "denormalization"
                    },
                    "annotations": {
                        "summary": "Foreign key labels cannot be resolved",
                        "description": "A sync of {{ $labels.table }} hit a foreign key label missing from the receiving side's lookup table."
                    }
                }
            ]
        }

    def _generate_freshness_alerts(self) -> Dict[str, Any]:
        ns = self.namespace
        return {
            "name": f"{ns}_freshness",
            "interval": "5m",
            "rules": [
                {
                    "alert": "SyncStale",
                    "expr": f"time() - {ns}_last_success_timestamp_seconds > {self.stale_after_seconds}",
                    "for": "10m",
                    "labels": {
                        "severity": "warning",
                        "component": "reconciliation"
                    },
                    "annotations": {
                        "summary": "Table sync has not succeeded recently",
                        "description": f"No successful sync of {{{{ $labels.table }}}} for more than {self.stale_after_seconds}s"
                    }
                }
            ]
        }

    def _generate_volume_alerts(self) -> Dict[str, Any]:
        ns = self.namespace
        return {
            "name": f"{ns}_volume",
            "interval": "5m",
            "rules": [
                {
                    "alert": "SyncBulkDelete",
                    "expr": f"sum by (table) (increase({ns}_sync_operations_total{{operation=~\"delete_.*\"}}[1h])) > {self.delete_threshold}",
                    "for": "0m",
                    "labels": {
                        "severity": "warning",
                        "component": "reconciliation"
                    },
                    "annotations": {
                        "summary": "Unusually many deletes proposed",
                        "description": f"Sync of {{{{ $labels.table }}}} proposed more than {self.delete_threshold} deletes in the last hour"
                    }
                }
            ]
        }

    def export_to_yaml(self, output_file: str) -> None:
        """
        Export alert rules to YAML file.

        Args:
            output_file: Path to output YAML file
        """
        rules = self.generate_alert_rules()

        with open(output_file, 'w') as f:
            yaml.dump(rules, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Alert rules exported to {output_file}")

    def get_alert_summary(self) -> Dict[str, int]:
        """
        Get summary of alert rules.

        Returns:
            Dict with counts by severity
        """
        rules = self.generate_alert_rules()

        summary = {
            "total_groups": len(rules["groups"]),
            "total_alerts": 0,
            "critical": 0,
            "warning": 0,
            "info": 0
        }

        for group in rules["groups"]:
            for rule in group["rules"]:
                summary["total_alerts"] += 1
                severity = rule["labels"].get("severity", "unknown")
                if severity in summary:
                    summary[severity] += 1

        return summary
