#!/usr/bin/env python3
"""
Table Sync Tool

Reconciles a left and a right table described by a YAML job file and prints
the operations that converge them, with support for:
- Incremental runs from file-based checkpoints
- Strict descriptor validation
- Prometheus metrics and alert rule export
- Status of recorded checkpoints

Usage:
    ./scripts/reconcile.py reconcile --config job.yaml --left-rows left.json --right-rows right.json
    ./scripts/reconcile.py reconcile --config job.yaml --left-rows left.json --right-rows right.json --commit
    ./scripts/reconcile.py status
    ./scripts/reconcile.py alerts --output tablesync_alerts.yml
"""

import sys
import os
import argparse
import logging
import json
from datetime import datetime, timezone
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tablesync.config import checkpoint_dir_from_env, load_rows, load_sync_config
from tablesync.monitoring import AlertRuleGenerator, ReconciliationMetrics
from tablesync.runner import SyncRunner
from tablesync.sources import InMemoryRowSource
from tablesync.utils.checkpoint import FileCheckpointStore
from tablesync.utils.correlation import get_correlation_id, get_sync_table, setup_correlation_logging


class StructuredJSONFormatter(logging.Formatter):
    """JSON formatter with correlation ID support."""

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'correlation_id': getattr(record, 'correlation_id', None) or get_correlation_id(),
            'sync_table': getattr(record, 'sync_table', None) or get_sync_table(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        # Extra fields set by the sync runner
        if hasattr(record, 'table'):
            log_data['table'] = record.table
        if hasattr(record, 'duration'):
            log_data['duration_seconds'] = record.duration
        if hasattr(record, 'operations'):
            log_data['operations'] = record.operations

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


logger = logging.getLogger("tablesync.cli")


def configure_logging(verbose: bool = False) -> None:
    """Attach a console or JSON handler to the root logger."""
    handler = logging.StreamHandler(sys.stderr)

    if os.getenv('JSON_LOGGING', 'false').lower() == 'true':
        handler.setFormatter(StructuredJSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(correlation_id)s %(sync_table)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    setup_correlation_logging(handler)

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def run_reconcile(args) -> int:
    config = load_sync_config(args.config)
    store = FileCheckpointStore(args.checkpoint_dir)

    left = load_rows(args.left_rows, config.left, config.left_timestamp_columns)
    right = load_rows(args.right_rows, config.right, config.right_timestamp_columns)

    metrics = None
    if args.metrics_port:
        metrics = ReconciliationMetrics()
        metrics.start_server(args.metrics_port)

    runner = SyncRunner(checkpoint_store=store, metrics=metrics, strict=args.strict)

    if args.incremental:
        source_left = InMemoryRowSource({left.name: [row.as_dict() for row in left.rows]})
        source_right = InMemoryRowSource({right.name: [row.as_dict() for row in right.rows]})
        result = runner.fetch_and_run(left, right, source_left, source_right)
    else:
        result = runner.run(left, right)

    print(json.dumps(result.to_dict(), indent=2, default=str))

    if args.commit:
        runner.commit(result)
        logger.info("Checkpoints committed; apply the printed operations before the next run")

    return 0


def run_status(args) -> int:
    store = FileCheckpointStore(args.checkpoint_dir)
    checkpoints = store.list_checkpoints()

    status = {
        "checkpoint_dir": str(store.checkpoint_dir),
        "tracked_tables": len(checkpoints),
        "checkpoints": checkpoints
    }
    print(json.dumps(status, indent=2))
    return 0


def run_alerts(args) -> int:
    generator = AlertRuleGenerator(
        stale_after_seconds=args.stale_after,
        delete_threshold=args.delete_threshold
    )
    generator.export_to_yaml(args.output)
    print(json.dumps(generator.get_alert_summary(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bi-directional table sync tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Reconcile command
    reconcile_parser = subparsers.add_parser("reconcile", help="Reconcile a table pair")
    reconcile_parser.add_argument("--config", required=True, help="YAML job file")
    reconcile_parser.add_argument("--left-rows", required=True, help="JSON file of left records")
    reconcile_parser.add_argument("--right-rows", required=True, help="JSON file of right records")
    reconcile_parser.add_argument("--incremental", action="store_true",
                                  help="Only consider rows changed since the last checkpoint")
    reconcile_parser.add_argument("--commit", action="store_true",
                                  help="Record checkpoints for both tables after the run")
    reconcile_parser.add_argument("--strict", action="store_true",
                                  help="Fail on descriptor validation issues")
    reconcile_parser.add_argument("--metrics-port", type=int, default=None,
                                  help="Expose Prometheus metrics on this port")

    # Status command
    subparsers.add_parser("status", help="Show recorded checkpoints")

    # Alerts command
    alerts_parser = subparsers.add_parser("alerts", help="Export Prometheus alert rules")
    alerts_parser.add_argument("--output", required=True, help="Output YAML file")
    alerts_parser.add_argument("--stale-after", type=int, default=3600,
                               help="Seconds without success before a sync is stale")
    alerts_parser.add_argument("--delete-threshold", type=int, default=100,
                               help="Deletes per hour that count as a bulk delete")

    parser.add_argument("--checkpoint-dir", default=checkpoint_dir_from_env(),
                        help="Checkpoint directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(args.verbose)

    commands = {
        "reconcile": run_reconcile,
        "status": run_status,
        "alerts": run_alerts,
    }

    try:
        return commands[args.command](args)

    except Exception as e:
        logger.error(f"Error: {e}", exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
