"""
tablesync - bi-directional reconciliation of two tables.

Computes the inserts, updates and deletes that converge a left and a right
table using identity matching, last-write-wins timestamps with tombstones, and
foreign key translation through shared labels.
"""

from tablesync.reconciliation import (
    LeftTable,
    ReconciliationEngine,
    RightTable,
    Row,
    SyncResult,
    sync,
)

__all__ = [
    "LeftTable",
    "ReconciliationEngine",
    "RightTable",
    "Row",
    "SyncResult",
    "sync",
]

__version__ = "1.0.0"
