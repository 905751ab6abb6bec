"""
Correlation IDs for Table Sync

Tags every log record of one sync run with the run's id and the table pair it
reconciles, so the fetch, reconcile and checkpoint steps of a run can be
followed in aggregated logs.
"""

import uuid
import contextvars
from typing import Optional
import logging

logger = logging.getLogger(__name__)

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'tablesync_correlation_id',
    default=None
)
_sync_table: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'tablesync_sync_table',
    default=None
)


def generate_correlation_id() -> str:
    """Generate a new run id (UUID4 string)."""
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID of the current sync run, if any."""
    return _correlation_id.get()


def get_sync_table() -> Optional[str]:
    """Get the table pair label of the current sync run, if any."""
    return _sync_table.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID in the current context.

    Args:
        correlation_id: Correlation ID to set

    Raises:
        ValueError: If correlation_id is empty or not a string
    """
    if not correlation_id or not isinstance(correlation_id, str):
        raise ValueError("Correlation ID must be a non-empty string")

    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)
    _sync_table.set(None)


class CorrelationContext:
    """
    Scopes a run id and a table pair label to one sync run.

    Both values are reset to what they were before the run on exit, so nested
    runs (a job reconciling several pairs) log under their own pair.
    """

    def __init__(self, correlation_id: Optional[str] = None, table: Optional[str] = None):
        """
        Initialize correlation context.

        Args:
            correlation_id: ID to use; a new one is generated when omitted
            table: Label of the table pair being reconciled, e.g. ``players/members``
        """
        self.correlation_id = correlation_id
        self.table = table
        self._tokens = []

    def __enter__(self) -> str:
        if not self.correlation_id:
            self.correlation_id = generate_correlation_id()
        elif not isinstance(self.correlation_id, str):
            raise ValueError("Correlation ID must be a non-empty string")

        self._tokens = [
            _correlation_id.set(self.correlation_id),
            _sync_table.set(self.table or get_sync_table()),
        ]

        logger.debug(f"Entered sync run {self.correlation_id} for {self.table or 'N/A'}")
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        id_token, table_token = self._tokens
        _sync_table.reset(table_token)
        _correlation_id.reset(id_token)
        logger.debug(f"Left sync run {self.correlation_id}")


def correlation_id_filter(record):
    """
    Stamp a log record with the current run id and table pair.

    Sets ``correlation_id`` and ``sync_table`` (``"N/A"`` outside a run).
    Always returns True.
    """
    record.correlation_id = get_correlation_id() or "N/A"
    record.sync_table = get_sync_table() or "N/A"
    return True


def setup_correlation_logging(handler: logging.Handler) -> None:
    """Configure a handler to stamp records with the run id and table pair."""
    handler.addFilter(correlation_id_filter)
