"""
Sync Job Configuration for Table Sync

Loads table descriptor metadata from YAML job files and row records from JSON
files. Example job file::

    left:
      name: players
      primary_key: id
      created_at: createdAt
      updated_at: updatedAt
      deleted_at: deletedAt
      comparison_columns: [name]
      column_map: {teamId: squadId}
      foreign_key_columns: [teamId]
      denormalisation_details:
        - column: teamId
          entries:
            - {value: 1, label: Red Team}
    right:
      name: members
      foreign_key_columns: [squadId]
      denormalisation_details:
        - column: squadId
          entries:
            - {value: 7, label: Red Team}
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import yaml

from tablesync.reconciliation.column_mapper import ColumnMapper
from tablesync.reconciliation.errors import InvalidSyncConfig
from tablesync.reconciliation.models import (
    DenormalisationDetail,
    DenormalisationEntry,
    LeftTable,
    RightTable,
    TableDescriptor,
)
from tablesync.utils.checkpoint import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_DIR = ".tablesync"

_LEFT_FIELDS = {
    "name", "primary_key", "created_at", "updated_at", "deleted_at",
    "comparison_columns", "column_map", "foreign_key_columns", "denormalisation_details",
}
_RIGHT_FIELDS = {"name", "foreign_key_columns", "denormalisation_details"}


@dataclass
class SyncConfig:
    """Descriptor metadata for one left/right table pair (rows not loaded)."""

    left: LeftTable
    right: RightTable

    @property
    def right_timestamp_columns(self) -> List[str]:
        mapper = ColumnMapper(self.left.column_map)
        return [
            mapper.to_right(column)
            for column in (self.left.created_at, self.left.updated_at, self.left.deleted_at)
        ]

    @property
    def left_timestamp_columns(self) -> List[str]:
        return [self.left.created_at, self.left.updated_at, self.left.deleted_at]


def checkpoint_dir_from_env() -> str:
    """Checkpoint directory from TABLESYNC_CHECKPOINT_DIR, or the default."""
    return os.getenv("TABLESYNC_CHECKPOINT_DIR", DEFAULT_CHECKPOINT_DIR)


def _require_list(section: str, key: str, value: Any) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidSyncConfig(f"'{section}.{key}' must be a list")
    return value


def _parse_details(section: str, raw: Any) -> Optional[List[DenormalisationDetail]]:
    if raw is None:
        return None

    details = []
    for index, item in enumerate(_require_list(section, "denormalisation_details", raw)):
        if not isinstance(item, dict) or "column" not in item:
            raise InvalidSyncConfig(
                f"'{section}.denormalisation_details[{index}]' must be a mapping with a 'column'"
            )

        entries = []
        for entry in _require_list(section, f"denormalisation_details[{index}].entries", item.get("entries")):
            if not isinstance(entry, dict) or "value" not in entry or "label" not in entry:
                raise InvalidSyncConfig(
                    f"Entries of '{section}.denormalisation_details[{index}]' "
                    f"need 'value' and 'label'"
                )
            entries.append(DenormalisationEntry(entry["value"], entry["label"]))

        details.append(DenormalisationDetail(item["column"], entries))
    return details


def _check_section(section: str, raw: Any, allowed: set) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise InvalidSyncConfig(f"'{section}' section must be a mapping")
    if "name" not in raw:
        raise InvalidSyncConfig(f"'{section}.name' is required")

    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise InvalidSyncConfig(f"Unknown keys in '{section}': {unknown}")
    return raw


def parse_sync_config(data: Any) -> SyncConfig:
    """
    Build descriptor metadata from a parsed job configuration.

    Args:
        data: Mapping with 'left' and 'right' sections

    Returns:
        SyncConfig with empty row lists

    Raises:
        InvalidSyncConfig: If the configuration is malformed
    """
    if not isinstance(data, dict):
        raise InvalidSyncConfig("Sync configuration must be a mapping")

    left_raw = _check_section("left", data.get("left"), _LEFT_FIELDS)
    right_raw = _check_section("right", data.get("right"), _RIGHT_FIELDS)

    column_map = left_raw.get("column_map")
    if column_map is not None and not isinstance(column_map, dict):
        raise InvalidSyncConfig("'left.column_map' must be a mapping")

    left_kwargs = {
        key: left_raw[key]
        for key in ("primary_key", "created_at", "updated_at", "deleted_at")
        if key in left_raw
    }

    left = LeftTable(
        name=left_raw["name"],
        comparison_columns=_require_list("left", "comparison_columns", left_raw.get("comparison_columns")),
        column_map=column_map,
        foreign_key_columns=_require_list("left", "foreign_key_columns", left_raw.get("foreign_key_columns")),
        denormalisation_details=_parse_details("left", left_raw.get("denormalisation_details")),
        **left_kwargs
    )
    right = RightTable(
        name=right_raw["name"],
        foreign_key_columns=_require_list("right", "foreign_key_columns", right_raw.get("foreign_key_columns")),
        denormalisation_details=_parse_details("right", right_raw.get("denormalisation_details")),
    )

    return SyncConfig(left=left, right=right)


def load_sync_config(path: str) -> SyncConfig:
    """
    Load a YAML job configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        SyncConfig

    Raises:
        InvalidSyncConfig: If the file cannot be parsed or is malformed
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidSyncConfig(f"Failed to parse sync configuration {path}: {e}") from e

    config = parse_sync_config(data)
    logger.info(f"Loaded sync configuration {config.left.name} <-> {config.right.name} from {path}")
    return config


def load_rows(
    path: str,
    table: TableDescriptor,
    timestamp_columns: Sequence[str] = ()
) -> TableDescriptor:
    """
    Load JSON records into a table descriptor's rows.

    ISO-8601 strings in ``timestamp_columns`` are parsed into datetimes, and
    foreign key cells are labelled from the table's own details.

    Args:
        path: JSON file holding a list of records
        table: Descriptor whose rows are replaced
        timestamp_columns: Columns holding timestamps

    Returns:
        The same descriptor, with rows loaded
    """
    with open(path, 'r') as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise InvalidSyncConfig(f"Row file {path} must contain a JSON list of records")

    rows = []
    for record in records:
        record = dict(record)
        for column in timestamp_columns:
            if isinstance(record.get(column), str):
                record[column] = parse_timestamp(record[column])
        rows.append(table.row_from_record(record))

    table.rows = rows
    logger.info(f"Loaded {len(rows)} rows for {table.name} from {path}")
    return table
