"""
Backup export and import.

Export writes the workspace as a pretty-printed JSON array named
kaus_snapshots_backup_YYYY-MM-DD.json, with each top-level entry's savedAt
set to the export time. Import accepts that file, or any older layout the
schema layer knows how to migrate. Bad files never raise: the result carries
a user-facing message and the current state is left alone.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from kalshi_brackets.config import EXPORT_PREFIX
from kalshi_brackets.core import StationData
from kalshi_brackets.data.schema import (
    find_config_entry,
    format_timestamp,
    parse_workspace,
    workspace_to_entries,
)
from kalshi_brackets.data.store import JsonSnapshotStore

logger = logging.getLogger(__name__)

INVALID_FILE_MESSAGE = "Invalid backup file."
UNREADABLE_FILE_MESSAGE = "Could not read file."


@dataclass
class ImportResult:
    """Outcome of an import attempt."""
    ok: bool
    message: str
    workspace: Optional[Dict[str, StationData]] = None
    saved: bool = False

    @property
    def snapshot_count(self) -> int:
        if not self.workspace:
            return 0
        return sum(len(data.snapshots) for data in self.workspace.values())


# =============================================================================
# EXPORT
# =============================================================================


def export_payload(entries: List, now: Optional[datetime] = None) -> List:
    """Copy of the stored array with every entry's savedAt refreshed."""
    stamp = format_timestamp(now or datetime.now(timezone.utc))
    return [
        {**entry, "savedAt": stamp} if isinstance(entry, dict) else entry
        for entry in entries
    ]


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{EXPORT_PREFIX}_{now.strftime('%Y-%m-%d')}.json"


def export_to_file(
    workspace: Dict[str, StationData],
    directory: Union[str, Path] = ".",
    now: Optional[datetime] = None,
) -> Optional[Path]:
    """
    Write a backup of the workspace.

    Args:
        workspace: Current in-memory workspace
        directory: Destination directory (created if missing)
        now: Export time (default: current time)

    Returns:
        Path of the written file, or None if writing failed
    """
    now = now or datetime.now(timezone.utc)
    payload = export_payload(workspace_to_entries(workspace, now), now)
    path = Path(directory).expanduser() / export_filename(now)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        logger.error(f"Export failed: {e}")
        return None

    logger.info(f"Exported backup to {path}")
    return path


# =============================================================================
# IMPORT
# =============================================================================


def import_payload(text: str) -> ImportResult:
    """
    Parse backup text into a workspace.

    A configuration entry restores every station; a plain snapshot array is
    treated as legacy data for the default station.
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning(f"Backup is not valid JSON: {e}")
        return ImportResult(ok=False, message=UNREADABLE_FILE_MESSAGE)

    if not isinstance(parsed, list):
        logger.warning("Backup is not a JSON array")
        return ImportResult(ok=False, message=INVALID_FILE_MESSAGE)

    workspace = parse_workspace(parsed)
    layout = "station" if find_config_entry(parsed) is not None else "legacy"
    result = ImportResult(ok=True, message="", workspace=workspace)
    result.message = f"Imported {result.snapshot_count} snapshots ({layout} format)."
    return result


def import_from_file(path: Union[str, Path], store: JsonSnapshotStore) -> ImportResult:
    """
    Import a backup file and persist it as the new workspace.

    The stored workspace is only replaced when the file is valid. If the
    save itself fails the result stays ok (the workspace is still usable
    in memory) and `saved` is False.
    """
    try:
        text = Path(path).expanduser().read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read backup {path}: {e}")
        return ImportResult(ok=False, message=UNREADABLE_FILE_MESSAGE)

    result = import_payload(text)
    if not result.ok:
        return result

    result.saved = store.save(result.workspace)
    if not result.saved:
        result.message += " Saving to storage failed; changes are not persisted."
    return result
