"""
Persistent storage for the station workspace.

JsonFileStorage is a small key-value store backed by one JSON file (keys map
to strings). JsonSnapshotStore keeps the whole workspace under a single key
and rewrites it wholesale on every save.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from kalshi_brackets.config import DATA_FILE, STORAGE_KEY
from kalshi_brackets.core import SnapshotStore, StationData
from kalshi_brackets.data.schema import parse_workspace, workspace_to_entries

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """
    Key-value storage in a JSON file.

    Reads never raise: a missing or corrupt file reads as empty. Writes go
    through a temporary file and os.replace, so the file is either fully
    old or fully new.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path or DATA_FILE).expanduser()

    def _read_all(self) -> Dict[str, str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning(f"Could not read storage file {self.path}: {e}")
            return {}

        try:
            data = json.loads(text)
        except ValueError as e:
            logger.warning(f"Storage file {self.path} is not valid JSON: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a JSON object")
            return {}
        return data

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string for a key, or None."""
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        """
        Store a string under a key.

        Raises:
            OSError: If the file cannot be written
        """
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise


class JsonSnapshotStore(SnapshotStore):
    """
    Workspace persistence under a single storage key.

    The stored value is the JSON array produced by workspace_to_entries.
    """

    def __init__(self, storage: Optional[JsonFileStorage] = None, key: str = STORAGE_KEY):
        self.storage = storage or JsonFileStorage()
        self.key = key

    def load_entries(self) -> List:
        """Raw stored array; [] when missing, unparseable or not an array."""
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning(f"Stored value under {self.key!r} is not valid JSON, ignoring it")
            return []
        if not isinstance(parsed, list):
            logger.warning(f"Stored value under {self.key!r} is not an array, ignoring it")
            return []
        return parsed

    def load(self) -> Dict[str, StationData]:
        """Load and validate the workspace (defaults if nothing usable is stored)."""
        workspace = parse_workspace(self.load_entries())
        logger.debug(
            f"Loaded {sum(len(s.snapshots) for s in workspace.values())} snapshots "
            f"across {len(workspace)} stations"
        )
        return workspace

    def save_entries(self, entries: List) -> bool:
        """Write a raw array. Returns False (and logs) on failure."""
        try:
            text = json.dumps(entries, ensure_ascii=False, allow_nan=False)
            self.storage.set_item(self.key, text)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save workspace: {e}")
            return False
        return True

    def save(self, workspace: Dict[str, StationData], now: Optional[datetime] = None) -> bool:
        """Replace the stored workspace."""
        return self.save_entries(workspace_to_entries(workspace, now))
