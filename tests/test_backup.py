"""
Tests for backup export and import.
"""

import json
from datetime import datetime, timezone

from kalshi_brackets.core import Snapshot, SourceRow, StationData, WeightMode
from kalshi_brackets.config import CONFIG_ENTRY_ID, DEFAULT_SCHEME
from kalshi_brackets.data.backup import (
    export_payload,
    export_filename,
    export_to_file,
    import_payload,
    import_from_file,
)
from kalshi_brackets.data.snapshots import create_snapshot
from kalshi_brackets.data.store import JsonFileStorage, JsonSnapshotStore


# =============================================================================
# TEST DATA HELPERS
# =============================================================================

NOW = datetime(2025, 7, 4, 15, 30, tzinfo=timezone.utc)


def make_workspace():
    snapshot = Snapshot(
        id="1751600000000",
        saved_at=datetime(2025, 7, 3, 12, 0, tzinfo=timezone.utc),
        name="7-3-25 (07:00)",
        scheme=list(DEFAULT_SCHEME),
        probs=[0.0, 0.05, 0.25, 0.5, 0.2, 0.0],
        weight_mode=WeightMode.AUTO,
        actual=97.0,
    )
    return {
        "KAUS": StationData(rows=[SourceRow(1, "NWS", 96.0, 1.0)], snapshots=[snapshot]),
        "KMIA": StationData(rows=[SourceRow(1, "WU", 91.0, 0.4)]),
    }


def make_store(tmp_path) -> JsonSnapshotStore:
    return JsonSnapshotStore(JsonFileStorage(tmp_path / "storage.json"))


# =============================================================================
# EXPORT TESTS
# =============================================================================


class TestExport:
    """Tests for writing backups."""

    def test_filename(self):
        assert export_filename(NOW) == "kaus_snapshots_backup_2025-07-04.json"

    def test_payload_refreshes_saved_at(self):
        entries = [{"id": "a", "savedAt": "2020-01-01T00:00:00.000Z"}, {"id": "b"}]
        payload = export_payload(entries, NOW)
        assert [e["savedAt"] for e in payload] == ["2025-07-04T15:30:00.000Z"] * 2
        assert entries[0]["savedAt"] == "2020-01-01T00:00:00.000Z"

    def test_write_file(self, tmp_path):
        path = export_to_file(make_workspace(), tmp_path / "out", NOW)
        assert path == tmp_path / "out" / "kaus_snapshots_backup_2025-07-04.json"

        text = path.read_text(encoding="utf-8")
        assert text.startswith("[\n  {")
        entries = json.loads(text)
        assert entries[0]["id"] == CONFIG_ENTRY_ID
        assert entries[0]["savedAt"] == "2025-07-04T15:30:00.000Z"
        assert set(entries[0]["tabSources"]) == {"KAUS", "KMIA"}

    def test_write_failure_returns_none(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        assert export_to_file(make_workspace(), blocker / "sub", NOW) is None


# =============================================================================
# IMPORT TESTS
# =============================================================================


class TestImport:
    """Tests for reading backups."""

    def test_round_trip(self, tmp_path):
        workspace = make_workspace()
        path = export_to_file(workspace, tmp_path, NOW)
        result = import_payload(path.read_text(encoding="utf-8"))

        assert result.ok
        assert result.workspace["KAUS"].snapshots == workspace["KAUS"].snapshots
        assert result.workspace["KMIA"].rows == workspace["KMIA"].rows
        assert result.snapshot_count == 1

    def test_round_trip_of_new_snapshot(self, tmp_path):
        now = datetime(2025, 7, 4, 15, 30, 12, 345678, tzinfo=timezone.utc)
        snapshot = create_snapshot("Noon", DEFAULT_SCHEME, [0.0, 0.1, 0.4, 0.4, 0.1, 0.0], now=now)
        workspace = {"KAUS": StationData(rows=[SourceRow(1, "NWS", 96.0, 1.0)], snapshots=[snapshot])}

        path = export_to_file(workspace, tmp_path, NOW)
        result = import_payload(path.read_text(encoding="utf-8"))

        assert result.ok
        assert result.workspace["KAUS"].snapshots == [snapshot]
        assert result.workspace["KAUS"].snapshots[0].saved_at.microsecond == 345000

    def test_unparseable(self):
        result = import_payload("{oops")
        assert not result.ok
        assert result.message == "Could not read file."
        assert result.workspace is None

    def test_not_an_array(self):
        result = import_payload('{"id": "tab_sources_config"}')
        assert not result.ok
        assert result.message == "Invalid backup file."

    def test_legacy_array(self):
        legacy = [{
            "id": "1",
            "savedAt": "2024-06-01T12:00:00.000Z",
            "name": "old",
            "scheme": [{"label": "≤91", "max": 91}, {"label": "92+", "max": None}],
            "probs": [0.4, 0.6],
            "rows": [{"id": 1, "source": "Old", "forecast": 92, "weight": 1}],
        }]
        result = import_payload(json.dumps(legacy))
        assert result.ok
        assert "legacy" in result.message
        assert [s.id for s in result.workspace["KAUS"].snapshots] == ["1"]
        assert result.workspace["KAUS"].rows[0].source == "CBS Austin"

    def test_import_from_file_persists(self, tmp_path):
        backup = export_to_file(make_workspace(), tmp_path / "backups", NOW)
        store = make_store(tmp_path)

        result = import_from_file(backup, store)
        assert result.ok
        assert result.saved
        assert len(store.load()["KAUS"].snapshots) == 1

    def test_invalid_file_leaves_store_alone(self, tmp_path):
        store = make_store(tmp_path)
        store.save(make_workspace())
        bad = tmp_path / "bad.json"
        bad.write_text('"not a list"')

        result = import_from_file(bad, store)
        assert not result.ok
        assert len(store.load()["KAUS"].snapshots) == 1

    def test_missing_file(self, tmp_path):
        result = import_from_file(tmp_path / "missing.json", make_store(tmp_path))
        assert not result.ok
        assert result.message == "Could not read file."
