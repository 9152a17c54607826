"""
Tests for the command-line interface.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from kalshi_brackets.cli.commands import main
from kalshi_brackets.core import WeightMode
from kalshi_brackets.data.store import JsonFileStorage, JsonSnapshotStore


# =============================================================================
# TEST DATA HELPERS
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the handler the CLI attaches to the runner's captured stderr."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "storage.json"


def run(data_file, *args):
    result = CliRunner().invoke(main, ["--data-file", str(data_file), *args])
    assert result.exception is None, result.output
    return result


def load(data_file):
    return JsonSnapshotStore(JsonFileStorage(data_file)).load()


# =============================================================================
# STATION AND SOURCE COMMANDS
# =============================================================================


class TestStationsAndSources:
    """Tests for listing stations and editing sources."""

    def test_stations(self, data_file):
        result = run(data_file, "stations")
        assert result.exit_code == 0
        for code in ("KAUS", "KMIA", "KDEN"):
            assert code in result.output

    def test_sources_defaults(self, data_file):
        result = run(data_file, "sources")
        assert "CBS Austin" in result.output
        assert "KXAN" in result.output

    def test_unknown_station(self, data_file):
        result = run(data_file, "sources", "--station", "XXXX")
        assert "not found" in result.output

    def test_source_add_set_remove(self, data_file):
        run(data_file, "source-add", "-s", "KMIA", "TWC", "91", "0.3")
        rows = load(data_file)["KMIA"].rows
        assert rows[-1].source == "TWC"
        assert rows[-1].id == 8

        run(data_file, "source-set", "-s", "KMIA", "8", "--forecast", "92.5")
        assert load(data_file)["KMIA"].rows[-1].forecast == 92.5

        run(data_file, "source-remove", "-s", "KMIA", "8")
        assert [r.source for r in load(data_file)["KMIA"].rows][-1] == "AW"

    def test_source_set_unknown_id(self, data_file):
        result = run(data_file, "source-set", "99", "--weight", "1")
        assert "no source with id 99" in result.output


# =============================================================================
# SCHEME COMMANDS
# =============================================================================


class TestScheme:
    """Tests for showing and editing the bracket scheme."""

    def test_default_scheme(self, data_file):
        result = run(data_file, "scheme")
        assert "inf" in result.output

    def test_set_scheme(self, data_file):
        run(data_file, "scheme-set", "cold:90,mild:95,hot:inf")
        scheme = load(data_file)["KAUS"].scheme
        assert [b.label for b in scheme] == ["cold", "mild", "hot"]

    def test_invalid_scheme(self, data_file):
        result = run(data_file, "scheme-set", "a:95,b:90")
        assert "Error" in result.output
        assert load(data_file)["KAUS"].scheme is None


# =============================================================================
# DISTRIBUTION AND SNAPSHOT COMMANDS
# =============================================================================


class TestSnapshots:
    """Tests for computing, saving and scoring snapshots."""

    def test_compute(self, data_file):
        result = run(data_file, "compute", "--manual")
        assert result.exit_code == 0
        assert "Total" in result.output

    def test_save_attach_and_accuracy(self, data_file):
        result = run(data_file, "save", "--name", "Morning")
        assert "Saved snapshot" in result.output

        snapshots = load(data_file)["KAUS"].snapshots
        assert len(snapshots) == 1
        snapshot_id = snapshots[0].id
        assert snapshots[0].name == "Morning"
        assert sum(snapshots[0].probs) == pytest.approx(1.0)

        run(data_file, "attach", "--value", "97", snapshot_id)
        assert load(data_file)["KAUS"].snapshots[0].actual == 97.0

        result = run(data_file, "accuracy")
        assert "1/1" in result.output

        result = run(data_file, "stats")
        assert "NWS" in result.output

        run(data_file, "clear", snapshot_id)
        assert load(data_file)["KAUS"].snapshots[0].actual is None

        run(data_file, "delete", snapshot_id)
        assert load(data_file)["KAUS"].snapshots == []

    def test_attach_non_numeric(self, data_file):
        run(data_file, "save")
        snapshot_id = load(data_file)["KAUS"].snapshots[0].id
        result = run(data_file, "attach", "--value", "warm", snapshot_id)
        assert "not a number" in result.output
        assert load(data_file)["KAUS"].snapshots[0].actual is None

    def test_attach_negative_value(self, data_file):
        run(data_file, "save", "-s", "KDEN")
        snapshot_id = load(data_file)["KDEN"].snapshots[0].id
        result = run(data_file, "attach", "-s", "KDEN", "--value", "-3", snapshot_id)
        assert "Attached -3 to 1 snapshots" in result.output
        assert load(data_file)["KDEN"].snapshots[0].actual == -3.0

    def test_load_sets_working_scheme(self, data_file):
        run(data_file, "scheme-set", "cold:90,hot:inf")
        run(data_file, "save")
        snapshot_id = load(data_file)["KAUS"].snapshots[0].id
        run(data_file, "scheme-set", "a:80,b:85,c:inf")

        result = run(data_file, "load", snapshot_id)
        assert "cold:90,hot:inf" in result.output
        assert [b.label for b in load(data_file)["KAUS"].scheme] == ["cold", "hot"]

    def test_load_restores_weight_mode(self, data_file):
        run(data_file, "save", "--manual", "--name", "Manual")
        manual_id = load(data_file)["KAUS"].snapshots[0].id
        assert load(data_file)["KAUS"].weight_mode is None

        run(data_file, "load", manual_id)
        assert load(data_file)["KAUS"].weight_mode == WeightMode.MANUAL

        # Later saves follow the restored mode unless a flag overrides it
        run(data_file, "save", "--name", "Follows")
        run(data_file, "save", "--auto", "--name", "Override")
        modes = {s.name: s.weight_mode for s in load(data_file)["KAUS"].snapshots}
        assert modes["Follows"] == WeightMode.MANUAL
        assert modes["Override"] == WeightMode.AUTO

    def test_stats_without_outcomes(self, data_file):
        result = run(data_file, "stats")
        assert "No outcomes" in result.output

    def test_snapshots_listing(self, data_file):
        result = run(data_file, "snapshots")
        assert "No snapshots" in result.output
        run(data_file, "save", "--name", "Noon")
        result = run(data_file, "snapshots")
        assert "Noon" in result.output


# =============================================================================
# BACKUP AND HEDGE COMMANDS
# =============================================================================


class TestBackupAndHedge:
    """Tests for export, import and the hedge calculator."""

    def test_export_then_import(self, data_file, tmp_path):
        run(data_file, "save", "--name", "Keep")
        result = run(data_file, "export", "--dir", str(tmp_path / "backups"))
        assert "Exported to" in result.output

        backup = next((tmp_path / "backups").glob("kaus_snapshots_backup_*.json"))
        other = tmp_path / "other.json"
        result = run(other, "import", str(backup))
        assert "Imported 1 snapshots" in result.output
        assert load(other)["KAUS"].snapshots[0].name == "Keep"

    def test_import_invalid(self, data_file, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"not": "a list"}))
        result = run(data_file, "import", str(bad))
        assert "Invalid backup file." in result.output

    def test_hedge(self, data_file):
        result = run(data_file, "hedge", "-d", "73_74=5.80")
        assert "73_74" in result.output
        assert "Total invested: $5.80" in result.output

    def test_hedge_bad_assignment(self, data_file):
        result = CliRunner().invoke(main, ["--data-file", str(data_file), "hedge", "-d", "73_74"])
        assert result.exit_code == 2

    def test_hedge_unknown_market(self, data_file):
        result = run(data_file, "hedge", "-d", "nope=1")
        assert "unknown markets" in result.output
