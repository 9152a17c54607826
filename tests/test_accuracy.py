"""
Tests for the accuracy scorer.
"""

import math
from datetime import datetime, timezone

import pytest

from kalshi_brackets.core import Bracket, Snapshot
from kalshi_brackets.engine.accuracy import (
    calculate_accuracy,
    calculate_accuracy_trend,
    top_bracket_correct,
)


# =============================================================================
# TEST DATA HELPERS
# =============================================================================

SCHEME = [
    Bracket(label="≤91", max=91),
    Bracket(label="92–93", max=93),
    Bracket(label="94+", max=math.inf),
]


def make_snapshot(snapshot_id: str, probs, actual=None, day: int = 1, scheme=None) -> Snapshot:
    return Snapshot(
        id=snapshot_id,
        saved_at=datetime(2025, 7, day, 12, tzinfo=timezone.utc),
        name=snapshot_id,
        scheme=list(SCHEME if scheme is None else scheme),
        probs=list(probs),
        actual=actual,
    )


def local_date(day: int) -> str:
    return datetime(2025, 7, day, 12, tzinfo=timezone.utc).astimezone().strftime("%m/%d/%Y")


# =============================================================================
# TOP BRACKET TESTS
# =============================================================================


class TestTopBracketCorrect:
    """Tests for scoring a single snapshot."""

    def test_outcome_on_upper_boundary_counts(self):
        assert top_bracket_correct(make_snapshot("a", [0.1, 0.6, 0.3], actual=93))

    def test_outcome_just_above(self):
        assert not top_bracket_correct(make_snapshot("a", [0.1, 0.6, 0.3], actual=93.5))

    def test_tie_uses_first_bracket(self):
        assert top_bracket_correct(make_snapshot("a", [0.5, 0.5, 0.0], actual=90))
        assert not top_bracket_correct(make_snapshot("a", [0.5, 0.5, 0.0], actual=92))

    def test_open_ended_top_bracket(self):
        assert top_bracket_correct(make_snapshot("a", [0.0, 0.1, 0.9], actual=110))


# =============================================================================
# SUMMARY TESTS
# =============================================================================


class TestCalculateAccuracy:
    """Tests for the aggregate hit rate."""

    def test_counts(self):
        snapshots = [
            make_snapshot("a", [0.1, 0.6, 0.3], actual=93),
            make_snapshot("b", [0.1, 0.6, 0.3], actual=95),
            make_snapshot("c", [0.7, 0.2, 0.1], actual=88),
            make_snapshot("d", [0.7, 0.2, 0.1]),
        ]
        summary = calculate_accuracy(snapshots)
        assert summary.correct == 2
        assert summary.total == 3
        assert summary.pct == pytest.approx(200 / 3)

    def test_unscorable_snapshots_skipped(self):
        snapshots = [
            make_snapshot("a", [], actual=93),
            make_snapshot("b", [0.5], actual=93, scheme=[]),
        ]
        summary = calculate_accuracy(snapshots)
        assert summary.total == 0
        assert summary.pct == 0.0

    def test_empty(self):
        summary = calculate_accuracy(None)
        assert (summary.correct, summary.total, summary.pct) == (0, 0, 0.0)


# =============================================================================
# TREND TESTS
# =============================================================================


class TestAccuracyTrend:
    """Tests for the cumulative accuracy curve."""

    def test_cumulative_in_save_order(self):
        # Newest first, as collections are stored
        snapshots = [
            make_snapshot("c", [0.1, 0.6, 0.3], actual=93, day=3),
            make_snapshot("b", [0.1, 0.6, 0.3], actual=99, day=2),
            make_snapshot("a", [0.1, 0.6, 0.3], actual=92, day=1),
        ]
        trend = calculate_accuracy_trend(snapshots)
        assert [p.acc for p in trend] == [100.0, 50.0, 66.7]
        assert [p.t for p in trend] == [local_date(1), local_date(2), local_date(3)]

    def test_skips_snapshots_without_outcome(self):
        snapshots = [
            make_snapshot("b", [0.1, 0.6, 0.3], day=2),
            make_snapshot("a", [0.1, 0.6, 0.3], actual=80, day=1),
        ]
        trend = calculate_accuracy_trend(snapshots)
        assert len(trend) == 1
        assert trend[0].acc == 0.0

    def test_empty(self):
        assert calculate_accuracy_trend([]) == []
