"""
Accuracy Scorer

Scores saved distributions against their attached outcomes: a snapshot is
correct when the realized value lands in its most probable bracket.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from kalshi_brackets.core import AccuracySummary, Snapshot, TrendPoint
from kalshi_brackets.engine.brackets import argmax_first, bracket_contains_actual

logger = logging.getLogger(__name__)

TREND_DATE_FORMAT = "%m/%d/%Y"


def scorable_snapshots(snapshots: Optional[Sequence[Snapshot]]) -> List[Snapshot]:
    """Snapshots with an outcome, probabilities and a scheme."""
    return [
        s for s in (snapshots or [])
        if s.has_actual and s.probs and s.scheme
    ]


def top_bracket_correct(snapshot: Snapshot) -> bool:
    """True if the outcome fell in the snapshot's most probable bracket."""
    top = argmax_first(snapshot.probs)
    return top >= 0 and bracket_contains_actual(snapshot.scheme, top, snapshot.actual)


def calculate_accuracy(snapshots: Optional[Sequence[Snapshot]]) -> AccuracySummary:
    """
    Aggregate top-bracket accuracy.

    Args:
        snapshots: Snapshot collection

    Returns:
        AccuracySummary with correct/total counts and percentage (0 when no
        snapshot can be scored)
    """
    scored = scorable_snapshots(snapshots)
    total = len(scored)
    correct = sum(1 for s in scored if top_bracket_correct(s))
    pct = correct / total * 100 if total else 0.0
    logger.debug(f"Top-bracket accuracy: {correct}/{total}")
    return AccuracySummary(correct=correct, total=total, pct=pct)


def _display_date(saved_at: datetime) -> str:
    if saved_at.tzinfo is not None:
        saved_at = saved_at.astimezone()
    return saved_at.strftime(TREND_DATE_FORMAT)


def calculate_accuracy_trend(snapshots: Optional[Sequence[Snapshot]]) -> List[TrendPoint]:
    """
    Cumulative accuracy curve in save order.

    Snapshots are sorted oldest first; point k is the accuracy over the first
    k scored snapshots, rounded to one decimal.
    """
    scored = sorted(scorable_snapshots(snapshots), key=lambda s: s.saved_at)
    points = []
    correct = 0
    for i, snapshot in enumerate(scored, start=1):
        if top_bracket_correct(snapshot):
            correct += 1
        points.append(TrendPoint(
            t=_display_date(snapshot.saved_at),
            acc=round(correct / i * 100, 1),
        ))
    return points
