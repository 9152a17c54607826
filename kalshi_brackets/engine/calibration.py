"""
Self-calibration statistics.

Bias Estimator
- Mean signed error (actual - forecast) per source over snapshots with an
  attached outcome, optionally limited to the most recent N snapshots.

Per-Source Accuracy
- Mean absolute error and within-1/2/3 hit rates per source.

Weight Resolver
- Inverse-error auto-weights: score = 1 / (MAE + epsilon), normalised.

Snapshots do not carry the rows that produced them, so every statistic joins
each outcome against the *current* row set by trimmed source name.
"""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from kalshi_brackets.config import AUTO_WEIGHT_EPSILON, HIT_THRESHOLDS
from kalshi_brackets.core import Snapshot, SourceRow, SourceStats
from kalshi_brackets.engine.brackets import to_float

logger = logging.getLogger(__name__)


def snapshots_with_actual(snapshots: Optional[Iterable[Snapshot]]) -> List[Snapshot]:
    """Snapshots whose outcome has been attached, in collection order."""
    return [s for s in (snapshots or []) if s.has_actual]


def _usable_rows(rows: Optional[Iterable[SourceRow]]):
    """Yield (name, forecast) for rows with a name and a finite forecast."""
    for row in rows or []:
        name = row.name
        forecast = to_float(row.forecast)
        if not name or forecast is None:
            continue
        yield name, forecast


# =============================================================================
# BIAS ESTIMATOR
# =============================================================================


def bias_window_snapshots(
    snapshots: Optional[Sequence[Snapshot]],
    window_size: int = 0,
) -> List[Snapshot]:
    """
    Snapshots the bias estimator learns from.

    Args:
        snapshots: Collection, newest first
        window_size: Keep only the first N snapshots with outcomes (0 = all)
    """
    with_actual = snapshots_with_actual(snapshots)
    if window_size and window_size > 0:
        return with_actual[:window_size]
    return with_actual


def compute_biases(
    snapshots: Optional[Sequence[Snapshot]],
    rows: Optional[Sequence[SourceRow]],
    window_size: int = 0,
) -> Dict[str, float]:
    """
    Learn a signed correction per source.

    For every (snapshot, current row) pair the error is actual - forecast;
    the bias is the arithmetic mean of those errors per source name.

    Args:
        snapshots: Snapshot collection, newest first
        rows: Current row set
        window_size: Look-back window in snapshots (0 = unbounded)

    Returns:
        Mapping of source name to bias. Sources without data are absent;
        callers treat them as 0.
    """
    if snapshots is None or rows is None:
        return {}

    sums: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)

    for snapshot in bias_window_snapshots(snapshots, window_size):
        for name, forecast in _usable_rows(rows):
            sums[name] += snapshot.actual - forecast
            counts[name] += 1

    biases = {name: total / counts[name] for name, total in sums.items()}
    logger.debug(f"Computed biases for {len(biases)} sources (window={window_size})")
    return biases


def clamp_bias(bias: Optional[float], limit: float) -> float:
    """Bound a bias to [-limit, +limit]; missing or non-finite bias is 0."""
    value = to_float(bias)
    if value is None:
        return 0.0
    return max(-limit, min(limit, value))


# =============================================================================
# PER-SOURCE ACCURACY
# =============================================================================


def calculate_source_stats(
    snapshots: Optional[Sequence[Snapshot]],
    rows: Optional[Sequence[SourceRow]],
) -> List[SourceStats]:
    """
    Per-source error statistics against attached outcomes.

    Returns:
        One SourceStats per source with data, best (lowest MAE) first.
    """
    if rows is None:
        return []

    abs_sums: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    hits: Dict[str, List[int]] = {}

    for snapshot in snapshots_with_actual(snapshots):
        for name, forecast in _usable_rows(rows):
            error = abs(snapshot.actual - forecast)
            abs_sums[name] = abs_sums.get(name, 0.0) + error
            counts[name] = counts.get(name, 0) + 1
            within = hits.setdefault(name, [0] * len(HIT_THRESHOLDS))
            for i, threshold in enumerate(HIT_THRESHOLDS):
                if error <= threshold:
                    within[i] += 1

    stats = []
    for name, n in counts.items():
        rates = [count / n * 100 for count in hits[name]]
        stats.append(SourceStats(
            source=name,
            n=n,
            mae=abs_sums[name] / n,
            p1=rates[0],
            p2=rates[1],
            p3=rates[2],
        ))

    stats.sort(key=lambda s: s.mae)
    return stats


# =============================================================================
# WEIGHT RESOLVER
# =============================================================================


def calculate_auto_weights(
    stats: Optional[Sequence[SourceStats]],
    enabled: bool = True,
    epsilon: float = AUTO_WEIGHT_EPSILON,
) -> Optional[Dict[str, float]]:
    """
    Inverse-error weights from per-source statistics.

    The epsilon keeps a perfect source (MAE 0) from taking all the weight:
    with epsilon 0.5 its raw score is capped at 2.0.

    Args:
        stats: Output of calculate_source_stats
        enabled: Auto-weighting toggle
        epsilon: Smoothing added to every MAE

    Returns:
        Source name -> weight summing to 1, or None when disabled, without
        data, or degenerate (callers fall back to manual weights).
    """
    if not enabled or not stats:
        return None

    scores = {s.source: 1.0 / (max(0.0, s.mae) + epsilon) for s in stats}
    total = sum(scores.values())
    if not math.isfinite(total) or total <= 0:
        logger.warning("Auto-weights degenerate, falling back to manual weights")
        return None

    return {name: score / total for name, score in scores.items()}


def resolve_effective_rows(
    rows: Sequence[SourceRow],
    use_auto_weights: bool,
    auto_weights: Optional[Dict[str, float]],
    override: Optional[Dict[str, float]] = None,
) -> List[SourceRow]:
    """
    Choose the weights that feed the probability engine.

    Manual mode keeps the rows' own weights. Auto mode looks each row up by
    trimmed source name in the override map if one is given, otherwise in the
    computed auto-weights; rows missing from the map get weight 0. With no
    map at all the manual weights stand.
    """
    rows = list(rows or [])
    if not use_auto_weights:
        return rows

    weight_map = override or auto_weights
    if not weight_map:
        return rows

    return [
        SourceRow(id=r.id, source=r.source, forecast=r.forecast, weight=weight_map.get(r.name, 0.0))
        for r in rows
    ]
