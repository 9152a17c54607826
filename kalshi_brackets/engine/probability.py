"""
Probability Engine

Weight Normaliser / Bias Adjuster
- Normalises source weights to sum to 1
- Shifts each forecast by its clamped historical bias

Bracket Probability Engine
- Soft assignment: each source puts most of its weight on the bracket its
  forecast falls in and bleeds the rest into the neighbouring brackets

Prior Blender
- Optionally mixes the fresh distribution 50/50 with a saved snapshot that
  uses the same bracket labels

Pipeline
- compute_distribution() runs the whole chain for one station
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from kalshi_brackets.config import BLEED_FRACTION, BIAS_CLAMP, PRIOR_WEIGHT
from kalshi_brackets.core import AdjustedRow, Bracket, Snapshot, SourceRow, SourceStats, WeightMode
from kalshi_brackets.engine.brackets import clamp, find_bracket, schemes_compatible, to_float
from kalshi_brackets.engine.calibration import (
    calculate_auto_weights,
    calculate_source_stats,
    clamp_bias,
    compute_biases,
    resolve_effective_rows,
)

logger = logging.getLogger(__name__)


# =============================================================================
# WEIGHT NORMALISATION AND BIAS
# =============================================================================


def _weight(value) -> float:
    weight = to_float(value)
    return weight if weight is not None and weight > 0 else 0.0


def normalize_rows(rows: Sequence[SourceRow]) -> List[AdjustedRow]:
    """
    Attach normalised weights (n_weight) to rows.

    Non-numeric or negative weights count as 0. If every weight is 0 the
    divisor falls back to 1, so all n_weight values are 0.
    """
    rows = list(rows or [])
    total = sum(_weight(r.weight) for r in rows) or 1.0
    return [
        AdjustedRow(
            id=r.id,
            source=r.source,
            forecast=r.forecast,
            weight=_weight(r.weight),
            n_weight=_weight(r.weight) / total,
            adj_forecast=r.forecast,
        )
        for r in rows
    ]


def apply_bias(
    rows: Sequence[AdjustedRow],
    biases: Optional[Dict[str, float]],
    use_bias: bool,
    bias_clamp: float = BIAS_CLAMP,
) -> List[AdjustedRow]:
    """
    Shift each forecast by its source's bias, clamped to +/- bias_clamp.

    With use_bias off, adj_forecast is the raw forecast.
    """
    adjusted = []
    for r in rows or []:
        shift = clamp_bias((biases or {}).get(r.name), bias_clamp) if use_bias else 0.0
        forecast = to_float(r.forecast)
        adjusted.append(AdjustedRow(
            id=r.id,
            source=r.source,
            forecast=r.forecast,
            weight=r.weight,
            n_weight=r.n_weight,
            adj_forecast=forecast + shift if forecast is not None else math.nan,
        ))
    return adjusted


# =============================================================================
# BRACKET PROBABILITY ENGINE
# =============================================================================


class BracketProbabilityEngine:
    """
    Converts weighted point forecasts into a per-bracket distribution.

    For a row with normalised weight w landing in bracket b of n:
    - (1 - bleed) * w goes to bracket b
    - bleed * w is split evenly between b-1 and b+1 when both exist,
      goes wholly to the only neighbour at either edge, and falls back onto
      b itself for a single-bracket scheme

    Rows with a non-finite forecast, or a forecast above the last finite
    threshold, contribute nothing. Output mass equals the contributing rows'
    total weight.
    """

    def __init__(self, bleed: float = BLEED_FRACTION):
        """
        Initialize the engine.

        Args:
            bleed: Fraction of each row's weight given to neighbour brackets
        """
        self.bleed = bleed

    def calculate(self, rows: Sequence[AdjustedRow], scheme: Sequence[Bracket]) -> List[float]:
        """
        Calculate the base distribution.

        Args:
            rows: Rows with n_weight and adj_forecast set
            scheme: Bracket scheme

        Returns:
            One probability per bracket ([] for an empty scheme)
        """
        if not scheme:
            return []

        n = len(scheme)
        out = np.zeros(n)

        for row in rows or []:
            forecast = to_float(row.adj_forecast)
            if forecast is None:
                continue
            b = find_bracket(scheme, forecast)
            if b < 0:
                logger.debug(f"Forecast {forecast} for {row.source!r} is above every bracket")
                continue

            w = to_float(row.n_weight) or 0.0
            out[clamp(b, n)] += (1 - self.bleed) * w

            bleed_share = self.bleed * w
            if bleed_share <= 0:
                continue
            has_lower = b - 1 >= 0
            has_upper = b + 1 < n
            if has_lower and has_upper:
                out[b - 1] += bleed_share / 2
                out[b + 1] += bleed_share / 2
            elif has_lower:
                out[b - 1] += bleed_share
            elif has_upper:
                out[b + 1] += bleed_share
            else:
                out[b] += bleed_share

        logger.debug(f"Base distribution over {n} brackets: total={out.sum():.4f}")
        return out.tolist()


def calculate_base_probs(
    rows: Sequence[AdjustedRow],
    scheme: Sequence[Bracket],
    bleed: float = BLEED_FRACTION,
) -> List[float]:
    """
    Convenience function to run the engine with a given bleed.

    Args:
        rows: Adjusted rows
        scheme: Bracket scheme
        bleed: Neighbour bleed fraction

    Returns:
        Per-bracket probabilities
    """
    return BracketProbabilityEngine(bleed=bleed).calculate(rows, scheme)


# =============================================================================
# PRIOR BLENDER
# =============================================================================


class PriorBlender:
    """
    Mixes a fresh distribution with a previously saved one.

    The prior is only used when its scheme has the same labels, in the same
    order, as the current scheme; otherwise the fresh distribution is
    returned untouched.
    """

    def __init__(self, prior_weight: float = PRIOR_WEIGHT):
        self.prior_weight = prior_weight

    def find_prior(
        self,
        prior_id: Optional[str],
        snapshots: Optional[Sequence[Snapshot]],
        scheme: Sequence[Bracket],
    ) -> Optional[Snapshot]:
        """Return the prior snapshot if it exists and is scheme-compatible."""
        if not prior_id:
            return None
        prior = next((s for s in snapshots or [] if s.id == prior_id), None)
        if prior is None:
            logger.debug(f"Prior snapshot {prior_id} not found")
            return None
        if not schemes_compatible(prior.scheme, scheme):
            logger.debug(f"Prior snapshot {prior_id} has a different scheme, ignoring it")
            return None
        return prior

    def blend(
        self,
        use_prior: bool,
        prior_id: Optional[str],
        base_probs: Sequence[float],
        snapshots: Optional[Sequence[Snapshot]],
        scheme: Sequence[Bracket],
    ) -> List[float]:
        """
        Blend base_probs with the chosen prior and renormalise.

        Returns base_probs unchanged when blending is off, the prior is
        missing, or its scheme does not match.
        """
        if not use_prior:
            return list(base_probs or [])
        prior = self.find_prior(prior_id, snapshots, scheme)
        if prior is None:
            return list(base_probs or [])

        base = np.asarray(list(base_probs or []), dtype=float)
        prior_probs = np.zeros(len(base))
        for i, value in enumerate(prior.probs[:len(base)]):
            prior_probs[i] = to_float(value) or 0.0

        out = (1 - self.prior_weight) * base + self.prior_weight * prior_probs
        total = out.sum() or 1.0
        return (out / total).tolist()


def blend_with_prior(
    use_prior: bool,
    prior_id: Optional[str],
    base_probs: Sequence[float],
    snapshots: Optional[Sequence[Snapshot]],
    scheme: Sequence[Bracket],
) -> List[float]:
    """Convenience function for an equal-weight prior blend."""
    return PriorBlender().blend(use_prior, prior_id, base_probs, snapshots, scheme)


# =============================================================================
# PIPELINE
# =============================================================================


@dataclass
class CalculatorOptions:
    """User toggles for one distribution calculation."""
    use_bias: bool = False
    bias_window: int = 0                          # 0 = all snapshots with outcomes
    use_auto_weights: bool = True
    auto_weights_override: Optional[Dict[str, float]] = None
    use_prior: bool = False
    prior_id: Optional[str] = None
    bleed: float = BLEED_FRACTION
    bias_clamp: float = BIAS_CLAMP

    @property
    def weight_mode(self) -> WeightMode:
        return WeightMode.AUTO if self.use_auto_weights else WeightMode.MANUAL


@dataclass
class Distribution:
    """Result of compute_distribution, with every intermediate step."""
    scheme: List[Bracket]
    probs: List[float]                            # Final (possibly blended)
    base_probs: List[float]                       # Before prior blending
    rows: List[AdjustedRow]                       # Normalised, bias-adjusted
    biases: Dict[str, float] = field(default_factory=dict)
    source_stats: List[SourceStats] = field(default_factory=list)
    auto_weights: Optional[Dict[str, float]] = None
    prior_applied: bool = False
    weight_mode: WeightMode = WeightMode.MANUAL

    @property
    def percentages(self) -> List[float]:
        """Probabilities as percentages rounded half-up to 1 decimal."""
        return [math.floor(p * 1000 + 0.5) / 10 for p in self.probs]

    @property
    def percent_total(self) -> float:
        return round(sum(self.percentages), 1)


def compute_distribution(
    rows: Sequence[SourceRow],
    scheme: Sequence[Bracket],
    snapshots: Optional[Sequence[Snapshot]] = None,
    options: Optional[CalculatorOptions] = None,
) -> Distribution:
    """
    Run the full pipeline for one station.

    rows -> effective weights (manual / auto / override) -> normalised ->
    bias-adjusted -> soft-bleed distribution -> optional prior blend.

    Args:
        rows: Current source rows
        scheme: Current bracket scheme
        snapshots: The station's snapshot collection (newest first)
        options: Calculation toggles (defaults: auto-weights on, bias and
            prior off)

    Returns:
        Distribution with final probabilities and intermediate results
    """
    options = options or CalculatorOptions()
    snapshots = list(snapshots or [])
    scheme = list(scheme or [])

    biases = compute_biases(snapshots, rows, options.bias_window)
    stats = calculate_source_stats(snapshots, rows)
    auto_weights = calculate_auto_weights(stats, options.use_auto_weights)

    effective = resolve_effective_rows(
        rows, options.use_auto_weights, auto_weights, options.auto_weights_override
    )
    adjusted = apply_bias(normalize_rows(effective), biases, options.use_bias, options.bias_clamp)

    base = BracketProbabilityEngine(bleed=options.bleed).calculate(adjusted, scheme)
    blender = PriorBlender()
    prior_applied = (
        options.use_prior
        and blender.find_prior(options.prior_id, snapshots, scheme) is not None
    )
    probs = blender.blend(options.use_prior, options.prior_id, base, snapshots, scheme)

    logger.info(
        f"Computed distribution for {len(adjusted)} sources over {len(scheme)} brackets "
        f"(mode={options.weight_mode.value}, bias={'on' if options.use_bias else 'off'}, "
        f"prior={'applied' if prior_applied else 'none'})"
    )

    return Distribution(
        scheme=scheme,
        probs=probs,
        base_probs=base,
        rows=adjusted,
        biases=biases,
        source_stats=stats,
        auto_weights=auto_weights,
        prior_applied=prior_applied,
        weight_mode=options.weight_mode,
    )
