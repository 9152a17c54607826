"""
Probability engine for Kalshi Brackets.

Contains bracket assignment, the soft-bleed probability engine, prior
blending, self-calibration statistics, accuracy scoring and the hedge
calculator.
"""

from kalshi_brackets.engine.brackets import (
    find_bracket,
    clamp,
    bracket_contains_actual,
    argmax_first,
    schemes_compatible,
    parse_scheme_spec,
    format_scheme,
)

from kalshi_brackets.engine.calibration import (
    compute_biases,
    bias_window_snapshots,
    clamp_bias,
    calculate_source_stats,
    calculate_auto_weights,
    resolve_effective_rows,
)

from kalshi_brackets.engine.probability import (
    BracketProbabilityEngine,
    PriorBlender,
    CalculatorOptions,
    Distribution,
    normalize_rows,
    apply_bias,
    calculate_base_probs,
    blend_with_prior,
    compute_distribution,
)

from kalshi_brackets.engine.accuracy import (
    calculate_accuracy,
    calculate_accuracy_trend,
)

from kalshi_brackets.engine.hedge import (
    MarketOption,
    MarketMetrics,
    DEFAULT_MARKET_OPTIONS,
    calculate_market_metrics,
)

__all__ = [
    # Brackets
    "find_bracket",
    "clamp",
    "bracket_contains_actual",
    "argmax_first",
    "schemes_compatible",
    "parse_scheme_spec",
    "format_scheme",
    # Calibration
    "compute_biases",
    "bias_window_snapshots",
    "clamp_bias",
    "calculate_source_stats",
    "calculate_auto_weights",
    "resolve_effective_rows",
    # Probability
    "BracketProbabilityEngine",
    "PriorBlender",
    "CalculatorOptions",
    "Distribution",
    "normalize_rows",
    "apply_bias",
    "calculate_base_probs",
    "blend_with_prior",
    "compute_distribution",
    # Accuracy
    "calculate_accuracy",
    "calculate_accuracy_trend",
    # Hedge
    "MarketOption",
    "MarketMetrics",
    "DEFAULT_MARKET_OPTIONS",
    "calculate_market_metrics",
]
