"""
Kalshi Brackets - Weighted bracket probabilities for Kalshi temperature markets.

Turns forecasts from several weighted sources into a probability per
outcome bracket, saves snapshots of those distributions, and learns source
bias, auto-weights and accuracy from outcomes attached after the fact.
"""

__version__ = "0.1.0"

from kalshi_brackets.core import (
    # Enums
    WeightMode,
    # Data classes
    Bracket,
    SourceRow,
    AdjustedRow,
    Snapshot,
    StationData,
    SourceStats,
    AccuracySummary,
    TrendPoint,
)

from kalshi_brackets.config import (
    StationConfig,
    DEFAULT_STATION,
    DEFAULT_SCHEME,
    get_station,
    list_stations,
)

from kalshi_brackets.engine import (
    CalculatorOptions,
    Distribution,
    compute_distribution,
)

__all__ = [
    # Version
    "__version__",
    # Enums
    "WeightMode",
    # Data classes
    "Bracket",
    "SourceRow",
    "AdjustedRow",
    "Snapshot",
    "StationData",
    "SourceStats",
    "AccuracySummary",
    "TrendPoint",
    # Config
    "StationConfig",
    "DEFAULT_STATION",
    "DEFAULT_SCHEME",
    "get_station",
    "list_stations",
    # Engine
    "CalculatorOptions",
    "Distribution",
    "compute_distribution",
]
