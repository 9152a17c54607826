"""Core data models and interfaces."""

from kalshi_brackets.core.models import (
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
    # Abstract interfaces
    SnapshotStore,
)

__all__ = [
    "WeightMode",
    "Bracket",
    "SourceRow",
    "AdjustedRow",
    "Snapshot",
    "StationData",
    "SourceStats",
    "AccuracySummary",
    "TrendPoint",
    "SnapshotStore",
]
