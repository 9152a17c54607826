"""
Shared data models for Kalshi Brackets.

All engines and storage code exchange these types. Anything loosely shaped
(raw JSON) is converted into them once, by the schema layer, at load time.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


# =============================================================================
# ENUMS
# =============================================================================

class WeightMode(Enum):
    """How source weights were chosen when a snapshot was saved."""
    MANUAL = "manual"
    AUTO = "auto"


# =============================================================================
# DATA CLASSES - BRACKETS AND SOURCES
# =============================================================================

@dataclass(frozen=True)
class Bracket:
    """
    One outcome bracket in a scheme.

    A scheme is an ordered list of brackets with strictly increasing `max`.
    Bracket i covers (scheme[i-1].max, scheme[i].max]; the first bracket is
    unbounded below and the last may be unbounded above (max = +inf).
    """
    label: str                     # e.g., "92–93"
    max: float                     # Inclusive upper bound, may be math.inf

    @property
    def is_open_ended(self) -> bool:
        return math.isinf(self.max)


@dataclass
class SourceRow:
    """A forecast source as entered by the user."""
    id: int                        # Unique within a row set
    source: str                    # Display name
    forecast: float                # Point forecast
    weight: float                  # Manual weight (>= 0)

    @property
    def name(self) -> str:
        """Statistics join key: the trimmed source name."""
        return (self.source or "").strip()


@dataclass
class AdjustedRow:
    """A source row after weight normalisation and bias correction."""
    id: int
    source: str
    forecast: float
    weight: float                  # Effective (manual or auto) weight
    n_weight: float                # weight / total weight
    adj_forecast: float            # forecast + clamped bias

    @property
    def name(self) -> str:
        return (self.source or "").strip()


# =============================================================================
# DATA CLASSES - SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class Snapshot:
    """
    A saved probability computation.

    Immutable: attaching or clearing the realized outcome produces a new
    Snapshot via dataclasses.replace. Snapshots never store the rows that
    produced them.
    """
    id: str                        # Time-derived, unique within a collection
    saved_at: datetime             # Timezone-aware save time
    name: str                      # User label
    scheme: List[Bracket]          # Scheme copied at save time
    probs: List[float]             # One probability per bracket
    weight_mode: WeightMode = WeightMode.MANUAL
    actual: Optional[float] = None  # Realized outcome, attached later

    @property
    def has_actual(self) -> bool:
        return self.actual is not None and math.isfinite(self.actual)


@dataclass
class StationData:
    """
    Everything stored for one station tab.

    `scheme` is the station's working bracket scheme; None means "use the
    most recent snapshot's scheme, else the default scheme".
    `weight_mode` is the weighting last restored from a snapshot; None means
    auto-weights.
    """
    rows: List[SourceRow] = field(default_factory=list)
    snapshots: List[Snapshot] = field(default_factory=list)
    scheme: Optional[List[Bracket]] = None
    weight_mode: Optional[WeightMode] = None


# =============================================================================
# DATA CLASSES - STATISTICS
# =============================================================================

@dataclass
class SourceStats:
    """Historical accuracy of one source against attached outcomes."""
    source: str
    n: int                         # Number of (snapshot, row) samples
    mae: float                     # Mean absolute error
    p1: float                      # % of errors within 1 degree
    p2: float                      # % of errors within 2 degrees
    p3: float                      # % of errors within 3 degrees


@dataclass
class AccuracySummary:
    """Top-bracket hit rate over snapshots with outcomes."""
    correct: int
    total: int
    pct: float


@dataclass
class TrendPoint:
    """One point of the cumulative accuracy curve."""
    t: str                         # Display date
    acc: float                     # Cumulative accuracy %, 1 decimal


# =============================================================================
# ABSTRACT INTERFACES
# =============================================================================

class SnapshotStore(ABC):
    """
    Interface for persisting the station workspace.

    Every save replaces the whole persisted structure; there are no
    incremental updates and the last writer wins.
    """

    @abstractmethod
    def load(self) -> Dict[str, StationData]:
        """Load the workspace, degrading to defaults on bad data."""
        pass

    @abstractmethod
    def save(self, workspace: Dict[str, StationData]) -> bool:
        """Persist the workspace. Returns False if the write failed."""
        pass
