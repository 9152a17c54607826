"""
Snapshot collection and row set operations.

Every function here is pure: it takes the caller's current collection and
returns a new one, leaving the input untouched. Persisting the result is the
caller's job (see JsonSnapshotStore.save).
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from kalshi_brackets.config import default_rows, default_scheme
from kalshi_brackets.core import Bracket, Snapshot, SourceRow, StationData, WeightMode
from kalshi_brackets.engine.brackets import to_float

logger = logging.getLogger(__name__)


# =============================================================================
# SNAPSHOTS
# =============================================================================


def default_save_label(now: Optional[datetime] = None) -> str:
    """Default snapshot name, e.g. "7-4-25 (14:05)"."""
    now = now or datetime.now()
    return f"{now.month}-{now.day}-{now.year % 100:02d} ({now.hour:02d}:{now.minute:02d})"


def _new_snapshot_id(existing: Iterable[Snapshot], now: datetime) -> str:
    taken = {s.id for s in existing}
    candidate = int(now.timestamp() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def create_snapshot(
    name: Optional[str],
    scheme: Sequence[Bracket],
    probs: Sequence[float],
    weight_mode: WeightMode = WeightMode.MANUAL,
    existing: Iterable[Snapshot] = (),
    now: Optional[datetime] = None,
) -> Snapshot:
    """
    Freeze a computed distribution into a new snapshot.

    Args:
        name: User label; blank falls back to default_save_label()
        scheme: Scheme the probabilities were computed over (copied)
        probs: Final probabilities (copied)
        weight_mode: Manual or auto weights
        existing: Collection the snapshot will join, for id uniqueness
        now: Save time (default: current time)

    Returns:
        Snapshot with a time-derived id unique within `existing`
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.astimezone()
    now = now.replace(microsecond=now.microsecond // 1000 * 1000)
    label = (name or "").strip() or default_save_label(now.astimezone())
    return Snapshot(
        id=_new_snapshot_id(existing, now),
        saved_at=now,
        name=label,
        scheme=list(scheme),
        probs=[float(p) for p in probs],
        weight_mode=weight_mode,
    )


def add_snapshot(snapshots: Sequence[Snapshot], snapshot: Snapshot) -> List[Snapshot]:
    """Prepend a snapshot (collections are newest first)."""
    return [snapshot] + [s for s in snapshots if s.id != snapshot.id]


def find_snapshot(snapshots: Sequence[Snapshot], snapshot_id: str) -> Optional[Snapshot]:
    return next((s for s in snapshots if s.id == snapshot_id), None)


def attach_actual(snapshots: Sequence[Snapshot], ids: Iterable[str], value) -> List[Snapshot]:
    """
    Record the realized outcome on the selected snapshots.

    A non-numeric value or an empty selection leaves the collection as is.
    """
    actual = to_float(value)
    selected = set(ids)
    if actual is None or not selected:
        logger.debug("Ignoring attach: no valid value or no snapshots selected")
        return list(snapshots)
    return [replace(s, actual=actual) if s.id in selected else s for s in snapshots]


def clear_actual(snapshots: Sequence[Snapshot], ids: Iterable[str]) -> List[Snapshot]:
    """Remove the outcome from the selected snapshots."""
    selected = set(ids)
    return [replace(s, actual=None) if s.id in selected else s for s in snapshots]


def delete_snapshot(snapshots: Sequence[Snapshot], snapshot_id: str) -> List[Snapshot]:
    return [s for s in snapshots if s.id != snapshot_id]


def update_snapshot_scheme(
    snapshots: Sequence[Snapshot],
    snapshot_id: str,
    scheme: Sequence[Bracket],
) -> List[Snapshot]:
    """Replace the scheme stored on one snapshot (after editing brackets)."""
    return [replace(s, scheme=list(scheme)) if s.id == snapshot_id else s for s in snapshots]


# =============================================================================
# SOURCE ROWS
# =============================================================================


def add_source_row(
    rows: Sequence[SourceRow],
    source: str = "",
    forecast: float = 0.0,
    weight: float = 0.0,
) -> List[SourceRow]:
    """Append a row with the next free id."""
    new_id = max([0] + [r.id for r in rows]) + 1
    return list(rows) + [SourceRow(id=new_id, source=str(source or ""), forecast=forecast, weight=weight)]


def remove_source_row(rows: Sequence[SourceRow], row_id: int) -> List[SourceRow]:
    """Drop a row. The last remaining row cannot be removed."""
    if len(rows) <= 1:
        logger.warning("Refusing to remove the last source row")
        return list(rows)
    return [r for r in rows if r.id != row_id]


def update_source_row(rows: Sequence[SourceRow], row_id: int, **changes) -> List[SourceRow]:
    """
    Change fields (source, forecast, weight) of one row.

    Unknown field names are ignored.
    """
    allowed = {k: v for k, v in changes.items() if k in ("source", "forecast", "weight")}
    if "source" in allowed:
        allowed["source"] = str(allowed["source"] or "")
    return [replace(r, **allowed) if r.id == row_id else r for r in rows]


# =============================================================================
# WORKSPACE
# =============================================================================


def get_station_data(workspace: Dict[str, StationData], code: str) -> StationData:
    """A station's data, or fresh defaults if the workspace has none."""
    return workspace.get(code) or StationData(rows=default_rows())


def with_station_data(
    workspace: Dict[str, StationData],
    code: str,
    data: StationData,
) -> Dict[str, StationData]:
    """New workspace with one station replaced."""
    updated = dict(workspace)
    updated[code] = data
    return updated


def active_scheme(data: StationData) -> List[Bracket]:
    """
    The scheme a station computes with.

    Its own scheme if set, else the newest snapshot's, else the default.
    """
    if data.scheme:
        return list(data.scheme)
    if data.snapshots and data.snapshots[0].scheme:
        return list(data.snapshots[0].scheme)
    return default_scheme()
