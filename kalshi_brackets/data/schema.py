"""
Storage schema for the station workspace.

Persisted and imported data is loosely shaped JSON. This module validates it
once, at load time, into core models and migrates older layouts:

Current layout (a one-element array):
    [{"id": "tab_sources_config", "savedAt": "...",
      "tabSources": {"KAUS": {"rows": [...], "snapshots": [...]}, ...}}]

Older layout: tabSources values were bare snapshot arrays.

Oldest layout: a flat array of snapshots, each embedding the rows that
produced it. These belong to the default station; the rows are dropped.

JSON has no infinity, so an open-ended bracket is stored as {"max": null}.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from kalshi_brackets.config import CONFIG_ENTRY_ID, DEFAULT_STATION, default_rows, list_stations
from kalshi_brackets.core import Bracket, Snapshot, SourceRow, StationData, WeightMode
from kalshi_brackets.engine.brackets import to_float

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# TIMESTAMPS
# =============================================================================

def format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2025-07-01T18:04:05.123Z"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(raw) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# =============================================================================
# PARSING
# =============================================================================

def _strict_number(raw) -> Optional[float]:
    """A JSON number (not a numeric string, not a bool), finite."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return float(raw) if math.isfinite(raw) else None


def _threshold(raw) -> Optional[float]:
    """Bracket max: null or +inf means open-ended; NaN and -inf are invalid."""
    if raw is None:
        return math.inf
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value == math.inf:
        return math.inf
    return value if math.isfinite(value) else None


def parse_scheme(raw) -> List[Bracket]:
    """
    Validate a bracket list.

    Entries without a label, with a non-numeric max, or that break the
    strictly increasing order are dropped.
    """
    if not isinstance(raw, list):
        return []

    scheme: List[Bracket] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        label = item.get("label")
        threshold = _threshold(item.get("max"))
        if label is None or threshold is None:
            logger.warning(f"Dropping malformed bracket: {item!r}")
            continue
        if scheme and threshold <= scheme[-1].max:
            logger.warning(f"Dropping out-of-order bracket {label!r}")
            continue
        scheme.append(Bracket(label=str(label), max=threshold))
    return scheme


def parse_row(raw, fallback_id: int) -> Optional[SourceRow]:
    """Validate a source row; non-numeric weights become 0."""
    if not isinstance(raw, dict):
        return None
    row_id = to_float(raw.get("id"))
    forecast = to_float(raw.get("forecast"))
    weight = to_float(raw.get("weight"))
    return SourceRow(
        id=int(row_id) if row_id is not None else fallback_id,
        source=str(raw.get("source") or ""),
        forecast=forecast if forecast is not None else math.nan,
        weight=weight if weight is not None and weight >= 0 else 0.0,
    )


def parse_rows(raw) -> List[SourceRow]:
    if not isinstance(raw, list):
        return []
    rows: List[SourceRow] = []
    seen = set()
    for item in raw:
        row = parse_row(item, max(seen, default=0) + 1)
        if row is None:
            continue
        # ids key row edits, so duplicates are renumbered
        if row.id in seen:
            row.id = max(seen) + 1
        seen.add(row.id)
        rows.append(row)
    return rows


def parse_snapshot(raw) -> Optional[Snapshot]:
    """
    Validate one snapshot.

    Returns None for anything without an id. Embedded legacy `rows` are
    ignored; only `actual` values that are real numbers count as attached.
    """
    if not isinstance(raw, dict):
        return None
    raw_id = raw.get("id")
    if raw_id is None or isinstance(raw_id, bool) or str(raw_id).strip() == "":
        return None
    if raw_id == CONFIG_ENTRY_ID:
        return None

    saved_at = parse_timestamp(raw.get("savedAt"))
    if saved_at is None:
        logger.warning(f"Snapshot {raw_id} has no valid savedAt, using the epoch")
        saved_at = EPOCH

    raw_probs = raw.get("probs")
    probs = [to_float(p) or 0.0 for p in raw_probs] if isinstance(raw_probs, list) else []

    try:
        weight_mode = WeightMode(raw.get("weightMode"))
    except ValueError:
        weight_mode = WeightMode.MANUAL

    return Snapshot(
        id=str(raw_id),
        saved_at=saved_at,
        name=str(raw.get("name") or ""),
        scheme=parse_scheme(raw.get("scheme")),
        probs=probs,
        weight_mode=weight_mode,
        actual=_strict_number(raw.get("actual")),
    )


def parse_snapshots(raw) -> List[Snapshot]:
    """Validate a snapshot array, dropping malformed entries and duplicate ids."""
    if not isinstance(raw, list):
        return []
    snapshots: List[Snapshot] = []
    seen = set()
    for item in raw:
        snapshot = parse_snapshot(item)
        if snapshot is None:
            if not (isinstance(item, dict) and item.get("id") == CONFIG_ENTRY_ID):
                logger.warning("Dropping malformed snapshot entry")
            continue
        if snapshot.id in seen:
            logger.warning(f"Dropping duplicate snapshot id {snapshot.id}")
            continue
        seen.add(snapshot.id)
        snapshots.append(snapshot)
    return snapshots


def parse_station_data(raw) -> StationData:
    """
    Validate one station's data.

    A bare list is the older layout (snapshots only) and gets default rows.
    """
    if isinstance(raw, list):
        return StationData(rows=default_rows(), snapshots=parse_snapshots(raw))
    if not isinstance(raw, dict):
        return StationData(rows=default_rows())

    rows = parse_rows(raw.get("rows")) if isinstance(raw.get("rows"), list) else default_rows()
    scheme = parse_scheme(raw.get("scheme")) or None
    try:
        weight_mode = WeightMode(raw["weightMode"]) if "weightMode" in raw else None
    except ValueError:
        weight_mode = None
    return StationData(
        rows=rows,
        snapshots=parse_snapshots(raw.get("snapshots")),
        scheme=scheme,
        weight_mode=weight_mode,
    )


def default_workspace() -> Dict[str, StationData]:
    """Every station with default rows and no snapshots."""
    return {code: StationData(rows=default_rows()) for code in list_stations()}


def find_config_entry(entries) -> Optional[dict]:
    """The workspace configuration entry, if the array has one."""
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and entry.get("id") == CONFIG_ENTRY_ID:
            return entry
    return None


def parse_workspace(entries) -> Dict[str, StationData]:
    """
    Validate a stored array into a workspace, migrating older layouts.

    Anything that is not an array yields the default workspace.
    """
    workspace = default_workspace()
    if not isinstance(entries, list) or not entries:
        return workspace

    config = find_config_entry(entries)
    if config is not None:
        tab_sources = config.get("tabSources")
        if not isinstance(tab_sources, dict):
            logger.warning("Configuration entry has no tabSources, using defaults")
            return workspace
        for code, raw in tab_sources.items():
            workspace[str(code)] = parse_station_data(raw)
        return workspace

    logger.info(f"Migrating legacy snapshots to {DEFAULT_STATION.code}")
    workspace[DEFAULT_STATION.code] = StationData(
        rows=default_rows(),
        snapshots=parse_snapshots(entries),
    )
    return workspace


# =============================================================================
# SERIALISATION
# =============================================================================

def scheme_to_list(scheme: List[Bracket]) -> List[dict]:
    return [
        {"label": b.label, "max": None if math.isinf(b.max) else b.max}
        for b in scheme
    ]


def row_to_dict(row: SourceRow) -> dict:
    forecast = to_float(row.forecast)
    return {
        "id": row.id,
        "source": row.source,
        "forecast": forecast,
        "weight": row.weight,
    }


def snapshot_to_dict(snapshot: Snapshot) -> dict:
    data = {
        "id": snapshot.id,
        "savedAt": format_timestamp(snapshot.saved_at),
        "name": snapshot.name,
        "scheme": scheme_to_list(snapshot.scheme),
        "probs": list(snapshot.probs),
        "weightMode": snapshot.weight_mode.value,
    }
    if snapshot.has_actual:
        data["actual"] = snapshot.actual
    return data


def station_to_dict(station: StationData) -> dict:
    data = {
        "rows": [row_to_dict(r) for r in station.rows],
        "snapshots": [snapshot_to_dict(s) for s in station.snapshots],
    }
    if station.scheme:
        data["scheme"] = scheme_to_list(station.scheme)
    if station.weight_mode is not None:
        data["weightMode"] = station.weight_mode.value
    return data


def workspace_to_entries(
    workspace: Dict[str, StationData],
    now: Optional[datetime] = None,
) -> List[dict]:
    """Serialise a workspace into the one-entry storage array."""
    return [{
        "id": CONFIG_ENTRY_ID,
        "savedAt": format_timestamp(now or datetime.now(timezone.utc)),
        "tabSources": {code: station_to_dict(data) for code, data in workspace.items()},
    }]
