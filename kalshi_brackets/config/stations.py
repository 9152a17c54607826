"""
Station configurations for Kalshi Brackets.

Each station is a separate workspace tab with its own sources and snapshots.
Add new stations here to extend support.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class StationConfig:
    """Configuration for a supported settlement station."""
    code: str              # ICAO station code (e.g., "KAUS")
    name: str              # Display name
    timezone: str          # Timezone string


# =============================================================================
# STATION DEFINITIONS
# =============================================================================

KAUS = StationConfig(code="KAUS", name="Austin", timezone="America/Chicago")
KMIA = StationConfig(code="KMIA", name="Miami", timezone="America/New_York")
KMDW = StationConfig(code="KMDW", name="Chicago Midway", timezone="America/Chicago")
KLAX = StationConfig(code="KLAX", name="Los Angeles", timezone="America/Los_Angeles")
KNYC = StationConfig(code="KNYC", name="New York City", timezone="America/New_York")
KPHL = StationConfig(code="KPHL", name="Philadelphia", timezone="America/New_York")
KDEN = StationConfig(code="KDEN", name="Denver", timezone="America/Denver")

# =============================================================================
# STATION REGISTRY
# =============================================================================

STATIONS: Dict[str, StationConfig] = {
    station.code: station
    for station in (KAUS, KMIA, KMDW, KLAX, KNYC, KPHL, KDEN)
}

# Legacy single-station data is migrated into this station
DEFAULT_STATION = KAUS


def get_station(code: str) -> StationConfig:
    """
    Get station configuration by code.

    Args:
        code: Station code (e.g., "KAUS")

    Returns:
        StationConfig for the requested station

    Raises:
        KeyError: If station code is not found
    """
    code = code.upper()
    if code not in STATIONS:
        available = ", ".join(STATIONS.keys())
        raise KeyError(f"Station '{code}' not found. Available: {available}")
    return STATIONS[code]


def list_stations() -> list[str]:
    """Return list of available station codes, in tab order."""
    return list(STATIONS.keys())
