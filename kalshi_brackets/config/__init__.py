"""Configuration module for Kalshi Brackets."""

from kalshi_brackets.config.stations import (
    StationConfig,
    KAUS,
    STATIONS,
    DEFAULT_STATION,
    get_station,
    list_stations,
)

from kalshi_brackets.config.settings import (
    # Probability Parameters
    BLEED_FRACTION,
    BIAS_CLAMP,
    PRIOR_WEIGHT,
    # Calibration Parameters
    AUTO_WEIGHT_EPSILON,
    HIT_THRESHOLDS,
    # Storage
    STORAGE_KEY,
    CONFIG_ENTRY_ID,
    EXPORT_PREFIX,
    DATA_FILE,
    # Logging
    LOG_LEVEL,
    LOG_FORMAT,
)

from kalshi_brackets.config.defaults import (
    DEFAULT_SCHEME,
    DEFAULT_ROWS,
    default_rows,
    default_scheme,
)

__all__ = [
    # Stations
    "StationConfig",
    "KAUS",
    "STATIONS",
    "DEFAULT_STATION",
    "get_station",
    "list_stations",
    # Probability Parameters
    "BLEED_FRACTION",
    "BIAS_CLAMP",
    "PRIOR_WEIGHT",
    # Calibration Parameters
    "AUTO_WEIGHT_EPSILON",
    "HIT_THRESHOLDS",
    # Storage
    "STORAGE_KEY",
    "CONFIG_ENTRY_ID",
    "EXPORT_PREFIX",
    "DATA_FILE",
    # Logging
    "LOG_LEVEL",
    "LOG_FORMAT",
    # Defaults
    "DEFAULT_SCHEME",
    "DEFAULT_ROWS",
    "default_rows",
    "default_scheme",
]
