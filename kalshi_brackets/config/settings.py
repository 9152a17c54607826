"""
Global settings and constants for Kalshi Brackets.

Model parameters, storage locations, and logging.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# =============================================================================
# PROBABILITY PARAMETERS
# =============================================================================

# Share of each source's weight that bleeds into the neighbouring brackets
BLEED_FRACTION = float(os.getenv("BLEED_FRACTION", "0.3"))

# Learned bias is clamped to +/- this many degrees before it is applied
BIAS_CLAMP = float(os.getenv("BIAS_CLAMP", "5.0"))

# Share given to the saved prior when blending distributions
PRIOR_WEIGHT = float(os.getenv("PRIOR_WEIGHT", "0.5"))


# =============================================================================
# CALIBRATION PARAMETERS
# =============================================================================

# Auto-weight score = 1 / (MAE + epsilon)
AUTO_WEIGHT_EPSILON = float(os.getenv("AUTO_WEIGHT_EPSILON", "0.5"))

# Absolute error thresholds (degrees) for the per-source hit rates
HIT_THRESHOLDS = (1, 2, 3)


# =============================================================================
# STORAGE
# =============================================================================

STORAGE_KEY = "kaus_snapshots_v2"
CONFIG_ENTRY_ID = "tab_sources_config"
EXPORT_PREFIX = "kaus_snapshots_backup"

DATA_FILE = os.getenv(
    "KALSHI_BRACKETS_DATA_FILE",
    str(Path.home() / ".kalshi_brackets" / "storage.json"),
)


# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
