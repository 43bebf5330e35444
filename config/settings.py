"""Configuration settings for W' Balance Analyser."""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Logger for this module
logger = logging.getLogger(__name__)

# Base paths
BASE_DIR = Path(__file__).parent.parent
REPORTS_DIR = Path(os.getenv("REPORTS_DIR", str(BASE_DIR / "reports")))


def _env_number(name: str, default: float) -> float:
    """Read a numeric environment variable, falling back on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


# W' model
class WPrimeConfig:
    """W' balance model constants."""

    # Convolution window, 1200 seconds or 20 minutes of history
    DECAY_PERIOD_SECS = 1200
    MULT_CONST = 1.0

    # Tau = TAU_SCALE * e^(-TAU_DECAY_RATE * (CP - avg power below CP)) + TAU_OFFSET
    TAU_SCALE = 546.0
    TAU_DECAY_RATE = 0.01
    TAU_OFFSET = 316.0

    # Match detection
    MATCH_SMOOTHING_SECS = 25  # rolling average looking for matches
    MATCH_MIN_JOULES = 100  # noise floor, inclusive
    MATCH_SIGNIFICANT_JOULES = 2000  # only these get chart markers

    # Used when no zone provider is available at all
    DEFAULT_CP = _env_number("DEFAULT_CP", 250)
    DEFAULT_WPRIME = _env_number("DEFAULT_WPRIME", 0)

    # Seconds of output computed between cancellation checks
    CANCEL_CHECK_BLOCK_SECS = 3600

    # Memoized results kept by WPrimeCache
    CACHE_MAX_ENTRIES = 32


# File type detection
SUPPORTED_FORMATS = ['.csv']

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chart generation
CHART_DPI = 150
CHART_FORMAT = "png"

# Zones configuration
ZONES_FILE = Path(os.getenv("ZONES_FILE", str(BASE_DIR / "config" / "zones.json")))
