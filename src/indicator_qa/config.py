"""Configuration constants for the indicator QA engine."""

import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def find_env_file():
    """Find .env file in various locations for portability."""
    # Try multiple locations in order of preference
    locations = [
        os.path.join(os.getcwd(), '.env'),                    # Current working directory
        os.path.join(os.path.dirname(__file__), '.env'),      # Same directory as config.py
        os.path.join(os.path.dirname(__file__), '..', '.env'), # Parent directory (src/.env)
        os.path.join(os.path.dirname(__file__), '..', '..', '.env'), # Project root
        os.path.join(os.path.expanduser('~'), '.env'),        # User home directory
    ]

    for location in locations:
        if os.path.exists(location):
            return location

    return None


def _env_limit(name, default):
    """Read an optional integer limit; '0' or 'none' disables the limit."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    if raw.strip().lower() in ('0', 'none', 'unlimited'):
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def _env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


# Load environment variables from the first found .env file
env_file = find_env_file()
if env_file:
    load_dotenv(env_file)
    logger.debug(f"Loaded environment variables from: {env_file}")

# Required dataset columns
REQUIRED_COLUMNS = ['indicatorName', 'filterName', 'year', 'value']

# Performance limits (defaults match the interactive, single-request profile)
MISSING_DATA_SAMPLE_SIZE = _env_limit('INDICATOR_QA_MISSING_DATA_SAMPLE_SIZE', 100)
MAX_SERIES_LENGTH = _env_limit('INDICATOR_QA_MAX_SERIES_LENGTH', 500)
MAX_INDICATORS_ANALYZED = _env_limit('INDICATOR_QA_MAX_INDICATORS_ANALYZED', 100)

# Outlier detection
ZSCORE_THRESHOLD = _env_float('INDICATOR_QA_ZSCORE_THRESHOLD', 2.5)
ZSCORE_WARNING_THRESHOLD = 3.0

# Output settings
DATA_DIR = os.getenv('INDICATOR_QA_DATA_DIR', 'data/projects')
LOG_DIR = os.getenv('INDICATOR_QA_LOG_DIR', 'logs')
LOG_FILE = os.getenv('INDICATOR_QA_LOG_FILE', 'qa.log')
