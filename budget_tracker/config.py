"""Configuration management for the budget tracker.

This module centralizes all configuration values including paths,
notification thresholds, medal tiers and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

# Base project root - assumes this file is in budget_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))

# Key-value store backing limits, windows, flags and counters
STORE_PATH = Path(
    os.getenv("BUDGET_TRACKER_STORE_PATH", DATA_DIR / "budget_store.json")
).resolve()

# Percent-of-limit boundaries, highest first
NOTIFICATION_THRESHOLDS: Tuple[int, ...] = (100, 80, 50)

# Medal tiers as (name, completions per medal), highest first
MEDAL_TIERS: Tuple[Tuple[str, int], ...] = (
    ("perfect", 100),
    ("gold", 50),
    ("silver", 5),
    ("bronze", 1),
)

DEFAULT_PERIOD_KIND = "monthly"

UNCATEGORIZED_LABEL = "Uncategorized"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, STORE_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)
