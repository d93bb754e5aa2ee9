# SPDX-License-Identifier: MIT
"""Configuration reader for Drink Tracker.

Reads settings.json with dot-notation keys and builds the TrackerOptions
that switch between the fixed-wait/integer and configurable/decimal
variants.
"""
import json
from pathlib import Path
from typing import Any

from drinktracker.models import AmountPrecision, TrackerOptions
from drinktracker.paths import PathResolver

SETTINGS_SECTION = "drinkTracker"


def get_settings_path() -> Path:
    """Get path to settings.json.

    Returns:
        Path to settings.json, respecting DRINK_TRACKER_SETTINGS env var.
    """
    return PathResolver.settings_file()


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value by dot-notation key.

    Args:
        key: Dot-notation key like "drinkTracker.debugLevel"
        default: Default value if key not found

    Returns:
        Setting value or default
    """
    settings_path = get_settings_path()

    if not settings_path.exists():
        return default

    try:
        with open(settings_path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return default

    # Navigate dot-notation path
    current = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]

    return current


def get_bool_setting(key: str, default: bool = False) -> bool:
    """Get a boolean setting.

    Converts string "true", "1", "yes" to True.
    """
    value = get_setting(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    return bool(value)


def get_int_setting(key: str, default: int = 0) -> int:
    """Get an integer setting, or default if conversion fails."""
    value = get_setting(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def load_options() -> TrackerOptions:
    """Build TrackerOptions from the drinkTracker section of settings.json."""
    precision = get_setting(f"{SETTINGS_SECTION}.amountPrecision", AmountPrecision.DECIMAL.value)
    try:
        amount_precision = AmountPrecision(str(precision).lower())
    except ValueError:
        amount_precision = AmountPrecision.DECIMAL

    return TrackerOptions(
        configurable_wait=get_bool_setting(f"{SETTINGS_SECTION}.configurableWait", True),
        amount_precision=amount_precision,
        reset_existing_on_create=get_bool_setting(
            f"{SETTINGS_SECTION}.resetExistingOnCreate", True
        ),
    )
