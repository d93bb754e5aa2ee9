# SPDX-License-Identifier: MIT
"""Centralized path resolution for Drink Tracker.

All path resolution should go through this module to ensure consistency.
"""
import os
from pathlib import Path

STORAGE_FILENAME = "storage.json"
DEBUG_LOG_FILENAME = "debug.log"


class PathResolver:
    """Resolves paths for Drink Tracker components."""

    @staticmethod
    def state_dir() -> Path:
        """Get the state directory for mutable data (store, debug log).

        Resolution order:
        1. DRINK_TRACKER_STATE env var
        2. XDG_STATE_HOME/drink-tracker
        3. ~/.local/state/drink-tracker
        """
        state = os.environ.get("DRINK_TRACKER_STATE")
        if state:
            return Path(state)
        xdg_state = os.environ.get("XDG_STATE_HOME")
        if xdg_state:
            return Path(xdg_state) / "drink-tracker"
        return Path.home() / ".local" / "state" / "drink-tracker"

    @staticmethod
    def storage_file() -> Path:
        """Get the key-value storage file inside the state directory."""
        return PathResolver.state_dir() / STORAGE_FILENAME

    @staticmethod
    def debug_log() -> Path:
        """Get the JSON-lines debug log inside the state directory."""
        return PathResolver.state_dir() / DEBUG_LOG_FILENAME

    @staticmethod
    def settings_file() -> Path:
        """Get path to settings.json.

        Resolution order:
        1. DRINK_TRACKER_SETTINGS env var
        2. XDG_CONFIG_HOME/drink-tracker/settings.json
        3. ~/.config/drink-tracker/settings.json
        """
        custom = os.environ.get("DRINK_TRACKER_SETTINGS")
        if custom:
            return Path(custom)
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / "drink-tracker" / "settings.json"
        return Path.home() / ".config" / "drink-tracker" / "settings.json"
