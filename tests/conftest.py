"""
Pytest configuration and fixtures for drink-tracker tests.
"""

import sys
from pathlib import Path

# Ensure project root is in sys.path for 'drinktracker' imports from a checkout
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import os
import time
from datetime import datetime, timezone

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "tui: marks TUI tests")


@pytest.fixture
def temp_state_dir(tmp_path: Path, monkeypatch) -> Path:
    """Create and return a temporary state directory.

    Sets DRINK_TRACKER_STATE and points DRINK_TRACKER_SETTINGS at a file
    that does not exist yet, then resets the debug logger.
    """
    state_dir = tmp_path / ".local" / "state" / "drink-tracker"
    state_dir.mkdir(parents=True)
    monkeypatch.setenv("DRINK_TRACKER_STATE", str(state_dir))
    monkeypatch.setenv("DRINK_TRACKER_SETTINGS", str(tmp_path / "settings.json"))
    monkeypatch.delenv("DRINK_TRACKER_DEBUG", raising=False)

    from drinktracker.debug_logger import reset_logger
    reset_logger()

    return state_dir


@pytest.fixture(autouse=True)
def isolate_state_dir(temp_state_dir: Path):
    """Autouse fixture so no test touches the real ~/.local/state/drink-tracker."""
    yield temp_state_dir

    from drinktracker.debug_logger import reset_logger
    reset_logger()


@pytest.fixture
def utc_local_time():
    """Run the test with the process local timezone set to UTC."""
    old_tz = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    time.tzset()
    yield
    if old_tz is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = old_tz
    time.tzset()


@pytest.fixture
def t0() -> datetime:
    """A fixed reference instant for time arithmetic."""
    return datetime(2024, 5, 1, 20, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def memory_store():
    """Store backed by an in-memory key-value map."""
    from drinktracker.store import MemoryKeyValueStore, Store
    return Store(MemoryKeyValueStore())
