#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Structured debug logger for Drink Tracker.

Writes one JSON object per line to <state_dir>/debug.log. Once the file
reaches the size limit it is moved to debug.log.1, replacing any previous
rollover, and a fresh file is started. Every event
carries event, level, timestamp, session_id and pid; the remaining keys
are event-specific.

Debug levels:
    0 - disabled
    1 - mutations and errors (default)
    2 - also read-side events (search, suggestions, stats)
"""

import json
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from drinktracker.config import SETTINGS_SECTION, get_int_setting
from drinktracker.paths import PathResolver

DEFAULT_DEBUG_LEVEL = 1
LEVEL_INFO = 1
LEVEL_TRACE = 2
DEFAULT_MAX_LOG_BYTES = 1_000_000


def _resolve_level() -> int:
    """DRINK_TRACKER_DEBUG env var wins over the debugLevel setting."""
    env_level = os.environ.get("DRINK_TRACKER_DEBUG")
    if env_level is not None:
        try:
            return int(env_level)
        except ValueError:
            return DEFAULT_DEBUG_LEVEL
    return get_int_setting(f"{SETTINGS_SECTION}.debugLevel", DEFAULT_DEBUG_LEVEL)


class DebugLogger:
    """Appends structured events to the debug log."""

    def __init__(
        self,
        log_path: Optional[Path] = None,
        level: Optional[int] = None,
        max_bytes: Optional[int] = None,
    ):
        self.log_path = Path(log_path) if log_path else PathResolver.debug_log()
        self.level = _resolve_level() if level is None else level
        self.session_id = uuid.uuid4().hex[:12]
        self.pid = os.getpid()
        if max_bytes is None:
            max_bytes = get_int_setting(
                f"{SETTINGS_SECTION}.debugLogMaxBytes", DEFAULT_MAX_LOG_BYTES
            )
        self.max_bytes = max_bytes

    @property
    def rotated_path(self) -> Path:
        return self.log_path.with_name(self.log_path.name + ".1")

    def _rotate_if_needed(self) -> None:
        """Move a full log aside. A limit of 0 or less disables rotation."""
        if self.max_bytes <= 0 or not self.log_path.exists():
            return
        if self.log_path.stat().st_size >= self.max_bytes:
            os.replace(self.log_path, self.rotated_path)

    def _write(self, event: Dict[str, Any]) -> None:
        """Write a single event line. Logging failures are ignored."""
        entry = {
            "event": event.get("event", "unknown"),
            "level": event.get("level", "info"),
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "session_id": self.session_id,
            "pid": self.pid,
        }
        entry.update({k: v for k, v in event.items() if k not in ("event", "level")})
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._rotate_if_needed()
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError:
            pass

    # -------------------------------------------------------------------------
    # Mutations (level >= 1)
    # -------------------------------------------------------------------------

    def user_created(self, user_id: str, reset_existing: bool) -> None:
        if self.level >= LEVEL_INFO:
            self._write({
                "event": "user_created",
                "user_id": user_id,
                "reset_existing": reset_existing,
            })

    def record_added(self, user_id: str, amount: float, record_count: int) -> None:
        if self.level >= LEVEL_INFO:
            self._write({
                "event": "record_added",
                "user_id": user_id,
                "amount": amount,
                "record_count": record_count,
            })

    def waiting_time_changed(self, old_minutes: int, new_minutes: int) -> None:
        if self.level >= LEVEL_INFO:
            self._write({
                "event": "waiting_time_changed",
                "old_minutes": old_minutes,
                "new_minutes": new_minutes,
            })

    def export_written(self, filename: str, rows: int, path: Optional[str] = None) -> None:
        if self.level >= LEVEL_INFO:
            self._write({
                "event": "export_written",
                "filename": filename,
                "rows": rows,
                "path": path,
            })

    def input_rejected(self, operation: str, reason: str) -> None:
        if self.level >= LEVEL_INFO:
            self._write({
                "event": "input_rejected",
                "level": "warning",
                "op": operation,
                "reason": reason,
            })

    def error(self, operation: str, error: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Errors are logged at every level except 0."""
        if self.level >= LEVEL_INFO:
            event: Dict[str, Any] = {"event": "error", "level": "error", "op": operation, "err": error}
            if context:
                event["context"] = context
            self._write(event)

    # -------------------------------------------------------------------------
    # Read-side (level >= 2)
    # -------------------------------------------------------------------------

    def user_search(self, user_id: str, found: bool) -> None:
        if self.level >= LEVEL_TRACE:
            self._write({
                "event": "user_search",
                "level": "debug",
                "user_id": user_id,
                "found": found,
            })

    def stats_computed(self, user_id: str, record_count: int, warning: bool) -> None:
        if self.level >= LEVEL_TRACE:
            self._write({
                "event": "stats_computed",
                "level": "debug",
                "user_id": user_id,
                "record_count": record_count,
                "warning": warning,
            })


_logger: Optional[DebugLogger] = None


def get_logger() -> DebugLogger:
    """Return the process-wide logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = DebugLogger()
    return _logger


def reset_logger() -> None:
    """Drop the cached logger so the next get_logger() re-reads env and settings."""
    global _logger
    _logger = None
