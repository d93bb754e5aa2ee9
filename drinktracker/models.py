#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Data models for the drink tracker.

Contains all dataclasses, enums, and constants used by the tracker core.
"""

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


# =============================================================================
# Constants
# =============================================================================

DEFAULT_WAITING_MINUTES = 60
RECENT_WINDOW_HOURS = 2

# Key names shared with stores written by the browser version of the app
USERS_KEY = "alcoholTracker"
WAITING_TIME_KEY = "waitingTime"

AMOUNT_UNIT = "ml"


# =============================================================================
# Enums
# =============================================================================


class AmountPrecision(str, Enum):
    """How amounts are parsed and displayed."""
    INTEGER = "integer"
    DECIMAL = "decimal"


# =============================================================================
# Timestamp helpers
# =============================================================================


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware datetime.

    Accepts the trailing 'Z' form produced by JavaScript's toISOString().
    Naive timestamps are treated as UTC.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as UTC with millisecond precision and 'Z' suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


_INT_PREFIX_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def parse_int_prefix(value: Any) -> Optional[int]:
    """Parse the leading integer of a value, parseInt-style.

    "45" -> 45, " 90min" -> 90, "7.9" -> 7, "abc" -> None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX_PATTERN.match(str(value))
    if not match:
        return None
    return int(match.group(1))


# =============================================================================
# Abstract Base Classes
# =============================================================================


class FormattableResult(ABC):
    """Base class for all result types that can be formatted for display."""

    @abstractmethod
    def format(self) -> str:
        """Format the result for display.

        Returns:
            Human-readable string representation of the result.
        """
        pass


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class TrackerOptions:
    """Variant switches for the tracker.

    Fixed wait with integer amounts is the basic tracker; the defaults
    add the adjustable wait and one-decimal amounts.
    """
    configurable_wait: bool = True
    amount_precision: AmountPrecision = AmountPrecision.DECIMAL
    reset_existing_on_create: bool = True

    def format_amount(self, amount: float) -> str:
        """Format an amount for display at the configured precision."""
        if self.amount_precision == AmountPrecision.INTEGER:
            return f"{amount:.0f}"
        return f"{amount:.1f}"


@dataclass(frozen=True)
class Record:
    """A single timestamped consumption entry."""
    timestamp: str
    amount: float

    @property
    def timestamp_dt(self) -> datetime:
        """Timestamp parsed into an aware datetime."""
        return parse_timestamp(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored JSON shape."""
        return {"timestamp": self.timestamp, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: Any) -> "Record":
        """Build a record from its stored JSON shape.

        Raises:
            ValueError: If the entry is not a {timestamp, amount} object
        """
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")
        timestamp = data.get("timestamp")
        amount = data.get("amount")
        if not isinstance(timestamp, str):
            raise ValueError("record timestamp must be a string")
        # bool is an int subclass but never a valid amount
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValueError("record amount must be a number")
        if not math.isfinite(amount):
            raise ValueError("record amount must be finite")
        parse_timestamp(timestamp)
        return cls(timestamp=timestamp, amount=amount)

    @classmethod
    def create(cls, amount: float, now: Optional[datetime] = None) -> "Record":
        """Create a record stamped with `now` (defaults to the current time)."""
        return cls(timestamp=format_timestamp(now or utc_now()), amount=amount)


# Mapping of user ID to that user's records, in insertion order
Document = Dict[str, List[Record]]


@dataclass
class ConsumptionStats(FormattableResult):
    """Derived statistics for one user, computed from a single `now`."""
    record_count: int
    total: float
    recent_total: float
    window_hours: int
    waiting_minutes: int
    last_timestamp: Optional[str] = None
    minutes_since_last: Optional[int] = None
    waiting_remaining: int = 0
    warning: bool = False
    options: TrackerOptions = field(default_factory=TrackerOptions)

    def format(self) -> str:
        """Format statistics as a short multi-line summary."""
        fmt = self.options.format_amount
        lines = [
            f"Total consumption: {fmt(self.total)} {AMOUNT_UNIT}",
            f"Last {self.window_hours} hours: {fmt(self.recent_total)} {AMOUNT_UNIT}",
        ]
        if self.minutes_since_last is None:
            lines.append("No records yet")
        else:
            lines.append(f"Minutes since last drink: {self.minutes_since_last}")
        if self.warning:
            lines.append(
                f"Warning! Please wait {self.waiting_remaining} minutes before next consumption. "
                f"(Recommended {self.waiting_minutes} minutes between drinks)"
            )
        return "\n".join(lines)


@dataclass
class SearchResult(FormattableResult):
    """Outcome of looking up a user ID."""
    user_id: str
    found: bool
    records: List[Record] = field(default_factory=list)

    def format(self) -> str:
        if not self.found:
            return f"User {self.user_id} not found. Create with: drink-tracker create {self.user_id}"
        return f"User {self.user_id}: {len(self.records)} record(s)"


@dataclass
class ExportDocument(FormattableResult):
    """A rendered export file, not yet written to disk."""
    filename: str
    content: str
    row_count: int = 0

    def format(self) -> str:
        return self.content

    def write(self, directory: Path) -> Path:
        """Write the document under `directory` and return its path."""
        # Late import to avoid circular dependency
        from drinktracker.exporter import write_export

        return write_export(directory, self.filename, self.content)
