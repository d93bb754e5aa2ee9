#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Shared formatting utilities for TUI components.

Time-distance wording follows the familiar "about 2 hours" / "3 days"
style used by date libraries, so the statistics panel reads naturally.
"""

from datetime import datetime, timezone
from typing import Optional

MINUTES_IN_DAY = 1440
MINUTES_IN_MONTH = 43200
MINUTES_IN_TWO_MONTHS = 86400


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_distance(start: datetime, end: datetime) -> str:
    """Describe the time between two datetimes in words.

    Examples: "less than a minute", "5 minutes", "about 1 hour",
    "about 3 hours", "1 day", "4 days", "about 1 month", "3 months",
    "about 1 year", "over 2 years", "almost 3 years".
    """
    seconds = abs((end - start).total_seconds())
    minutes = round(seconds / 60)

    if minutes < 1:
        return "less than a minute"
    if minutes < 45:
        return _plural(minutes, "minute")
    if minutes < 90:
        return "about 1 hour"
    if minutes < MINUTES_IN_DAY:
        return f"about {_plural(round(minutes / 60), 'hour')}"
    if minutes < 2520:
        return "1 day"
    if minutes < MINUTES_IN_MONTH:
        return _plural(round(minutes / MINUTES_IN_DAY), "day")
    if minutes < MINUTES_IN_TWO_MONTHS:
        return f"about {_plural(round(minutes / MINUTES_IN_MONTH), 'month')}"

    months = round(minutes / MINUTES_IN_MONTH)
    if months < 12:
        return _plural(months, "month")

    years, remainder = divmod(months, 12)
    if remainder < 3:
        return f"about {_plural(years, 'year')}"
    if remainder < 9:
        return f"over {_plural(years, 'year')}"
    return f"almost {_plural(years + 1, 'year')}"


def format_distance_to_now(dt: datetime, now: Optional[datetime] = None) -> str:
    """format_distance from dt to now (aware datetimes)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_distance(dt, now or datetime.now(timezone.utc))


def format_local_datetime(dt: datetime) -> str:
    """Render a timestamp in the local timezone, locale-style."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone().strftime("%x %X")
