#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Consumption statistics computed from a record list.

Every function takes an explicit `now` so that values derived together
(minutes since last drink, remaining wait, warning) agree with each other.
Record lists are assumed to be in chronological (append) order and are
never re-sorted.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from drinktracker.models import (
    RECENT_WINDOW_HOURS,
    ConsumptionStats,
    Record,
    TrackerOptions,
    parse_timestamp,
)


def _whole_minutes(later: datetime, earlier: datetime) -> int:
    """Whole minutes from earlier to later, truncated toward zero."""
    return int((later - earlier).total_seconds() / 60)


def total_consumption(records: Iterable[Record]) -> float:
    """Sum of all amounts. Empty list gives 0."""
    return sum((record.amount for record in records), 0)


def recent_consumption(records: Iterable[Record], hours_ago: float, now: datetime) -> float:
    """Sum of amounts strictly newer than `now - hours_ago`.

    A record exactly at the cutoff is not counted.
    """
    cutoff = now - timedelta(hours=hours_ago)
    return sum(
        (record.amount for record in records if record.timestamp_dt > cutoff),
        0,
    )


def minutes_since_last(records: Sequence[Record], now: datetime) -> Optional[int]:
    """Whole minutes since the last record in the list, or None if empty."""
    if not records:
        return None
    return _whole_minutes(now, records[-1].timestamp_dt)


def waiting_time_remaining(last_timestamp: str, waiting_minutes: int, now: datetime) -> int:
    """Minutes left until `last_timestamp + waiting_minutes`, never negative."""
    ready_at = parse_timestamp(last_timestamp) + timedelta(minutes=waiting_minutes)
    remaining = _whole_minutes(ready_at, now)
    return remaining if remaining > 0 else 0


def is_waiting(
    records: Sequence[Record],
    waiting_minutes: int,
    now: datetime,
    user_selected: bool = True,
) -> bool:
    """Whether the "wait before next entry" warning applies."""
    if not user_selected or not records:
        return False
    elapsed = minutes_since_last(records, now)
    return elapsed is not None and elapsed < waiting_minutes


def compute_stats(
    records: List[Record],
    waiting_minutes: int,
    now: datetime,
    window_hours: int = RECENT_WINDOW_HOURS,
    options: Optional[TrackerOptions] = None,
) -> ConsumptionStats:
    """
    Compute every displayed statistic from one sampled `now`.

    Args:
        records: The user's records in chronological order
        waiting_minutes: Recommended minutes between drinks
        now: Reference time (aware datetime)
        window_hours: Trailing window for the recent total
        options: Display options carried on the result

    Returns:
        ConsumptionStats snapshot
    """
    last_timestamp = records[-1].timestamp if records else None
    remaining = (
        waiting_time_remaining(last_timestamp, waiting_minutes, now)
        if last_timestamp
        else 0
    )
    return ConsumptionStats(
        record_count=len(records),
        total=total_consumption(records),
        recent_total=recent_consumption(records, window_hours, now),
        window_hours=window_hours,
        waiting_minutes=waiting_minutes,
        last_timestamp=last_timestamp,
        minutes_since_last=minutes_since_last(records, now),
        waiting_remaining=remaining,
        warning=is_waiting(records, waiting_minutes, now),
        options=options or TrackerOptions(),
    )
