"""Helper functions for next-service calculations.

All interval arithmetic uses fixed 24-hour days; no calendar or DST
adjustment is applied.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def add_days(when: datetime, days: float) -> datetime:
    """Shift a timestamp by a (possibly fractional) number of days."""
    return when + timedelta(days=days)


def calc_miles_per_day(miles_since: float, days_since: float) -> float:
    """
    Average usage rate since the last service.

    Returns 0 when either the elapsed time or the distance is not positive,
    meaning no rate can be extrapolated.
    """
    if days_since <= 0 or miles_since <= 0:
        return 0
    return miles_since / days_since


def calc_mileage_due_date(
    last_miles: float,
    current_miles: float,
    last_date: datetime,
    interval_miles: float,
    now: datetime,
) -> Optional[datetime]:
    """
    Project when the mileage interval will be reached.

    - No mileage interval: None (time-only service)
    - Interval already used up: now
    - Otherwise: now + remaining miles / average miles per day
    - No usable rate: None
    """
    if interval_miles <= 0:
        return None
    miles_since = current_miles - last_miles
    miles_remaining = interval_miles - miles_since
    if miles_remaining <= 0:
        return now
    rate = calc_miles_per_day(miles_since, days_between(last_date, now))
    if rate <= 0:
        return None
    return add_days(now, miles_remaining / rate)


def calc_time_due_date(
    last_date: Optional[datetime], interval_days: Optional[int]
) -> Optional[datetime]:
    """Calculate next due date: last + interval days."""
    if not interval_days or interval_days <= 0 or last_date is None:
        return None
    return add_days(last_date, interval_days)


def earliest(*dates: Optional[datetime]) -> Optional[datetime]:
    """Whichever comes first, ignoring dates that were not produced."""
    produced = [d for d in dates if d is not None]
    if not produced:
        return None
    return min(produced)


def calc_days_until(due: datetime, now: datetime) -> int:
    """Whole days until due, rounded up (a few hours away reads as 1)."""
    return math.ceil(days_between(now, due))
