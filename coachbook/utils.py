"""Shared time and interval helpers used across the scheduling engine."""

import math
from datetime import datetime, timedelta, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from coachbook.config import settings


@lru_cache(maxsize=None)
def get_zone(name: Optional[str] = None) -> tzinfo:
    """Return the configured scheduling timezone (or ``name`` if given)."""
    return ZoneInfo(name or settings.scheduling.timezone)


def ensure_aware(value: datetime, zone: Optional[tzinfo] = None) -> datetime:
    """Attach the scheduling timezone to naive datetimes; leave aware ones alone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=zone or get_zone())
    return value


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap test.

    Touching endpoints do not overlap:
        >>> from datetime import datetime
        >>> overlaps(datetime(2025, 1, 1, 10), datetime(2025, 1, 1, 11),
        ...          datetime(2025, 1, 1, 11), datetime(2025, 1, 1, 12))
        False
    """
    return a_start < b_end and b_start < a_end


def snap_to_granularity(
    value: datetime, granularity_minutes: int, zone: Optional[tzinfo] = None
) -> datetime:
    """Round ``value`` half-up to the nearest granularity boundary.

    Boundaries are counted from local midnight in the scheduling timezone,
    so 14:14:59 snaps to 14:00 and 14:15:00 snaps to 14:30 at 30 minutes.
    """
    zone = zone or get_zone()
    local = ensure_aware(value, zone).astimezone(zone)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    step = timedelta(minutes=granularity_minutes)
    steps, remainder = divmod(local - midnight, step)
    if remainder * 2 >= step:
        steps += 1
    return midnight + steps * step


def duration_hours(start: datetime, end: datetime) -> float:
    """Duration rounded to the nearest half hour, as shown on booking screens."""
    total_minutes = (end - start).total_seconds() / 60
    half_hours = math.floor(total_minutes / 30 + 0.5)
    return half_hours * 0.5
