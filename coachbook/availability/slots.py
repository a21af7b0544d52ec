"""
Pure slot generation and classification.

Nothing here touches the store: callers fetch bookings and blackouts
first, then hand the busy intervals in. Results are plain lists, so a
slot view can be iterated as many times as needed and is rebuilt from
scratch on every query.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional, Sequence

from coachbook.config import MINUTES_PER_DAY, settings
from coachbook.errors import InvalidGranularity
from coachbook.schemas.availability_schema import BlackoutInterval, Slot, SlotStatus
from coachbook.schemas.booking_schema import Booking
from coachbook.utils import get_zone, overlaps


@dataclass(frozen=True)
class WorkingWindow:
    """Nominal daily working hours, ``[start_hour, end_hour)``."""

    start_hour: int = settings.scheduling.day_start_hour
    end_hour: int = settings.scheduling.day_end_hour

    @property
    def minutes(self) -> int:
        return (self.end_hour - self.start_hour) * 60


@dataclass(frozen=True)
class BusyInterval:
    """Anything that occupies a coach's time: an active booking or a blackout."""

    source_id: str
    start: datetime
    end: datetime
    kind: str  # "booking" | "blackout"


def validate_granularity(granularity_minutes: int, window: WorkingWindow) -> None:
    """Reject granularities that do not tile both the day and the working window."""
    if (
        granularity_minutes < 1
        or MINUTES_PER_DAY % granularity_minutes != 0
        or window.minutes % granularity_minutes != 0
    ):
        raise InvalidGranularity(
            f"Slot granularity of {granularity_minutes} minutes must evenly divide "
            f"the day and the {window.minutes}-minute working window.",
            details={"granularity_minutes": granularity_minutes},
        )


def generate_slot_windows(
    day: date,
    granularity_minutes: Optional[int] = None,
    window: Optional[WorkingWindow] = None,
    zone: Optional[tzinfo] = None,
) -> list[tuple[datetime, datetime]]:
    """Return the ordered ``(start, end)`` pairs tiling the working window of ``day``."""
    granularity = granularity_minutes or settings.scheduling.slot_granularity_minutes
    window = window or WorkingWindow()
    zone = zone or get_zone()
    validate_granularity(granularity, window)

    step = timedelta(minutes=granularity)
    cursor = datetime.combine(day, time(window.start_hour), tzinfo=zone)
    window_end = cursor + timedelta(minutes=window.minutes)
    windows = []
    while cursor < window_end:
        windows.append((cursor, cursor + step))
        cursor += step
    return windows


def busy_from_bookings(bookings: Iterable[Booking]) -> list[BusyInterval]:
    """Active bookings only; rejected bookings never block a slot."""
    return [
        BusyInterval(source_id=b.id, start=b.start, end=b.end, kind="booking")
        for b in bookings
        if b.is_active
    ]


def busy_from_blackouts(blackouts: Iterable[BlackoutInterval]) -> list[BusyInterval]:
    return [
        BusyInterval(source_id=b.id, start=b.start, end=b.end, kind="blackout")
        for b in blackouts
    ]


def classify_slots(
    windows: Sequence[tuple[datetime, datetime]], busy: Sequence[BusyInterval]
) -> list[Slot]:
    """Mark each window blocked if any busy interval overlaps it (half-open)."""
    slots = []
    for start, end in windows:
        blockers = [b.source_id for b in busy if overlaps(b.start, b.end, start, end)]
        slots.append(Slot(
            start=start,
            end=end,
            status=SlotStatus.BLOCKED if blockers else SlotStatus.FREE,
            blocked_by=blockers,
        ))
    return slots


def intersect_slots(per_coach: Sequence[Sequence[Slot]]) -> list[Slot]:
    """Combine per-coach slot views: a slot is free only if free for every coach.

    All views must come from the same day, granularity and window so that
    slots line up index by index.
    """
    if not per_coach:
        return []
    combined = []
    for aligned in zip(*per_coach):
        first = aligned[0]
        blockers: list[str] = []
        for slot in aligned:
            for source_id in slot.blocked_by:
                if source_id not in blockers:
                    blockers.append(source_id)
        is_free = all(slot.is_free for slot in aligned)
        combined.append(Slot(
            start=first.start,
            end=first.end,
            status=SlotStatus.FREE if is_free else SlotStatus.BLOCKED,
            blocked_by=blockers,
        ))
    return combined
