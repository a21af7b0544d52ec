"""
Availability and blackout operations for the calling UI/API layer.

Slot results are recomputed on every call and never cached, so a client
always renders the calendar against the current bookings.
"""

from datetime import date, datetime
from typing import Optional, TypedDict, Union

from coachbook.errors import BookingError
from coachbook.schemas.availability_schema import BlackoutInterval
from coachbook.service import SchedulingService
from coachbook.tools.results import ErrorFields, error_result


class SlotRecord(TypedDict):
    """A single slot in the calendar grid."""

    start: str
    end: str
    status: str
    blocked_by: list[str]


class AvailabilityResult(ErrorFields, total=False):
    """Result from get_available_slots."""

    coach_ids: list[str]
    date: str
    slots: list[SlotRecord]
    free_count: int
    next_free: Optional[str]


class BlackoutRecord(TypedDict):
    id: str
    coach_id: str
    start: str
    end: str
    note: Optional[str]


class BlackoutResult(ErrorFields, total=False):
    """Result from add_blackout, list_blackouts and remove_blackout."""

    blackout: BlackoutRecord
    blackouts: list[BlackoutRecord]


def _blackout_record(blackout: BlackoutInterval) -> BlackoutRecord:
    return {
        "id": blackout.id,
        "coach_id": blackout.coach_id,
        "start": blackout.start.isoformat(),
        "end": blackout.end.isoformat(),
        "note": blackout.note,
    }


async def get_available_slots(
    service: SchedulingService,
    coach_ids: Union[str, list[str]],
    day: date,
    granularity_minutes: Optional[int] = None,
) -> AvailabilityResult:
    """
    Slot grid for one coach, or the intersection for several coaches.

    Every slot of the working window is returned with its status so the
    caller can render booked slots greyed out.
    """
    try:
        slots = await service.engine.get_available_slots(coach_ids, day, granularity_minutes)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]

    records: list[SlotRecord] = [
        {
            "start": s.start.isoformat(),
            "end": s.end.isoformat(),
            "status": s.status.value,
            "blocked_by": list(s.blocked_by),
        }
        for s in slots
    ]
    free = [s for s in slots if s.is_free]
    return {
        "success": True,
        "coach_ids": [coach_ids] if isinstance(coach_ids, str) else list(coach_ids),
        "date": day.isoformat(),
        "slots": records,
        "free_count": len(free),
        "next_free": free[0].start.isoformat() if free else None,
        "message": (
            f"{len(free)} free slots on {day.isoformat()}."
            if free
            else f"No availability on {day.isoformat()}."
        ),
    }


async def add_blackout(
    service: SchedulingService,
    coach_id: str,
    start: datetime,
    end: datetime,
    note: Optional[str] = None,
) -> BlackoutResult:
    try:
        blackout = await service.engine.add_blackout(coach_id, start, end, note)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return {
        "success": True,
        "message": f"Away time saved for {blackout.start.isoformat()} to {blackout.end.isoformat()}.",
        "blackout": _blackout_record(blackout),
    }


async def list_blackouts(
    service: SchedulingService,
    coach_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> BlackoutResult:
    try:
        blackouts = await service.engine.list_blackouts(coach_id, start, end)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return {
        "success": True,
        "message": f"{len(blackouts)} away time block(s) for {coach_id}.",
        "blackouts": [_blackout_record(b) for b in blackouts],
    }


async def remove_blackout(
    service: SchedulingService, coach_id: str, blackout_id: str
) -> BlackoutResult:
    try:
        removed = await service.engine.remove_blackout(coach_id, blackout_id)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    if not removed:
        return {
            "success": False,
            "message": f"Away time {blackout_id} not found for {coach_id}.",
            "error_code": "blackout_not_found",
            "retryable": False,
        }
    return {"success": True, "message": f"Away time {blackout_id} removed."}
