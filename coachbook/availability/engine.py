"""
Availability & conflict engine.

Derives a coach's free/busy slot grid for a day from the store, manages
coach blackout intervals, and performs the write-time conflict check
that the lifecycle manager runs before creating a booking.
"""

import logging
import uuid
from datetime import date, datetime, tzinfo
from typing import Optional, Union

from coachbook.availability.conflicts import Conflict, ConflictChecker
from coachbook.availability.slots import (
    WorkingWindow,
    classify_slots,
    generate_slot_windows,
    intersect_slots,
    validate_granularity,
)
from coachbook.concurrency.locks import ScheduleLockManager
from coachbook.config import settings
from coachbook.errors import InvalidParticipants, InvalidTimeRange, SlotUnavailable
from coachbook.schemas.availability_schema import BlackoutInterval, Slot
from coachbook.store.base import BookingStore
from coachbook.utils import ensure_aware, get_zone, snap_to_granularity

logger = logging.getLogger(__name__)

CoachSelection = Union[str, list[str], tuple[str, ...]]


def _as_coach_list(coach_ids: CoachSelection) -> list[str]:
    ids = [coach_ids] if isinstance(coach_ids, str) else list(coach_ids)
    ids = list(dict.fromkeys(i.strip() for i in ids if i and i.strip()))
    if not ids:
        raise InvalidParticipants("At least one coach is required.")
    return ids


class AvailabilityEngine:
    """Computes slot availability and validates ranges against the store."""

    def __init__(
        self,
        store: BookingStore,
        lock_manager: ScheduleLockManager,
        window: Optional[WorkingWindow] = None,
        granularity_minutes: Optional[int] = None,
        zone: Optional[tzinfo] = None,
    ) -> None:
        self._store = store
        self._locks = lock_manager
        self._checker = ConflictChecker(store)
        self.window = window or WorkingWindow()
        self.granularity_minutes = (
            granularity_minutes or settings.scheduling.slot_granularity_minutes
        )
        self.zone = zone or get_zone()
        validate_granularity(self.granularity_minutes, self.window)

    # --- Range helpers ---

    def validate_range(self, start: datetime, end: datetime) -> tuple[datetime, datetime]:
        """Attach the scheduling zone to naive ends and require ``start < end``."""
        start = ensure_aware(start, self.zone)
        end = ensure_aware(end, self.zone)
        if start >= end:
            raise InvalidTimeRange(
                f"Start {start.isoformat()} must be before end {end.isoformat()}.",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        return start, end

    def snap_range(self, start: datetime, end: datetime) -> tuple[datetime, datetime]:
        """Validate ``start < end`` and snap both ends to the slot grid.

        Raises:
            InvalidTimeRange: If the range is empty before or after snapping.
        """
        start, end = self.validate_range(start, end)
        snapped_start = snap_to_granularity(start, self.granularity_minutes, self.zone)
        snapped_end = snap_to_granularity(end, self.granularity_minutes, self.zone)
        if snapped_start >= snapped_end:
            raise InvalidTimeRange(
                f"Range {start.isoformat()} - {end.isoformat()} is shorter than one "
                f"{self.granularity_minutes}-minute slot once aligned.",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        return snapped_start, snapped_end

    def resolve_range(
        self, start: datetime, end: datetime
    ) -> tuple[tuple[datetime, datetime], tuple[datetime, datetime]]:
        """Return ``(snapped, checked)`` ranges for a write.

        ``snapped`` is what gets stored. ``checked`` is the span that must be
        free: the snapped range widened to also cover the raw request, so
        rounding can never move a request off a booking it really overlaps.
        """
        snapped_start, snapped_end = self.snap_range(start, end)
        raw_start = ensure_aware(start, self.zone)
        raw_end = ensure_aware(end, self.zone)
        checked = (min(raw_start, snapped_start), max(raw_end, snapped_end))
        return (snapped_start, snapped_end), checked

    # --- Slot queries ---

    async def get_available_slots(
        self,
        coach_ids: CoachSelection,
        day: date,
        granularity_minutes: Optional[int] = None,
    ) -> list[Slot]:
        """
        Return every slot of the working window on ``day`` with its status.

        With several coaches, a slot is free only if it is free for all of
        them; ``blocked_by`` then collects blockers across coaches.
        """
        coaches = _as_coach_list(coach_ids)
        windows = generate_slot_windows(
            day, granularity_minutes or self.granularity_minutes, self.window, self.zone
        )
        range_start, range_end = windows[0][0], windows[-1][1]

        per_coach = []
        for coach_id in coaches:
            busy = await self._checker.busy_intervals(coach_id, range_start, range_end)
            per_coach.append(classify_slots(windows, busy))

        slots = per_coach[0] if len(per_coach) == 1 else intersect_slots(per_coach)
        logger.debug(
            "Computed %d slots (%d free) for %s on %s",
            len(slots), sum(1 for s in slots if s.is_free), coaches, day.isoformat(),
        )
        return slots

    async def get_free_slots(
        self,
        coach_ids: CoachSelection,
        day: date,
        granularity_minutes: Optional[int] = None,
    ) -> list[Slot]:
        slots = await self.get_available_slots(coach_ids, day, granularity_minutes)
        return [s for s in slots if s.is_free]

    # --- Write-time validation ---

    async def find_conflicts(
        self, coach_ids: CoachSelection, start: datetime, end: datetime
    ) -> list[Conflict]:
        return await self._checker.find_conflicts(_as_coach_list(coach_ids), start, end)

    async def ensure_available(
        self, coach_ids: CoachSelection, start: datetime, end: datetime
    ) -> None:
        """Re-read the store and fail if any coach is busy during ``[start, end)``.

        Must be called while holding the schedule reservation for the coaches.

        Raises:
            SlotUnavailable: If any active booking or blackout overlaps.
        """
        conflicts = await self.find_conflicts(coach_ids, start, end)
        if conflicts:
            busy_coaches = sorted({c.coach_id for c in conflicts})
            raise SlotUnavailable(
                f"{', '.join(busy_coaches)} already booked or away between "
                f"{start.isoformat()} and {end.isoformat()}. "
                "Refresh availability and choose another time.",
                details={
                    "conflicts": [c.to_dict() for c in conflicts],
                    "refresh_availability": True,
                },
            )

    # --- Blackouts ---

    async def add_blackout(
        self,
        coach_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str] = None,
    ) -> BlackoutInterval:
        """Record a coach's away time exactly as declared.

        The interval is not snapped to the slot grid: every slot it touches
        shows as blocked. Existing bookings are left untouched.
        """
        coach = _as_coach_list(coach_id)[0]
        start, end = self.validate_range(start, end)
        blackout = BlackoutInterval(
            id=f"BO-{uuid.uuid4().hex[:8].upper()}",
            coach_id=coach,
            start=start,
            end=end,
            note=note,
        )
        async with self._locks.hold([coach], start, end):
            await self._store.save_blackout(blackout)
        logger.info(
            "Blackout %s added for %s: %s - %s",
            blackout.id, coach, start.isoformat(), end.isoformat(),
        )
        return blackout

    async def list_blackouts(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[BlackoutInterval]:
        return await self._store.list_blackouts_for_coach(coach_id, start, end)

    async def remove_blackout(self, coach_id: str, blackout_id: str) -> bool:
        removed = await self._store.delete_blackout(coach_id, blackout_id)
        if removed:
            logger.info("Blackout %s removed for %s", blackout_id, coach_id)
        return removed
