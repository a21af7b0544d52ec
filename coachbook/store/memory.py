"""
In-memory booking store.

In production this would be backed by a document store or a relational
database. Records are kept as deep copies so callers only ever see
snapshots, never the stored objects themselves.
"""

import logging
from datetime import datetime
from typing import Optional

from coachbook.schemas.availability_schema import BlackoutInterval
from coachbook.schemas.booking_schema import Booking

logger = logging.getLogger(__name__)


def _in_range(
    item_start: datetime,
    item_end: datetime,
    start: Optional[datetime],
    end: Optional[datetime],
) -> bool:
    if start is not None and item_end <= start:
        return False
    if end is not None and item_start >= end:
        return False
    return True


class InMemoryBookingStore:
    """Dict-backed ``BookingStore`` implementation."""

    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._blackouts: dict[tuple[str, str], BlackoutInterval] = {}

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def save_booking(self, booking: Booking) -> None:
        self._bookings[booking.id] = booking.model_copy(deep=True)
        logger.debug("Booking saved: %s (%s)", booking.id, booking.status.value)

    async def list_bookings_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Booking]:
        results = [
            b.model_copy(deep=True)
            for b in self._bookings.values()
            if coach_id in b.coach_ids and _in_range(b.start, b.end, start, end)
        ]
        return sorted(results, key=lambda b: b.start)

    async def list_bookings_for_client(self, client_id: str) -> list[Booking]:
        results = [
            b.model_copy(deep=True) for b in self._bookings.values() if client_id in b.client_ids
        ]
        return sorted(results, key=lambda b: b.start)

    async def get_blackout(self, coach_id: str, blackout_id: str) -> Optional[BlackoutInterval]:
        blackout = self._blackouts.get((coach_id, blackout_id))
        return blackout.model_copy(deep=True) if blackout else None

    async def save_blackout(self, blackout: BlackoutInterval) -> None:
        self._blackouts[(blackout.coach_id, blackout.id)] = blackout.model_copy(deep=True)
        logger.debug("Blackout saved: %s for coach %s", blackout.id, blackout.coach_id)

    async def delete_blackout(self, coach_id: str, blackout_id: str) -> bool:
        return self._blackouts.pop((coach_id, blackout_id), None) is not None

    async def list_blackouts_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[BlackoutInterval]:
        results = [
            b.model_copy(deep=True)
            for (owner, _), b in self._blackouts.items()
            if owner == coach_id and _in_range(b.start, b.end, start, end)
        ]
        return sorted(results, key=lambda b: b.start)

    def reset(self) -> None:
        """Clear all records. Used by test fixtures for isolation."""
        self._bookings.clear()
        self._blackouts.clear()
