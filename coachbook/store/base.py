"""
Persistence boundary for bookings and blackout intervals.

The engine never assumes a particular backend. Anything that implements
``BookingStore`` (a document store, a relational database, the in-memory
store used by tests and the console demo) can sit behind it. Every method
is a coroutine because every store call is a potential suspension point.

Implementations must hand out copies: mutating a returned object must
never change stored state. Connection failures should surface as
``ConnectionError``/``OSError`` so the service can map them to
``StoreUnavailable``.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from coachbook.schemas.availability_schema import BlackoutInterval
from coachbook.schemas.booking_schema import Booking


@runtime_checkable
class BookingStore(Protocol):
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        ...

    async def save_booking(self, booking: Booking) -> None:
        """Insert or replace a booking record keyed by ``booking.id``."""
        ...

    async def list_bookings_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Booking]:
        """Bookings involving ``coach_id`` overlapping ``[start, end)`` (all when unbounded)."""
        ...

    async def list_bookings_for_client(self, client_id: str) -> list[Booking]:
        ...

    async def get_blackout(self, coach_id: str, blackout_id: str) -> Optional[BlackoutInterval]:
        ...

    async def save_blackout(self, blackout: BlackoutInterval) -> None:
        ...

    async def delete_blackout(self, coach_id: str, blackout_id: str) -> bool:
        ...

    async def list_blackouts_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[BlackoutInterval]:
        ...
