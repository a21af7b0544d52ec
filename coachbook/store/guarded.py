"""
Store wrapper that enforces a time budget and normalises backend failures.

Every call is bounded by ``STORE_TIMEOUT_SECONDS``. A call that runs out
of time raises ``Timeout``; connection-level failures raise
``StoreUnavailable``. Both are retryable, and neither leaves a partial
record behind because each write is a single ``save_*`` call.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Optional, TypeVar

from coachbook.config import settings
from coachbook.errors import StoreUnavailable, Timeout
from coachbook.schemas.availability_schema import BlackoutInterval
from coachbook.schemas.booking_schema import Booking
from coachbook.store.base import BookingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GuardedStore:
    """``BookingStore`` decorator adding timeouts and error mapping."""

    def __init__(self, inner: BookingStore, timeout_sec: Optional[float] = None) -> None:
        self.inner = inner
        self._timeout_sec = timeout_sec or settings.concurrency.store_timeout_sec

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, self._timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("Store call '%s' timed out after %.2fs", operation, self._timeout_sec)
            raise Timeout(
                f"Store call '{operation}' timed out; please retry.",
                details={"operation": operation, "timeout_sec": self._timeout_sec},
            ) from None
        except (ConnectionError, OSError) as exc:
            logger.error("Store call '%s' failed: %s", operation, exc)
            raise StoreUnavailable(
                "The booking store is unavailable; please retry shortly.",
                details={"operation": operation, "error": str(exc)},
            ) from exc

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return await self._call("get_booking", self.inner.get_booking(booking_id))

    async def save_booking(self, booking: Booking) -> None:
        await self._call("save_booking", self.inner.save_booking(booking))

    async def list_bookings_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Booking]:
        return await self._call(
            "list_bookings_for_coach", self.inner.list_bookings_for_coach(coach_id, start, end)
        )

    async def list_bookings_for_client(self, client_id: str) -> list[Booking]:
        return await self._call(
            "list_bookings_for_client", self.inner.list_bookings_for_client(client_id)
        )

    async def get_blackout(self, coach_id: str, blackout_id: str) -> Optional[BlackoutInterval]:
        return await self._call("get_blackout", self.inner.get_blackout(coach_id, blackout_id))

    async def save_blackout(self, blackout: BlackoutInterval) -> None:
        await self._call("save_blackout", self.inner.save_blackout(blackout))

    async def delete_blackout(self, coach_id: str, blackout_id: str) -> bool:
        return await self._call(
            "delete_blackout", self.inner.delete_blackout(coach_id, blackout_id)
        )

    async def list_blackouts_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[BlackoutInterval]:
        return await self._call(
            "list_blackouts_for_coach", self.inner.list_blackouts_for_coach(coach_id, start, end)
        )
