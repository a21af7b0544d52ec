"""
Mutual exclusion for the validate-then-write critical sections.

Two kinds of locks are provided:

* Schedule reservations keyed by coach and time range. A create-booking
  (or add-blackout) call holds a reservation for every coach involved
  while it re-reads the store, checks for conflicts and writes. A second
  call waits only if it touches one of the same coaches over an
  overlapping range; other coaches and disjoint ranges proceed untouched.
  All coaches of one request are reserved in a single step, so group
  requests cannot deadlock against each other.

* Per-booking locks that serialise accept/reject/confirm calls on the
  same booking.

Both give up after a time budget and raise the retryable ``Timeout``
error without having written anything.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Iterable, Optional

from coachbook.config import settings
from coachbook.errors import Timeout
from coachbook.utils import overlaps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Reservation:
    token: int
    start: datetime
    end: datetime


class ScheduleLockManager:
    """Per-coach interval reservations guarded by a single condition variable."""

    def __init__(self, timeout_sec: Optional[float] = None) -> None:
        self._timeout_sec = timeout_sec or settings.concurrency.lock_timeout_sec
        self._condition = asyncio.Condition()
        self._held: dict[str, list[_Reservation]] = {}
        self._next_token = 0
        self._booking_locks: dict[str, asyncio.Lock] = {}
        self._booking_lock_users: dict[str, int] = {}

    def _is_contended(self, coach_ids: Iterable[str], start: datetime, end: datetime) -> bool:
        for coach_id in coach_ids:
            for held in self._held.get(coach_id, ()):
                if overlaps(held.start, held.end, start, end):
                    return True
        return False

    def held_count(self, coach_id: str) -> int:
        """Number of active reservations for a coach."""
        return len(self._held.get(coach_id, ()))

    @asynccontextmanager
    async def hold(
        self,
        coach_ids: Iterable[str],
        start: datetime,
        end: datetime,
        timeout: Optional[float] = None,
    ) -> AsyncIterator[None]:
        """Reserve ``[start, end)`` for every coach in ``coach_ids``.

        Raises:
            Timeout: If an overlapping reservation is not released in time.
        """
        coach_ids = list(coach_ids)
        budget = timeout if timeout is not None else self._timeout_sec

        async with self._condition:
            try:
                await asyncio.wait_for(
                    self._condition.wait_for(
                        lambda: not self._is_contended(coach_ids, start, end)
                    ),
                    budget,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Schedule lock timed out after %.2fs for coaches %s (%s - %s)",
                    budget, coach_ids, start.isoformat(), end.isoformat(),
                )
                raise Timeout(
                    "Timed out waiting for the schedule of "
                    f"{', '.join(coach_ids)}; please retry.",
                    details={"coach_ids": coach_ids, "timeout_sec": budget},
                ) from None

            self._next_token += 1
            reservation = _Reservation(self._next_token, start, end)
            for coach_id in coach_ids:
                self._held.setdefault(coach_id, []).append(reservation)

        try:
            yield
        finally:
            async with self._condition:
                for coach_id in coach_ids:
                    remaining = [r for r in self._held.get(coach_id, []) if r is not reservation]
                    if remaining:
                        self._held[coach_id] = remaining
                    else:
                        self._held.pop(coach_id, None)
                self._condition.notify_all()

    @asynccontextmanager
    async def booking_lock(
        self, booking_id: str, timeout: Optional[float] = None
    ) -> AsyncIterator[None]:
        """Serialise updates to a single booking.

        Raises:
            Timeout: If the lock is not acquired within the budget.
        """
        budget = timeout if timeout is not None else self._timeout_sec
        lock = self._booking_locks.setdefault(booking_id, asyncio.Lock())
        self._booking_lock_users[booking_id] = self._booking_lock_users.get(booking_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), budget)
            except asyncio.TimeoutError:
                logger.warning("Booking lock timed out after %.2fs: %s", budget, booking_id)
                raise Timeout(
                    f"Timed out waiting to update booking {booking_id}; please retry.",
                    details={"booking_id": booking_id, "timeout_sec": budget},
                ) from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._booking_lock_users[booking_id] -= 1
            if self._booking_lock_users[booking_id] == 0:
                del self._booking_lock_users[booking_id]
                self._booking_locks.pop(booking_id, None)
