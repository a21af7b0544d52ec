"""
Write-time conflict detection.

The slot grid a client looked at may already be stale when the request
arrives, so every write re-reads the store for each coach involved and
checks the exact requested range against active bookings and blackouts.
Callers are expected to hold the schedule reservation for those coaches
while calling ``find_conflicts`` and writing the result.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable

from coachbook.availability.slots import BusyInterval, busy_from_blackouts, busy_from_bookings
from coachbook.store.base import BookingStore
from coachbook.utils import overlaps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """One existing booking or blackout that overlaps a requested range."""

    coach_id: str
    kind: str
    source_id: str
    start: datetime
    end: datetime

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        return data


class ConflictChecker:
    """Checks a candidate range against the store for one or more coaches."""

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    async def busy_intervals(
        self, coach_id: str, start: datetime, end: datetime
    ) -> list[BusyInterval]:
        """Active bookings and blackouts for ``coach_id`` touching ``[start, end)``."""
        bookings = await self._store.list_bookings_for_coach(coach_id, start, end)
        blackouts = await self._store.list_blackouts_for_coach(coach_id, start, end)
        return busy_from_bookings(bookings) + busy_from_blackouts(blackouts)

    async def find_conflicts(
        self, coach_ids: Iterable[str], start: datetime, end: datetime
    ) -> list[Conflict]:
        coach_ids = list(coach_ids)
        conflicts = []
        for coach_id in coach_ids:
            for busy in await self.busy_intervals(coach_id, start, end):
                if overlaps(busy.start, busy.end, start, end):
                    conflicts.append(Conflict(
                        coach_id=coach_id,
                        kind=busy.kind,
                        source_id=busy.source_id,
                        start=busy.start,
                        end=busy.end,
                    ))

        if conflicts:
            logger.warning(
                "Found %d conflict(s) for coaches %s between %s and %s",
                len(conflicts), coach_ids, start.isoformat(), end.isoformat(),
            )
        return conflicts
