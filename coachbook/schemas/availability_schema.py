"""Blackout interval and derived slot models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SlotStatus(str, Enum):
    FREE = "free"
    BLOCKED = "blocked"


class BlackoutInterval(BaseModel):
    """Coach-declared span of unavailability, independent of bookings."""

    id: str
    coach_id: str
    start: datetime
    end: datetime
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_time_range(self) -> "BlackoutInterval":
        if self.start >= self.end:
            raise ValueError(f"start {self.start} must be before end {self.end}")
        return self


class Slot(BaseModel):
    """
    One fixed-duration unit of a coach's working window on a given day.

    Slots are never persisted. ``blocked_by`` lists the ids of the
    bookings and blackout intervals that overlap the slot.
    """

    start: datetime
    end: datetime
    status: SlotStatus = SlotStatus.FREE
    blocked_by: list[str] = Field(default_factory=list)

    @property
    def is_free(self) -> bool:
        return self.status == SlotStatus.FREE
