"""Booking data model and lifecycle enums."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from coachbook.utils import duration_hours


class BookingStatus(str, Enum):
    """Closed set of lifecycle states a booking can be in."""

    REQUESTED = "requested"
    PARTIALLY_ACCEPTED = "partially_accepted"
    PENDING_CLIENT_CONFIRMATION = "pending_client_confirmation"
    PARTIALLY_CONFIRMED = "partially_confirmed"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.REJECTED})

# Every status except REJECTED occupies the coach's calendar.
ACTIVE_STATUSES = frozenset(set(BookingStatus) - {BookingStatus.REJECTED})


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dedupe(ids: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in ids:
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


class Booking(BaseModel):
    """
    A requested or confirmed coaching session.

    Records written before group sessions existed carry a single
    ``coach_id``/``client_id`` and empty acceptance/confirmation maps.
    Those are read through the same model: the singleton id lists are
    rebuilt from the legacy fields, and an empty map is treated as
    "already accepted/confirmed" through the explicit legacy predicates.
    """

    id: str
    coach_ids: list[str]
    client_ids: list[str]
    start: datetime
    end: datetime
    status: BookingStatus = BookingStatus.REQUESTED
    coach_acceptances: dict[str, bool] = Field(default_factory=dict)
    client_confirmations: dict[str, bool] = Field(default_factory=dict)
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    rate_usd: Optional[float] = None
    coach_note: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    confirmed_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _apply_legacy_participants(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for plural, singular in (("coach_ids", "coach_id"), ("client_ids", "client_id")):
            legacy = data.pop(singular, None)
            if not data.get(plural):
                data[plural] = [legacy] if legacy else []
        return data

    @field_validator("coach_ids", "client_ids")
    @classmethod
    def _normalize_ids(cls, value: list[str]) -> list[str]:
        return _dedupe(value)

    @model_validator(mode="after")
    def _check_time_range(self) -> "Booking":
        if self.start >= self.end:
            raise ValueError(f"start {self.start} must be before end {self.end}")
        return self

    @property
    def is_legacy_acceptance(self) -> bool:
        """True for records that predate per-coach acceptance tracking."""
        return not self.coach_acceptances

    @property
    def is_legacy_confirmation(self) -> bool:
        """True for records that predate per-client confirmation tracking."""
        return not self.client_confirmations

    @property
    def all_coaches_accepted(self) -> bool:
        if self.is_legacy_acceptance:
            return True
        return all(self.coach_acceptances.values())

    @property
    def all_clients_confirmed(self) -> bool:
        if self.is_legacy_confirmation:
            return True
        return all(self.client_confirmations.values())

    @property
    def is_group_booking(self) -> bool:
        return len(self.coach_ids) > 1 or len(self.client_ids) > 1

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.start, self.end)

    def estimated_cost(self, rate_usd: Optional[float] = None) -> Optional[float]:
        """Hourly rate times the half-hour-rounded duration, if both are positive."""
        rate = rate_usd if rate_usd is not None else self.rate_usd
        hours = self.duration_hours
        if rate is None or rate <= 0 or hours <= 0:
            return None
        return rate * hours
