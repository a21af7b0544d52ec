"""Notification payloads emitted after lifecycle transitions."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class BookingEvent(str, Enum):
    REQUESTED = "requested"
    PARTIALLY_ACCEPTED = "partially_accepted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CLIENT_CONFIRMED = "client_confirmed"
    CONFIRMED = "confirmed"


class Notification(BaseModel):
    """A single message for one recipient about one booking."""

    recipient_id: str
    sender_id: str
    booking_id: str
    event: BookingEvent
    title: str
    body: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
