from coachbook.schemas.availability_schema import BlackoutInterval, Slot, SlotStatus
from coachbook.schemas.booking_schema import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from coachbook.schemas.notification_schema import BookingEvent, Notification

__all__ = [
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "BlackoutInterval",
    "Slot",
    "SlotStatus",
    "BookingEvent",
    "Notification",
]
