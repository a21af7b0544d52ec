"""
Domain errors raised by the lifecycle manager and availability engine.

Every error carries a stable ``code`` and a ``retryable`` flag so the
tools layer can turn it into a typed result without inspecting messages.
None of these are fatal to the process.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for all scheduling domain errors."""

    code = "booking_error"
    retryable = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidTimeRange(BookingError):
    """Start is not strictly before end."""

    code = "invalid_time_range"


class InvalidParticipants(BookingError):
    """A booking request names no coach or no client."""

    code = "invalid_participants"


class InvalidGranularity(BookingError):
    """Slot granularity does not divide the day or the working window."""

    code = "invalid_granularity"


class InvalidRate(BookingError):
    """An hourly rate is zero or negative."""

    code = "invalid_rate"


class SlotUnavailable(BookingError):
    """The requested range conflicts with an active booking or blackout.

    The caller must re-fetch availability before retrying.
    """

    code = "slot_unavailable"


class BookingNotFound(BookingError):
    code = "booking_not_found"


class BookingTerminal(BookingError):
    """The booking is confirmed or rejected and accepts no further actions."""

    code = "booking_terminal"


class NotReadyForConfirmation(BookingError):
    """A client tried to confirm before every coach accepted."""

    code = "not_ready_for_confirmation"


class UnknownParticipant(BookingError):
    """The acting coach or client is not part of the booking."""

    code = "unknown_participant"


class Timeout(BookingError):
    """The atomic validate-and-write step did not finish within its budget."""

    code = "timeout"
    retryable = True


class StoreUnavailable(BookingError):
    """The backing store could not be reached. Retry with backoff."""

    code = "store_unavailable"
    retryable = True


class InvalidStatusTransition(BookingError):
    """The stored status does not allow the requested action."""

    code = "invalid_status_transition"
