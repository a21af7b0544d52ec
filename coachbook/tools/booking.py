"""
Booking operations for the calling UI/API layer.

Each function wraps a lifecycle manager call and returns a result dict
instead of raising, so callers branch on ``success`` and ``error_code``.
"""

from datetime import datetime
from typing import Optional, TypedDict, Union

from coachbook.errors import BookingError
from coachbook.schemas.booking_schema import Booking, PaymentStatus
from coachbook.service import SchedulingService
from coachbook.tools.results import ErrorFields, error_result


class BookingRecord(TypedDict):
    """Serialized booking returned to callers."""

    id: str
    coach_ids: list[str]
    client_ids: list[str]
    start: str
    end: str
    status: str
    coach_acceptances: dict[str, bool]
    client_confirmations: dict[str, bool]
    rejected_by: Optional[str]
    rejection_reason: Optional[str]
    location: Optional[str]
    notes: Optional[str]
    payment_status: str
    rate_usd: Optional[float]
    coach_note: Optional[str]
    created_at: str
    updated_at: str
    confirmed_at: Optional[str]


class BookingResult(ErrorFields, total=False):
    """Result from create_booking, coach_accept, coach_reject, client_confirm."""

    booking_id: str
    status: str
    booking: BookingRecord


def _success(booking: Booking, message: str) -> BookingResult:
    return {
        "success": True,
        "message": message,
        "booking_id": booking.id,
        "status": booking.status.value,
        "booking": booking.model_dump(mode="json"),  # type: ignore[typeddict-item]
    }


async def create_booking(
    service: SchedulingService,
    coach_ids: Union[str, list[str]],
    client_ids: Union[str, list[str]],
    start: datetime,
    end: datetime,
    location: Optional[str] = None,
    notes: Optional[str] = None,
    rate_usd: Optional[float] = None,
) -> BookingResult:
    """Request a session. Fails with ``slot_unavailable`` if the time was taken."""
    if isinstance(coach_ids, str):
        coach_ids = [coach_ids]
    if isinstance(client_ids, str):
        client_ids = [client_ids]
    try:
        booking = await service.lifecycle.create_booking(
            coach_ids, client_ids, start, end,
            location=location, notes=notes, rate_usd=rate_usd,
        )
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return _success(
        booking,
        f"Booking requested. Reference number: {booking.id}. "
        f"{booking.start.isoformat()} to {booking.end.isoformat()}.",
    )


async def coach_accept(
    service: SchedulingService,
    booking_id: str,
    coach_id: str,
    rate_usd: Optional[float] = None,
    coach_note: Optional[str] = None,
) -> BookingResult:
    try:
        booking = await service.lifecycle.coach_accept(
            booking_id, coach_id, rate_usd=rate_usd, coach_note=coach_note
        )
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return _success(booking, f"Booking {booking.id} is now {booking.status.value}.")


async def coach_reject(
    service: SchedulingService,
    booking_id: str,
    coach_id: str,
    reason: Optional[str] = None,
) -> BookingResult:
    try:
        booking = await service.lifecycle.coach_reject(booking_id, coach_id, reason)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return _success(booking, f"Booking {booking.id} has been rejected.")


async def client_confirm(
    service: SchedulingService, booking_id: str, client_id: str
) -> BookingResult:
    try:
        booking = await service.lifecycle.client_confirm(booking_id, client_id)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return _success(booking, f"Booking {booking.id} is now {booking.status.value}.")


async def get_booking(service: SchedulingService, booking_id: str) -> BookingResult:
    try:
        booking = await service.lifecycle.get_booking(booking_id)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return _success(booking, f"Booking {booking.id} is {booking.status.value}.")


async def update_payment_status(
    service: SchedulingService, booking_id: str, payment_status: Union[str, PaymentStatus]
) -> BookingResult:
    try:
        status = PaymentStatus(payment_status)
    except ValueError:
        return {
            "success": False,
            "message": f"Unknown payment status: {payment_status!r}.",
            "error_code": "invalid_payment_status",
            "retryable": False,
        }
    try:
        booking = await service.lifecycle.update_payment_status(booking_id, status)
    except BookingError as exc:
        return error_result(exc)  # type: ignore[return-value]
    return _success(booking, f"Booking {booking.id} marked {status.value}.")
