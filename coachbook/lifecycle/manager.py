"""
Booking lifecycle manager.

The single writer of booking status. Every operation is an atomic
read-modify-write:

* create_booking holds the schedule reservation for every coach over the
  requested range while it re-checks the store and writes, so two
  clients racing for the same slot cannot both succeed;
* accept/reject/confirm hold the per-booking lock while they reload the
  booking, apply the transition and save it.

Notifications go out after the write and after the lock is released;
a notification failure never undoes a transition.
"""

import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from coachbook.availability.engine import AvailabilityEngine
from coachbook.concurrency.locks import ScheduleLockManager
from coachbook.errors import (
    BookingNotFound,
    BookingTerminal,
    InvalidParticipants,
    InvalidRate,
    InvalidStatusTransition,
    NotReadyForConfirmation,
    UnknownParticipant,
)
from coachbook.lifecycle.state_machine import (
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)
from coachbook.logging_context import ensure_request_id, get_request_logger
from coachbook.notifications.dispatcher import BookingNotifier
from coachbook.schemas.booking_schema import Booking, BookingStatus, PaymentStatus
from coachbook.schemas.notification_schema import BookingEvent
from coachbook.store.base import BookingStore

logger = get_request_logger(__name__)

CONFIRMABLE_STATUSES = frozenset({
    BookingStatus.PENDING_CLIENT_CONFIRMATION,
    BookingStatus.PARTIALLY_CONFIRMED,
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_ids(ids: Iterable[str], role: str) -> list[str]:
    if isinstance(ids, str):
        ids = [ids]
    cleaned = list(dict.fromkeys(i.strip() for i in ids if i and i.strip()))
    if not cleaned:
        raise InvalidParticipants(
            f"A booking needs at least one {role}.", details={"role": role}
        )
    return cleaned


def _new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


class BookingLifecycleManager:
    """Creates bookings and moves them through the acceptance/confirmation lifecycle."""

    def __init__(
        self,
        store: BookingStore,
        engine: AvailabilityEngine,
        lock_manager: ScheduleLockManager,
        notifier: Optional[BookingNotifier] = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._locks = lock_manager
        self._notifier = notifier

    # --- Reads ---

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await self._store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound(
                f"Booking {booking_id} not found.", details={"booking_id": booking_id}
            )
        return booking

    async def list_bookings_for_coach(
        self,
        coach_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Booking]:
        return await self._store.list_bookings_for_coach(coach_id, start, end)

    async def list_bookings_for_client(self, client_id: str) -> list[Booking]:
        return await self._store.list_bookings_for_client(client_id)

    # --- Create ---

    async def create_booking(
        self,
        coach_ids: Iterable[str],
        client_ids: Iterable[str],
        start: datetime,
        end: datetime,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        rate_usd: Optional[float] = None,
    ) -> Booking:
        """
        Create a ``requested`` booking after re-validating availability.

        Raises:
            InvalidParticipants: No coach or no client given.
            InvalidTimeRange: ``start >= end`` (before or after snapping).
            SlotUnavailable: A coach is booked or away during the range.
            Timeout: The schedule reservation was not obtained in time.
        """
        ensure_request_id()
        coaches = _clean_ids(coach_ids, "coach")
        clients = _clean_ids(client_ids, "client")
        (start, end), (check_start, check_end) = self._engine.resolve_range(start, end)

        async with self._locks.hold(coaches, check_start, check_end):
            await self._engine.ensure_available(coaches, check_start, check_end)
            now = _utcnow()
            booking = Booking(
                id=_new_booking_id(),
                coach_ids=coaches,
                client_ids=clients,
                start=start,
                end=end,
                status=BookingStatus.REQUESTED,
                coach_acceptances={c: False for c in coaches},
                client_confirmations={c: False for c in clients},
                location=location,
                notes=notes,
                rate_usd=rate_usd,
                created_at=now,
                updated_at=now,
            )
            await self._store.save_booking(booking)

        logger.info(
            "Booking requested: %s coaches=%s clients=%s %s - %s",
            booking.id, coaches, clients, start.isoformat(), end.isoformat(),
        )
        await self._notify(booking, BookingEvent.REQUESTED, clients[0], coaches)
        return booking

    # --- Coach actions ---

    async def coach_accept(
        self,
        booking_id: str,
        coach_id: str,
        rate_usd: Optional[float] = None,
        coach_note: Optional[str] = None,
    ) -> Booking:
        """
        Record a coach's acceptance, optionally setting the hourly rate and a note.

        Repeating an acceptance is a no-op that returns the booking unchanged;
        a rate or note passed with the repeat is ignored.

        Raises:
            BookingNotFound, BookingTerminal, UnknownParticipant, InvalidRate, Timeout
        """
        ensure_request_id()
        if rate_usd is not None and rate_usd <= 0:
            raise InvalidRate(
                f"Hourly rate must be positive, got {rate_usd}.",
                details={"booking_id": booking_id, "rate_usd": rate_usd},
            )
        async with self._locks.booking_lock(booking_id):
            booking = await self.get_booking(booking_id)
            self._ensure_not_terminal(booking, "accept")
            if coach_id not in booking.coach_acceptances:
                raise UnknownParticipant(
                    f"Coach {coach_id} is not part of booking {booking_id}.",
                    details={"booking_id": booking_id, "coach_id": coach_id},
                )
            if booking.coach_acceptances[coach_id]:
                logger.debug("Coach %s already accepted %s", coach_id, booking_id)
                return booking

            acceptances = {**booking.coach_acceptances, coach_id: True}
            trigger = (
                BookingTrigger.ALL_COACHES_ACCEPTED
                if all(acceptances.values())
                else BookingTrigger.COACH_ACCEPTED
            )
            status = self._advance(booking, trigger)
            update = {"coach_acceptances": acceptances, "status": status, "updated_at": _utcnow()}
            if rate_usd is not None:
                update["rate_usd"] = rate_usd
            if coach_note and coach_note.strip():
                update["coach_note"] = coach_note.strip()
            updated = booking.model_copy(update=update)
            await self._store.save_booking(updated)

        logger.info("Coach %s accepted %s -> %s", coach_id, booking_id, status.value)
        event = (
            BookingEvent.ACCEPTED
            if status == BookingStatus.PENDING_CLIENT_CONFIRMATION
            else BookingEvent.PARTIALLY_ACCEPTED
        )
        await self._notify(updated, event, coach_id, updated.client_ids)
        return updated

    async def coach_reject(
        self, booking_id: str, coach_id: str, reason: Optional[str] = None
    ) -> Booking:
        """
        Reject a booking from any non-terminal status.

        Raises:
            BookingNotFound, BookingTerminal, UnknownParticipant, Timeout
        """
        ensure_request_id()
        async with self._locks.booking_lock(booking_id):
            booking = await self.get_booking(booking_id)
            self._ensure_not_terminal(booking, "reject")
            if coach_id not in booking.coach_ids:
                raise UnknownParticipant(
                    f"Coach {coach_id} is not part of booking {booking_id}.",
                    details={"booking_id": booking_id, "coach_id": coach_id},
                )
            status = self._advance(booking, BookingTrigger.COACH_REJECTED)
            updated = booking.model_copy(update={
                "status": status,
                "rejected_by": coach_id,
                "rejection_reason": reason,
                "updated_at": _utcnow(),
            })
            await self._store.save_booking(updated)

        logger.info("Coach %s rejected %s (reason: %s)", coach_id, booking_id, reason)
        recipients = updated.client_ids + [c for c in updated.coach_ids if c != coach_id]
        await self._notify(updated, BookingEvent.REJECTED, coach_id, recipients, reason)
        return updated

    # --- Client actions ---

    async def client_confirm(self, booking_id: str, client_id: str) -> Booking:
        """
        Record a client's confirmation once every coach has accepted.

        Repeating a confirmation is a no-op that returns the booking unchanged.

        Raises:
            BookingNotFound, BookingTerminal, UnknownParticipant,
            NotReadyForConfirmation, Timeout
        """
        ensure_request_id()
        async with self._locks.booking_lock(booking_id):
            booking = await self.get_booking(booking_id)
            self._ensure_not_terminal(booking, "confirm")
            if client_id not in booking.client_confirmations:
                raise UnknownParticipant(
                    f"Client {client_id} is not part of booking {booking_id}.",
                    details={"booking_id": booking_id, "client_id": client_id},
                )
            if booking.client_confirmations[client_id]:
                logger.debug("Client %s already confirmed %s", client_id, booking_id)
                return booking
            if booking.status not in CONFIRMABLE_STATUSES or not booking.all_coaches_accepted:
                raise NotReadyForConfirmation(
                    f"Booking {booking_id} is waiting for every coach to accept "
                    f"(status: {booking.status.value}).",
                    details={"booking_id": booking_id, "status": booking.status.value},
                )

            confirmations = {**booking.client_confirmations, client_id: True}
            trigger = (
                BookingTrigger.ALL_CLIENTS_CONFIRMED
                if all(confirmations.values())
                else BookingTrigger.CLIENT_CONFIRMED
            )
            status = self._advance(booking, trigger)
            now = _utcnow()
            update = {"client_confirmations": confirmations, "status": status, "updated_at": now}
            if status == BookingStatus.CONFIRMED:
                update["confirmed_at"] = now
            updated = booking.model_copy(update=update)
            await self._store.save_booking(updated)

        logger.info("Client %s confirmed %s -> %s", client_id, booking_id, status.value)
        if status == BookingStatus.CONFIRMED:
            recipients = updated.coach_ids + updated.client_ids
            await self._notify(updated, BookingEvent.CONFIRMED, client_id, recipients)
        else:
            await self._notify(updated, BookingEvent.CLIENT_CONFIRMED, client_id, updated.coach_ids)
        return updated

    # --- Payment ---

    async def update_payment_status(
        self, booking_id: str, payment_status: PaymentStatus
    ) -> Booking:
        """Record payment. Independent of the scheduling status."""
        ensure_request_id()
        payment_status = PaymentStatus(payment_status)
        async with self._locks.booking_lock(booking_id):
            booking = await self.get_booking(booking_id)
            if booking.payment_status == payment_status:
                return booking
            updated = booking.model_copy(update={
                "payment_status": payment_status,
                "updated_at": _utcnow(),
            })
            await self._store.save_booking(updated)
        logger.info("Booking %s payment status -> %s", booking_id, payment_status.value)
        return updated

    # --- Internals ---

    @staticmethod
    def _ensure_not_terminal(booking: Booking, action: str) -> None:
        if booking.is_terminal:
            raise BookingTerminal(
                f"Cannot {action} booking {booking.id}: it is already {booking.status.value}.",
                details={"booking_id": booking.id, "status": booking.status.value},
            )

    @staticmethod
    def _advance(booking: Booking, trigger: BookingTrigger) -> BookingStatus:
        try:
            return BookingStateMachine(booking.status).transition(trigger)
        except InvalidTransitionError as exc:
            raise InvalidStatusTransition(
                str(exc), details={"booking_id": booking.id, "status": booking.status.value}
            ) from exc

    async def _notify(
        self,
        booking: Booking,
        event: BookingEvent,
        actor_id: str,
        recipients: Iterable[str],
        reason: Optional[str] = None,
    ) -> None:
        if self._notifier is None:
            return
        await self._notifier.notify(booking, event, actor_id, recipients, reason)
