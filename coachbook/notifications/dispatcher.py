"""
Notification dispatch and the other external collaborators.

The engine only defines the interfaces it consumes. Delivery (push,
SMS, email) lives elsewhere; dispatch is best-effort and a failure to
notify is logged, never propagated, so it cannot undo a transition that
has already been written.
"""

import asyncio
import logging
from typing import Iterable, Optional, Protocol, runtime_checkable

from coachbook.config import settings
from coachbook.schemas.booking_schema import Booking
from coachbook.schemas.notification_schema import BookingEvent, Notification

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationDispatcher(Protocol):
    async def dispatch(self, notification: Notification) -> None:
        ...


@runtime_checkable
class NameResolver(Protocol):
    def display_name(self, user_id: str) -> Optional[str]:
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    def current_user_id(self) -> str:
        ...


class StaticIdentityProvider:
    """Identity provider returning a fixed user id (CLI and tests)."""

    def __init__(self, user_id: str) -> None:
        self._user_id = user_id

    def current_user_id(self) -> str:
        return self._user_id


class StaticNameResolver:
    """Name lookup backed by a plain dict."""

    def __init__(self, names: Optional[dict[str, str]] = None) -> None:
        self._names = dict(names or {})

    def display_name(self, user_id: str) -> Optional[str]:
        return self._names.get(user_id)


class LoggingNotificationDispatcher:
    """Writes notifications to the log instead of delivering them."""

    async def dispatch(self, notification: Notification) -> None:
        logger.info(
            "Notify %s about %s (%s): %s",
            notification.recipient_id, notification.booking_id,
            notification.event.value, notification.body,
        )


class InMemoryNotificationDispatcher:
    """Collects notifications in a list. Used by tests and the console demo."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def dispatch(self, notification: Notification) -> None:
        self.sent.append(notification)

    def for_recipient(self, recipient_id: str) -> list[Notification]:
        return [n for n in self.sent if n.recipient_id == recipient_id]

    def reset(self) -> None:
        self.sent.clear()


# Title and body templates per event; {actor} is the acting party's display name.
MESSAGE_TEMPLATES: dict[BookingEvent, tuple[str, str]] = {
    BookingEvent.REQUESTED: (
        "Booking Requested",
        "Booking Requested by {actor} Action Required",
    ),
    BookingEvent.PARTIALLY_ACCEPTED: (
        "Coach Accepted",
        "{actor} has accepted your booking. Waiting for the other coaches.",
    ),
    BookingEvent.ACCEPTED: (
        "Action Required: Confirm Booking",
        "{actor} has accepted your booking. Please confirm.",
    ),
    BookingEvent.REJECTED: (
        "Booking Rejected",
        "{actor} has rejected the booking.{reason}",
    ),
    BookingEvent.CLIENT_CONFIRMED: (
        "Booking Confirmation Received",
        "{actor} has confirmed the booking.",
    ),
    BookingEvent.CONFIRMED: (
        "Booking Confirmed",
        "{actor} has confirmed. The booking is now confirmed.",
    ),
}


class BookingNotifier:
    """Builds per-recipient notifications for a transition and sends them."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        name_resolver: Optional[NameResolver] = None,
        enabled: bool = True,
        timeout_sec: Optional[float] = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._names = name_resolver or StaticNameResolver()
        self._enabled = enabled
        self._timeout = timeout_sec or settings.notifications.dispatch_timeout_sec

    def _actor_name(self, actor_id: str, fallback: str) -> str:
        return self._names.display_name(actor_id) or fallback

    def build(
        self,
        booking: Booking,
        event: BookingEvent,
        actor_id: str,
        recipients: Iterable[str],
        reason: Optional[str] = None,
    ) -> list[Notification]:
        fallback = "A coach" if actor_id in booking.coach_ids else "A client"
        title, body = MESSAGE_TEMPLATES[event]
        body = body.format(
            actor=self._actor_name(actor_id, fallback),
            reason=f" Reason: {reason}" if reason else "",
        )
        return [
            Notification(
                recipient_id=recipient,
                sender_id=actor_id,
                booking_id=booking.id,
                event=event,
                title=title,
                body=body,
            )
            for recipient in recipients
            if recipient != actor_id
        ]

    async def notify(
        self,
        booking: Booking,
        event: BookingEvent,
        actor_id: str,
        recipients: Iterable[str],
        reason: Optional[str] = None,
    ) -> int:
        """Send notifications best-effort. Returns how many were delivered.

        Recipients are notified concurrently and each dispatch is bounded by
        the notification timeout, so a stuck dispatcher delays the caller by
        at most one timeout.
        """
        if not self._enabled:
            return 0
        notifications = self.build(booking, event, actor_id, recipients, reason)
        results = await asyncio.gather(*(self._deliver(n) for n in notifications))
        return sum(results)

    async def _deliver(self, notification: Notification) -> bool:
        try:
            await asyncio.wait_for(self._dispatcher.dispatch(notification), self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out after %.1fs notifying %s about booking %s (%s)",
                self._timeout, notification.recipient_id,
                notification.booking_id, notification.event.value,
            )
            return False
        except Exception:
            logger.exception(
                "Failed to notify %s about booking %s (%s)",
                notification.recipient_id, notification.booking_id, notification.event.value,
            )
            return False
        return True
