"""Tests for notification building and best-effort dispatch."""

import asyncio

import pytest

from coachbook.notifications.dispatcher import (
    BookingNotifier,
    InMemoryNotificationDispatcher,
    StaticIdentityProvider,
    StaticNameResolver,
)
from coachbook.schemas.booking_schema import BookingStatus
from coachbook.schemas.notification_schema import BookingEvent
from coachbook.service import build_service
from tests.conftest import NAMES, at, make_booking, make_config


class ExplodingDispatcher:
    def __init__(self) -> None:
        self.attempts = 0

    async def dispatch(self, notification):
        self.attempts += 1
        raise RuntimeError("push gateway down")


class HangingDispatcher:
    def __init__(self) -> None:
        self.attempts = 0

    async def dispatch(self, notification):
        self.attempts += 1
        await asyncio.Event().wait()


class TestBuild:
    def test_actor_excluded(self):
        notifier = BookingNotifier(InMemoryNotificationDispatcher(), StaticNameResolver(NAMES))
        notes = notifier.build(
            make_booking(coach_ids=["coach-1", "coach-2"]),
            BookingEvent.REJECTED, "coach-1", ["client-1", "coach-1", "coach-2"], "ill",
        )
        assert [n.recipient_id for n in notes] == ["client-1", "coach-2"]
        assert notes[0].title == "Booking Rejected"
        assert notes[0].body == "Coach Maria has rejected the booking. Reason: ill"

    def test_unknown_name_falls_back(self):
        notifier = BookingNotifier(InMemoryNotificationDispatcher())
        notes = notifier.build(make_booking(), BookingEvent.REQUESTED, "client-1", ["coach-1"])
        assert notes[0].body == "Booking Requested by A client Action Required"

    def test_accepted_template(self):
        notifier = BookingNotifier(InMemoryNotificationDispatcher(), StaticNameResolver(NAMES))
        notes = notifier.build(make_booking(), BookingEvent.ACCEPTED, "coach-1", ["client-1"])
        assert notes[0].title == "Action Required: Confirm Booking"
        assert notes[0].sender_id == "coach-1"


class TestLifecycleNotifications:
    @pytest.mark.asyncio
    async def test_full_flow(self, service, dispatcher):
        booking = await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        assert [(n.recipient_id, n.event) for n in dispatcher.sent] == [
            ("coach-1", BookingEvent.REQUESTED),
        ]
        dispatcher.reset()

        await service.lifecycle.coach_accept(booking.id, "coach-1")
        assert [(n.recipient_id, n.event) for n in dispatcher.sent] == [
            ("client-1", BookingEvent.ACCEPTED),
        ]
        dispatcher.reset()

        await service.lifecycle.client_confirm(booking.id, "client-1")
        assert [(n.recipient_id, n.event) for n in dispatcher.sent] == [
            ("coach-1", BookingEvent.CONFIRMED),
        ]

    @pytest.mark.asyncio
    async def test_partial_acceptance_notifies_clients(self, service, dispatcher):
        booking = await service.lifecycle.create_booking(
            ["coach-1", "coach-2"], ["client-1", "client-2"], at(9), at(10)
        )
        dispatcher.reset()
        await service.lifecycle.coach_accept(booking.id, "coach-2")
        assert {n.recipient_id for n in dispatcher.sent} == {"client-1", "client-2"}
        assert all(n.event == BookingEvent.PARTIALLY_ACCEPTED for n in dispatcher.sent)

    @pytest.mark.asyncio
    async def test_rejection_notifies_clients_and_other_coaches(self, service, dispatcher):
        booking = await service.lifecycle.create_booking(
            ["coach-1", "coach-2"], ["client-1"], at(9), at(10)
        )
        dispatcher.reset()
        await service.lifecycle.coach_reject(booking.id, "coach-2", "travelling")
        assert {n.recipient_id for n in dispatcher.for_recipient("client-1")} == {"client-1"}
        assert len(dispatcher.for_recipient("coach-1")) == 1
        assert dispatcher.for_recipient("coach-2") == []

    @pytest.mark.asyncio
    async def test_failure_does_not_roll_back(self):
        exploding = ExplodingDispatcher()
        service = build_service(dispatcher=exploding, config=make_config())
        booking = await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        accepted = await service.lifecycle.coach_accept(booking.id, "coach-1")

        assert exploding.attempts == 2
        stored = await service.lifecycle.get_booking(booking.id)
        assert stored.status == BookingStatus.PENDING_CLIENT_CONFIRMATION
        assert stored == accepted

    @pytest.mark.asyncio
    async def test_disabled_sends_nothing(self, dispatcher):
        service = build_service(dispatcher=dispatcher, config=make_config(notifications=False))
        await service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10))
        assert dispatcher.sent == []

    @pytest.mark.asyncio
    async def test_notify_returns_delivered_count(self):
        notifier = BookingNotifier(ExplodingDispatcher())
        delivered = await notifier.notify(make_booking(), BookingEvent.REQUESTED, "client-1", ["coach-1"])
        assert delivered == 0

    @pytest.mark.asyncio
    async def test_hanging_dispatcher_does_not_stall_create(self):
        hanging = HangingDispatcher()
        service = build_service(dispatcher=hanging, config=make_config(notification_timeout=0.05))
        booking = await asyncio.wait_for(
            service.lifecycle.create_booking(["coach-1"], ["client-1"], at(9), at(10)), 1.0
        )
        assert hanging.attempts == 1
        stored = await service.lifecycle.get_booking(booking.id)
        assert stored.status == BookingStatus.REQUESTED

    @pytest.mark.asyncio
    async def test_hanging_recipients_time_out_together(self):
        hanging = HangingDispatcher()
        notifier = BookingNotifier(hanging, timeout_sec=0.05)
        booking = make_booking(client_ids=["client-1", "client-2"])
        delivered = await asyncio.wait_for(
            notifier.notify(booking, BookingEvent.ACCEPTED, "coach-1", booking.client_ids), 1.0
        )
        assert delivered == 0
        assert hanging.attempts == 2


class TestIdentity:
    def test_static_identity(self):
        assert StaticIdentityProvider("coach-1").current_user_id() == "coach-1"
