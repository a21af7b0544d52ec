"""Shared test fixtures and helpers."""

from datetime import date, datetime, timezone
from typing import Optional

import pytest

from coachbook.config import AppConfig, ConcurrencyConfig, NotificationConfig, SchedulingConfig
from coachbook.lifecycle.state_machine import BookingStateMachine
from coachbook.notifications.dispatcher import InMemoryNotificationDispatcher, StaticNameResolver
from coachbook.schemas.booking_schema import Booking, BookingStatus
from coachbook.service import build_service
from coachbook.store.memory import InMemoryBookingStore

DAY = date(2025, 3, 18)

NAMES = {
    "coach-1": "Coach Maria",
    "coach-2": "Coach Liam",
    "client-1": "Ava",
    "client-2": "Noah",
}


def at(hour: int, minute: int = 0, second: int = 0, day: date = DAY) -> datetime:
    """UTC instant on the test day."""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=timezone.utc)


def make_config(
    granularity: int = 30,
    start_hour: int = 6,
    end_hour: int = 22,
    lock_timeout: float = 1.0,
    store_timeout: float = 1.0,
    notifications: bool = True,
    notification_timeout: float = 1.0,
) -> AppConfig:
    """Explicit config so tests do not depend on the environment."""
    return AppConfig(
        scheduling=SchedulingConfig(
            slot_granularity_minutes=granularity,
            day_start_hour=start_hour,
            day_end_hour=end_hour,
            timezone="UTC",
        ),
        concurrency=ConcurrencyConfig(lock_timeout_sec=lock_timeout, store_timeout_sec=store_timeout),
        notifications=NotificationConfig(
            enabled=notifications, dispatch_timeout_sec=notification_timeout
        ),
        log_level="DEBUG",
        service_name="coachbook-test",
    )


def make_booking(
    booking_id: str = "BK-TEST0001",
    coach_ids: Optional[list[str]] = None,
    client_ids: Optional[list[str]] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: BookingStatus = BookingStatus.REQUESTED,
    **extra,
) -> Booking:
    """Helper to create a Booking with fresh acceptance/confirmation maps."""
    coach_ids = coach_ids or ["coach-1"]
    client_ids = client_ids or ["client-1"]
    return Booking(
        id=booking_id,
        coach_ids=coach_ids,
        client_ids=client_ids,
        start=start or at(10),
        end=end or at(10, 30),
        status=status,
        coach_acceptances=extra.pop("coach_acceptances", {c: False for c in coach_ids}),
        client_confirmations=extra.pop("client_confirmations", {c: False for c in client_ids}),
        **extra,
    )


@pytest.fixture
def state_machine():
    return BookingStateMachine()


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def dispatcher():
    return InMemoryNotificationDispatcher()


@pytest.fixture
def service(store, dispatcher, config):
    return build_service(
        store=store,
        dispatcher=dispatcher,
        name_resolver=StaticNameResolver(NAMES),
        config=config,
    )
