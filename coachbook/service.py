"""
Scheduling service: wires the store, locks, availability engine,
lifecycle manager and notifier together.

Usage:
    service = build_service()
    slots = await service.engine.get_free_slots("coach-1", date(2025, 3, 18))
    booking = await service.lifecycle.create_booking(["coach-1"], ["client-1"], start, end)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from coachbook.availability.engine import AvailabilityEngine
from coachbook.availability.slots import WorkingWindow
from coachbook.concurrency.locks import ScheduleLockManager
from coachbook.config import AppConfig, settings
from coachbook.lifecycle.manager import BookingLifecycleManager
from coachbook.notifications.dispatcher import (
    BookingNotifier,
    LoggingNotificationDispatcher,
    NameResolver,
    NotificationDispatcher,
)
from coachbook.store.base import BookingStore
from coachbook.store.guarded import GuardedStore
from coachbook.store.memory import InMemoryBookingStore
from coachbook.utils import get_zone

logger = logging.getLogger(__name__)


@dataclass
class SchedulingService:
    """Container for the collaborating components of one engine instance."""

    store: GuardedStore
    locks: ScheduleLockManager
    engine: AvailabilityEngine
    lifecycle: BookingLifecycleManager
    notifier: BookingNotifier


def build_service(
    store: Optional[BookingStore] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    name_resolver: Optional[NameResolver] = None,
    config: Optional[AppConfig] = None,
) -> SchedulingService:
    """Build a service from configuration, defaulting to the in-memory store."""
    config = config or settings
    guarded = GuardedStore(
        store if store is not None else InMemoryBookingStore(),
        timeout_sec=config.concurrency.store_timeout_sec,
    )
    locks = ScheduleLockManager(timeout_sec=config.concurrency.lock_timeout_sec)
    engine = AvailabilityEngine(
        guarded,
        locks,
        window=WorkingWindow(
            start_hour=config.scheduling.day_start_hour,
            end_hour=config.scheduling.day_end_hour,
        ),
        granularity_minutes=config.scheduling.slot_granularity_minutes,
        zone=get_zone(config.scheduling.timezone),
    )
    notifier = BookingNotifier(
        dispatcher or LoggingNotificationDispatcher(),
        name_resolver=name_resolver,
        enabled=config.notifications.enabled,
        timeout_sec=config.notifications.dispatch_timeout_sec,
    )
    lifecycle = BookingLifecycleManager(guarded, engine, locks, notifier)
    logger.debug("Scheduling service built for '%s'", config.service_name)
    return SchedulingService(
        store=guarded, locks=locks, engine=engine, lifecycle=lifecycle, notifier=notifier
    )
