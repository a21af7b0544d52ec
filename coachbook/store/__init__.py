from coachbook.store.base import BookingStore
from coachbook.store.guarded import GuardedStore
from coachbook.store.memory import InMemoryBookingStore

__all__ = ["BookingStore", "GuardedStore", "InMemoryBookingStore"]
