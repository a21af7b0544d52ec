from coachbook.lifecycle.manager import BookingLifecycleManager
from coachbook.lifecycle.state_machine import (
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)

__all__ = [
    "BookingLifecycleManager",
    "BookingStateMachine",
    "BookingTrigger",
    "InvalidTransitionError",
]
