"""
Finite state machine for booking status transitions.

Defines the six booking statuses and the explicit transitions between
them. Every status change goes through this table so an illegal move
(confirming a rejected booking, accepting a confirmed one) is rejected
with a clear list of what is allowed from the current status.

Usage:
    sm = BookingStateMachine(BookingStatus.REQUESTED)
    sm.transition(BookingTrigger.ALL_COACHES_ACCEPTED)
    assert sm.current_status == BookingStatus.PENDING_CLIENT_CONFIRMATION
"""

import logging
from dataclasses import dataclass
from enum import Enum

from coachbook.schemas.booking_schema import TERMINAL_STATUSES, BookingStatus

logger = logging.getLogger(__name__)


class BookingTrigger(str, Enum):
    """Events that cause status transitions."""
    COACH_ACCEPTED = "coach_accepted"
    ALL_COACHES_ACCEPTED = "all_coaches_accepted"
    CLIENT_CONFIRMED = "client_confirmed"
    ALL_CLIENTS_CONFIRMED = "all_clients_confirmed"
    COACH_REJECTED = "coach_rejected"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: BookingTrigger


class InvalidTransitionError(Exception):
    """Raised when a trigger is not valid from the current status."""


class BookingStateMachine:
    """
    Deterministic state machine for one booking's status.

    The machine only knows about statuses; deciding which trigger applies
    (one more coach accepted vs. the last coach accepted) is the lifecycle
    manager's job.
    """

    TRANSITIONS: list[Transition] = [
        # --- Coach acceptance ---
        Transition(BookingStatus.REQUESTED, BookingStatus.PARTIALLY_ACCEPTED,
                   BookingTrigger.COACH_ACCEPTED),
        Transition(BookingStatus.PARTIALLY_ACCEPTED, BookingStatus.PARTIALLY_ACCEPTED,
                   BookingTrigger.COACH_ACCEPTED),
        Transition(BookingStatus.REQUESTED, BookingStatus.PENDING_CLIENT_CONFIRMATION,
                   BookingTrigger.ALL_COACHES_ACCEPTED),
        Transition(BookingStatus.PARTIALLY_ACCEPTED, BookingStatus.PENDING_CLIENT_CONFIRMATION,
                   BookingTrigger.ALL_COACHES_ACCEPTED),

        # --- Client confirmation ---
        Transition(BookingStatus.PENDING_CLIENT_CONFIRMATION, BookingStatus.PARTIALLY_CONFIRMED,
                   BookingTrigger.CLIENT_CONFIRMED),
        Transition(BookingStatus.PARTIALLY_CONFIRMED, BookingStatus.PARTIALLY_CONFIRMED,
                   BookingTrigger.CLIENT_CONFIRMED),
        Transition(BookingStatus.PENDING_CLIENT_CONFIRMATION, BookingStatus.CONFIRMED,
                   BookingTrigger.ALL_CLIENTS_CONFIRMED),
        Transition(BookingStatus.PARTIALLY_CONFIRMED, BookingStatus.CONFIRMED,
                   BookingTrigger.ALL_CLIENTS_CONFIRMED),

        # --- Rejection from any non-terminal status ---
        Transition(BookingStatus.REQUESTED, BookingStatus.REJECTED,
                   BookingTrigger.COACH_REJECTED),
        Transition(BookingStatus.PARTIALLY_ACCEPTED, BookingStatus.REJECTED,
                   BookingTrigger.COACH_REJECTED),
        Transition(BookingStatus.PENDING_CLIENT_CONFIRMATION, BookingStatus.REJECTED,
                   BookingTrigger.COACH_REJECTED),
        Transition(BookingStatus.PARTIALLY_CONFIRMED, BookingStatus.REJECTED,
                   BookingTrigger.COACH_REJECTED),
    ]

    def __init__(self, status: BookingStatus = BookingStatus.REQUESTED) -> None:
        self._current_status = status

    @property
    def current_status(self) -> BookingStatus:
        return self._current_status

    def transition(self, trigger: BookingTrigger) -> BookingStatus:
        """
        Execute a status transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new booking status.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_status == self._current_status and t.trigger == trigger:
                old_status = self._current_status
                self._current_status = t.to_status
                logger.debug(
                    "Status transition: %s -> %s (trigger: %s)",
                    old_status.value, self._current_status.value, trigger.value,
                )
                return self._current_status

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_status.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, trigger: BookingTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current status."""
        return [t.trigger for t in self.TRANSITIONS if t.from_status == self._current_status]

    def is_terminal(self) -> bool:
        """Check if the booking has reached a terminal status."""
        return self._current_status in TERMINAL_STATUSES
