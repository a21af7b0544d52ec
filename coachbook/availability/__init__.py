from coachbook.availability.conflicts import Conflict, ConflictChecker
from coachbook.availability.engine import AvailabilityEngine
from coachbook.availability.slots import WorkingWindow

__all__ = ["AvailabilityEngine", "Conflict", "ConflictChecker", "WorkingWindow"]
