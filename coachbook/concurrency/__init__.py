from coachbook.concurrency.locks import ScheduleLockManager

__all__ = ["ScheduleLockManager"]
