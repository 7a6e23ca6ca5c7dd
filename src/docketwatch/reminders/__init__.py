from .scheduler import DEFAULT_OVERDUE_INTERVAL_DAYS, ReminderScheduler, simulate

__all__ = ["DEFAULT_OVERDUE_INTERVAL_DAYS", "ReminderScheduler", "simulate"]
