from __future__ import annotations

from docketwatch.dates import days_between, format_date
from docketwatch.types import ReminderEvent, ReminderKind

NOTIFICATION_TYPES = {
    ReminderKind.PRE_DEADLINE: "deadline",
    ReminderKind.OVERDUE: "overdue",
}


def notification_type(event: ReminderEvent) -> str:
    return NOTIFICATION_TYPES[event.kind]


def render_reminder(event: ReminderEvent) -> tuple[str, str]:
    """Return the ``(title, message)`` pair shown to each recipient."""

    if event.kind is ReminderKind.OVERDUE:
        title = f"Overdue Case: {event.case_number}"
        message = f"Docket {event.case_number} is {event.trigger_day} days past its deadline"
        if event.deadline is not None:
            message += f" of {format_date(event.deadline)}"
        return title, message + "."

    title = f"Investigation Reminder: Day {event.trigger_day}"
    message = f"Docket {event.case_number} has reached day {event.trigger_day} since docketing."
    if event.deadline is not None:
        remaining = days_between(event.run_date, event.deadline)
        deadline_text = format_date(event.deadline)
        if remaining > 0:
            unit = "day" if remaining == 1 else "days"
            message += f" {remaining} {unit} remaining until the deadline on {deadline_text}."
        elif remaining == 0:
            message += f" The deadline is today ({deadline_text})."
        else:
            message += f" The deadline passed on {deadline_text}."
    return title, message
