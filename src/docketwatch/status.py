from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from docketwatch.dates import DateLike, days_between
from docketwatch.errors import InvalidInputError
from docketwatch.types import Case, DisplayStatus, RawStatus

DEFAULT_URGENT_WINDOW_DAYS = 5

_PASSTHROUGH = {
    RawStatus.FOR_REVIEW: DisplayStatus.FOR_REVIEW,
    RawStatus.COMPLETED: DisplayStatus.COMPLETED,
    RawStatus.TERMINATED: DisplayStatus.TERMINATED,
    RawStatus.VOID: DisplayStatus.VOID,
}


def parse_raw_status(value: RawStatus | str | None) -> RawStatus | None:
    """
    Interpret a stored lifecycle value.

    ``None`` and the empty string are the unset sentinel and come back as ``None``.
    Both ``FOR_REVIEW`` and the stored spelling ``FOR REVIEW`` are accepted.
    """

    if value is None or isinstance(value, RawStatus):
        return value
    text = str(value).strip().upper()
    if not text:
        return None
    normalized = text.replace("_", " ")
    for status in RawStatus:
        if status.value == normalized:
            return status
    raise InvalidInputError(f"Unknown docket status: {value!r}")


def days_until_deadline(today: DateLike, deadline: DateLike) -> int:
    return days_between(today, deadline)


def resolve_status(
    today: DateLike,
    deadline: DateLike | None,
    raw_status: RawStatus | str | None = None,
    *,
    urgent_window_days: int = DEFAULT_URGENT_WINDOW_DAYS,
) -> DisplayStatus:
    """
    Map a docket's deadline and stored status to its display label.

    Terminal and review states pass through untouched. Pending dockets are
    labelled by how many whole days remain: negative is Overdue, zero is Due,
    up to ``urgent_window_days`` is Urgent, anything later is Active. A missing
    or unparseable deadline raises ``InvalidInputError``.
    """

    status = parse_raw_status(raw_status)
    if status in _PASSTHROUGH:
        return _PASSTHROUGH[status]

    remaining = days_until_deadline(today, deadline)
    if remaining < 0:
        return DisplayStatus.OVERDUE
    if remaining == 0:
        return DisplayStatus.DUE
    if remaining <= urgent_window_days:
        return DisplayStatus.URGENT
    return DisplayStatus.ACTIVE


@dataclass
class StatusSummary:
    """Dashboard buckets. ``active`` counts pending dockets that are not yet overdue."""

    active: int = 0
    overdue: int = 0
    for_review: int = 0
    completed: int = 0
    terminated: int = 0
    void: int = 0

    @property
    def total(self) -> int:
        return self.active + self.overdue + self.for_review + self.completed + self.terminated + self.void


def summarize_statuses(
    cases: Iterable[Case],
    today: DateLike,
    *,
    urgent_window_days: int = DEFAULT_URGENT_WINDOW_DAYS,
) -> StatusSummary:
    summary = StatusSummary()
    for case in cases:
        label = resolve_status(
            today, case.deadline, case.raw_status, urgent_window_days=urgent_window_days
        )
        if label is DisplayStatus.OVERDUE:
            summary.overdue += 1
        elif label is DisplayStatus.FOR_REVIEW:
            summary.for_review += 1
        elif label is DisplayStatus.COMPLETED:
            summary.completed += 1
        elif label is DisplayStatus.TERMINATED:
            summary.terminated += 1
        elif label is DisplayStatus.VOID:
            summary.void += 1
        else:
            summary.active += 1
    return summary
