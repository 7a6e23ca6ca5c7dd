from datetime import date, datetime, timedelta

import pytest

from conftest import make_case
from docketwatch.errors import InvalidInputError
from docketwatch.status import days_until_deadline, parse_raw_status, resolve_status, summarize_statuses
from docketwatch.types import DisplayStatus, RawStatus

TODAY = date(2024, 3, 1)


def _expected(offset: int) -> DisplayStatus:
    if offset < 0:
        return DisplayStatus.OVERDUE
    if offset == 0:
        return DisplayStatus.DUE
    if offset <= 5:
        return DisplayStatus.URGENT
    return DisplayStatus.ACTIVE


@pytest.mark.parametrize("raw_status", [None, "", RawStatus.PENDING, "PENDING"])
def test_pending_status_follows_deadline_distance(raw_status):
    for offset in range(-40, 41):
        deadline = TODAY + timedelta(days=offset)
        assert resolve_status(TODAY, deadline, raw_status) is _expected(offset), offset


def test_urgent_active_boundary_is_day_five():
    assert resolve_status(TODAY, TODAY + timedelta(days=5), RawStatus.PENDING) is DisplayStatus.URGENT
    assert resolve_status(TODAY, TODAY + timedelta(days=6), RawStatus.PENDING) is DisplayStatus.ACTIVE


@pytest.mark.parametrize(
    ("raw_status", "label"),
    [
        (RawStatus.COMPLETED, "Completed"),
        (RawStatus.TERMINATED, "Terminated"),
        (RawStatus.VOID, "Void"),
        (RawStatus.FOR_REVIEW, "For Review"),
        ("FOR_REVIEW", "For Review"),
        ("FOR REVIEW", "For Review"),
        ("completed", "Completed"),
    ],
)
def test_terminal_statuses_ignore_deadline(raw_status, label):
    for offset in (-90, -1, 0, 3, 120):
        assert resolve_status(TODAY, TODAY + timedelta(days=offset), raw_status).value == label


def test_terminal_status_does_not_need_a_deadline():
    assert resolve_status(TODAY, None, RawStatus.COMPLETED) is DisplayStatus.COMPLETED


@pytest.mark.parametrize("deadline", [None, "", "not-a-date", "13/45/2024", 12345])
def test_invalid_deadline_is_rejected(deadline):
    with pytest.raises(InvalidInputError):
        resolve_status(TODAY, deadline, RawStatus.PENDING)


def test_unknown_raw_status_is_rejected():
    with pytest.raises(InvalidInputError):
        parse_raw_status("ARCHIVED")


def test_time_of_day_does_not_change_the_result():
    late_today = datetime(2024, 3, 1, 23, 59)
    early_deadline = datetime(2024, 3, 2, 0, 1)
    assert days_until_deadline(late_today, early_deadline) == 1
    assert resolve_status(late_today, early_deadline) is DisplayStatus.URGENT
    assert resolve_status("2024-03-01", "03/01/2024") is DisplayStatus.DUE


def test_urgent_window_is_configurable():
    deadline = TODAY + timedelta(days=7)
    assert resolve_status(TODAY, deadline, urgent_window_days=5) is DisplayStatus.ACTIVE
    assert resolve_status(TODAY, deadline, urgent_window_days=7) is DisplayStatus.URGENT


def test_display_values_are_stable():
    assert {status.value for status in DisplayStatus} == {
        "Overdue",
        "Due",
        "Urgent",
        "Active",
        "For Review",
        "Completed",
        "Terminated",
        "Void",
    }


def test_summarize_statuses_buckets_cases():
    received = TODAY - timedelta(days=70)
    cases = [
        make_case(1, received=received, deadline=TODAY - timedelta(days=1)),
        make_case(2, received=received, deadline=TODAY),
        make_case(3, received=received, deadline=TODAY + timedelta(days=20)),
        make_case(4, received=received, status=RawStatus.COMPLETED),
        make_case(5, received=received, status=RawStatus.FOR_REVIEW),
        make_case(6, received=received, status=RawStatus.VOID),
    ]

    summary = summarize_statuses(cases, TODAY)

    assert summary.overdue == 1
    assert summary.active == 2
    assert summary.completed == 1
    assert summary.for_review == 1
    assert summary.void == 1
    assert summary.terminated == 0
    assert summary.total == 6
