from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

import pytest

from docketwatch.types import Case, RawStatus, ReminderEvent, ReminderKind

FIXTURE_PATH = Path(__file__).resolve().parents[1] / "data" / "fixtures" / "dockets.json"
INVESTIGATION_TYPE_ID = "type-li"


class ListCaseStore:
    """Case store over an in-memory list of cases."""

    def __init__(self, cases: Iterable[Case], case_types: dict[str, str] | None = None):
        self.cases = list(cases)
        self.case_types = case_types if case_types is not None else {INVESTIGATION_TYPE_ID: "Legal Investigation"}
        self.scans = 0

    def resolve_case_type_id(self, name: str) -> str | None:
        for type_id, type_name in self.case_types.items():
            if type_name == name:
                return type_id
        return None

    def list_open_cases(self, case_type_id: str) -> list[Case]:
        self.scans += 1
        return [
            case
            for case in self.cases
            if case.case_type_id == case_type_id and case.raw_status is RawStatus.PENDING
        ]

    def list_cases(self, case_type_id: str | None = None) -> list[Case]:
        return [case for case in self.cases if case_type_id is None or case.case_type_id == case_type_id]

    def get_case_by_number(self, case_number: str) -> Case | None:
        return next((case for case in self.cases if case.case_number == case_number), None)


class RecordingSink:
    """Notification sink that keeps events in memory and can be told to fail for some cases."""

    def __init__(self, fail_for: Iterable[str] = ()):
        self.events: list[ReminderEvent] = []
        self.fail_for = set(fail_for)

    def record_reminder(self, event: ReminderEvent) -> None:
        if event.case_number in self.fail_for:
            raise RuntimeError(f"insert failed for {event.case_number}")
        self.events.append(event)

    def has_reminder(self, case_id: str, kind: ReminderKind, trigger_day: int) -> bool:
        return any(
            event.case_id == case_id and event.kind is kind and event.trigger_day == trigger_day
            for event in self.events
        )


def make_case(
    number: int,
    *,
    received: date,
    deadline: date | None = None,
    status: RawStatus | None = RawStatus.PENDING,
    case_type_id: str = INVESTIGATION_TYPE_ID,
    staff: tuple[str, ...] = ("staff-001",),
) -> Case:
    return Case(
        id=f"docket-{number:03d}",
        case_number=f"CHR-VII-2024-{number:03d}",
        date_received=received,
        deadline=deadline or received + timedelta(days=60),
        raw_status=status,
        case_type_id=case_type_id,
        assigned_staff_ids=staff,
    )


@pytest.fixture
def fixture_path() -> Path:
    return FIXTURE_PATH
