from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from docketwatch.clients.base import CaseStore
from docketwatch.dates import to_date
from docketwatch.status import parse_raw_status
from docketwatch.types import Case, RawStatus


@dataclass(slots=True)
class StaffMember:
    id: str
    first_name: str
    last_name: str
    email: str | None = None
    role: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class FixtureCaseStore(CaseStore):
    """Read-only case store backed by a static JSON fixture."""

    def __init__(self, fixture_path: Path):
        with fixture_path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)

        self.case_types: dict[str, str] = {
            str(item["id"]): item["name"] for item in payload.get("case_types", [])
        }
        self.staff: list[StaffMember] = [
            StaffMember(
                id=str(item["id"]),
                first_name=item.get("first_name", ""),
                last_name=item.get("last_name", ""),
                email=item.get("email"),
                role=item.get("role"),
                metadata=item.get("metadata", {}),
            )
            for item in payload.get("staff", [])
        ]
        self.cases: list[Case] = [_case_from_fixture(item) for item in payload.get("dockets", [])]
        self.cases.sort(key=lambda c: (c.date_received, c.case_number))

    def resolve_case_type_id(self, name: str) -> str | None:
        for type_id, type_name in self.case_types.items():
            if type_name == name:
                return type_id
        return None

    def list_open_cases(self, case_type_id: str) -> Iterable[Case]:
        for case in self.cases:
            if case.case_type_id == str(case_type_id) and case.raw_status is RawStatus.PENDING:
                yield case

    def list_cases(self, case_type_id: str | None = None) -> Iterable[Case]:
        for case in self.cases:
            if case_type_id is None or case.case_type_id == str(case_type_id):
                yield case

    def get_case_by_number(self, case_number: str) -> Case | None:
        for case in self.cases:
            if case.case_number == case_number:
                return case
        return None


def _case_from_fixture(item: dict[str, Any]) -> Case:
    return Case(
        id=str(item["id"]),
        case_number=item["case_number"],
        date_received=to_date(item["date_received"]),
        deadline=to_date(item["deadline"]),
        raw_status=parse_raw_status(item.get("status")),
        case_type_id=str(item["case_type_id"]) if item.get("case_type_id") else None,
        assigned_staff_ids=tuple(str(staff_id) for staff_id in item.get("assigned_staff", [])),
        metadata=item.get("metadata", {}),
    )
