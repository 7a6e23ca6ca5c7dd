from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping


class RawStatus(str, Enum):
    """Lifecycle values as they are stored on a docket."""

    PENDING = "PENDING"
    FOR_REVIEW = "FOR REVIEW"
    COMPLETED = "COMPLETED"
    TERMINATED = "TERMINATED"
    VOID = "VOID"


class DisplayStatus(str, Enum):
    """Labels shown in the dashboard and used by status filters."""

    OVERDUE = "Overdue"
    DUE = "Due"
    URGENT = "Urgent"
    ACTIVE = "Active"
    FOR_REVIEW = "For Review"
    COMPLETED = "Completed"
    TERMINATED = "Terminated"
    VOID = "Void"


class ReminderKind(str, Enum):
    PRE_DEADLINE = "pre-deadline"
    OVERDUE = "overdue"


@dataclass(slots=True)
class Case:
    id: str
    case_number: str
    date_received: date
    deadline: date
    raw_status: RawStatus | None = RawStatus.PENDING
    case_type_id: str | None = None
    assigned_staff_ids: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ReminderEvent:
    case_id: str
    case_number: str
    recipients: tuple[str, ...]
    kind: ReminderKind
    trigger_day: int
    deadline: date | None
    run_date: date
    created_at: datetime
    run_id: str | None = None


@dataclass(slots=True)
class ReminderOutcome:
    case_number: str
    kind: ReminderKind
    trigger_day: int
    outcome: str
    recipients: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.outcome == "success"


@dataclass
class ReminderRunReport:
    """Counters and per-case outcomes returned to the CLI, the API, and tests."""

    run_id: str | None = None
    run_date: date | None = None
    status: str = "running"  # running|success|partial|failed
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    skipped: int = 0
    cases_scanned: int = 0
    outcomes: list[ReminderOutcome] = field(default_factory=list)
    invalid_cases: list[str] = field(default_factory=list)
    error: str | None = None

    def record(self, outcome: ReminderOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.outcome == "skipped":
            self.skipped += 1
            return
        self.attempts += 1
        if outcome.succeeded:
            self.successes += 1
        else:
            self.failures += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "run_date": self.run_date.isoformat() if self.run_date else None,
            "status": self.status,
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "skipped": self.skipped,
            "cases_scanned": self.cases_scanned,
            "error": self.error,
            "invalid_cases": list(self.invalid_cases),
            "details": [
                {
                    "case_number": item.case_number,
                    "kind": item.kind.value,
                    "trigger_day": item.trigger_day,
                    "outcome": item.outcome,
                    "recipients": list(item.recipients),
                }
                for item in self.outcomes
            ],
        }
