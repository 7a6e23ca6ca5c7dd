from __future__ import annotations

from typing import Iterable, Protocol

from docketwatch.types import Case, ReminderEvent, ReminderKind


class CaseStore(Protocol):
    """Read access to dockets and their case-type lookup."""

    def resolve_case_type_id(self, name: str) -> str | None:
        """Return the identifier for a case type name, or ``None`` if it does not exist."""

    def list_open_cases(self, case_type_id: str) -> Iterable[Case]:
        """Return every PENDING docket of the given case type with its assigned staff."""

    def list_cases(self, case_type_id: str | None = None) -> Iterable[Case]:
        """Return every docket, optionally limited to one case type."""

    def get_case_by_number(self, case_number: str) -> Case | None:
        """Return a single docket by its case number when available."""


class NotificationSink(Protocol):
    """Write side for reminder events."""

    def record_reminder(self, event: ReminderEvent) -> None:
        """Persist one reminder event and its per-recipient notifications. Raises on failure."""

    def has_reminder(self, case_id: str, kind: ReminderKind, trigger_day: int) -> bool:
        """Return True when a reminder for this case, kind, and trigger day was already recorded."""
