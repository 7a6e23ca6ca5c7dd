from __future__ import annotations

import logging
import time
import uuid
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Sequence

from sqlalchemy.orm import sessionmaker

from docketwatch.clients import CaseStore, NotificationSink
from docketwatch.config import DEFAULT_REMINDER_DAYS, Settings
from docketwatch.dates import DateLike, days_past_deadline, days_since_received, to_date
from docketwatch.errors import (
    CaseFetchError,
    CaseNotFoundError,
    CaseTypeLookupError,
    InvalidInputError,
    ManualTriggerError,
    ReminderRunError,
    RunBudgetExceeded,
)
from docketwatch.storage import ReminderRunRecord
from docketwatch.types import Case, ReminderEvent, ReminderKind, ReminderOutcome, ReminderRunReport

logger = logging.getLogger(__name__)

DEFAULT_OVERDUE_INTERVAL_DAYS = 30


class ReminderScheduler:
    """
    Daily reminder job for open dockets of one case type.

    Each run:
    1. Resolves the targeted case type and scans its PENDING dockets in full.
    2. Fires a pre-deadline reminder when the days since receipt hit a configured day.
    3. Independently fires an overdue reminder every ``overdue_interval_days`` past the deadline.

    A failure writing one reminder, or a docket whose dates cannot be read, is recorded
    and the run moves on. A failed lookup, a failed scan, or an exhausted time budget
    fails the whole run.
    """

    def __init__(
        self,
        store: CaseStore,
        sink: NotificationSink,
        *,
        case_type_name: str = "Legal Investigation",
        reminder_days: Sequence[int] = DEFAULT_REMINDER_DAYS,
        overdue_interval_days: int = DEFAULT_OVERDUE_INTERVAL_DAYS,
        dedupe: bool = False,
        time_budget_seconds: float | None = None,
        session_factory: sessionmaker | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if overdue_interval_days <= 0:
            raise ValueError("overdue_interval_days must be positive")
        self.store = store
        self.sink = sink
        self.case_type_name = case_type_name
        self.reminder_days = tuple(sorted(set(reminder_days)))
        self.overdue_interval_days = overdue_interval_days
        self.dedupe = dedupe
        self.time_budget_seconds = time_budget_seconds
        self.session_factory = session_factory
        self._clock = clock
        self._now = now or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: CaseStore,
        sink: NotificationSink,
        *,
        session_factory: sessionmaker | None = None,
    ) -> "ReminderScheduler":
        return cls(
            store,
            sink,
            case_type_name=settings.investigation_case_type,
            reminder_days=settings.reminder_days,
            overdue_interval_days=settings.overdue_interval_days,
            dedupe=settings.dedupe_reminders,
            time_budget_seconds=settings.run_time_budget_seconds,
            session_factory=session_factory,
        )

    def evaluate_case(self, case: Case, today: DateLike, *, run_id: str | None = None) -> list[ReminderEvent]:
        """Return the reminder events ``case`` should fire on ``today`` without emitting them."""

        run_date = to_date(today)
        events: list[ReminderEvent] = []

        since_received = days_since_received(run_date, case.date_received)
        if since_received in self.reminder_days:
            events.append(self._build_event(case, ReminderKind.PRE_DEADLINE, since_received, run_date, run_id))

        # Measured from a different anchor than the pre-deadline days, so both may fire.
        past_deadline = days_past_deadline(run_date, case.deadline)
        if past_deadline > 0 and past_deadline % self.overdue_interval_days == 0:
            events.append(self._build_event(case, ReminderKind.OVERDUE, past_deadline, run_date, run_id))

        return events

    def run(self, today: DateLike | None = None) -> ReminderRunReport:
        """
        Execute one scheduled pass for ``today`` (the local calendar date when omitted).

        Raises a ``ReminderRunError`` subclass, with the failed report attached, when the
        run aborts. Per-case failures only show up in the returned report.
        """

        run_date = to_date(today) if today is not None else date.today()
        report = ReminderRunReport(run_id=str(uuid.uuid4()), run_date=run_date)
        self._start_run_record(report, trigger="cron")
        logger.info(
            "Starting reminder run",
            extra={
                "run_id": report.run_id,
                "run_date": run_date.isoformat(),
                "case_type": self.case_type_name,
                "reminder_days": list(self.reminder_days),
                "dedupe": self.dedupe,
            },
        )

        started = self._clock()
        try:
            case_type_id = self._resolve_case_type_id()
            cases = self._scan_open_cases(case_type_id)
            report.cases_scanned = len(cases)
            for case in cases:
                self._check_budget(started, report)
                try:
                    events = self.evaluate_case(case, run_date, run_id=report.run_id)
                except InvalidInputError as exc:
                    report.invalid_cases.append(case.case_number)
                    logger.warning(
                        "Skipping docket with unusable dates",
                        extra={"run_id": report.run_id, "case_number": case.case_number, "error": str(exc)},
                    )
                    continue
                for event in events:
                    self._emit(event, report, allow_dedupe=True)
            self._check_budget(started, report)
            report.status = "partial" if report.failures or report.invalid_cases else "success"
        except ReminderRunError as exc:
            report.status = "failed"
            report.error = str(exc)
            exc.report = report
            raise
        except Exception as exc:
            report.status = "failed"
            report.error = str(exc) or exc.__class__.__name__
            logger.exception("Reminder run aborted", extra={"run_id": report.run_id})
            raise ReminderRunError(f"Reminder run failed: {report.error}", report) from exc
        finally:
            self._finish_run_record(report)
            logger.info("Reminder run finished", extra={"run_id": report.run_id, **_report_extra(report)})

        return report

    def trigger(self, case_number: str, trigger_day: int, today: DateLike | None = None) -> ReminderRunReport:
        """
        Fire one pre-deadline reminder for ``case_number`` without waiting for its date.

        ``trigger_day`` must be one of the configured reminder days. De-duplication is not
        applied, so the same day can be re-sent for verification.
        """

        if isinstance(trigger_day, bool) or not isinstance(trigger_day, int):
            raise ManualTriggerError(f"trigger_day must be an integer, got {trigger_day!r}")
        if trigger_day not in self.reminder_days:
            allowed = ", ".join(str(day) for day in self.reminder_days)
            raise ManualTriggerError(f"trigger_day must be one of: {allowed}")

        case = self.store.get_case_by_number(case_number)
        if case is None:
            raise CaseNotFoundError(f"Docket not found: {case_number}")

        run_date = to_date(today) if today is not None else date.today()
        report = ReminderRunReport(run_id=str(uuid.uuid4()), run_date=run_date, cases_scanned=1)
        self._start_run_record(report, trigger="manual")
        logger.info(
            "Manually triggering reminder",
            extra={"run_id": report.run_id, "case_number": case_number, "trigger_day": trigger_day},
        )
        try:
            event = self._build_event(case, ReminderKind.PRE_DEADLINE, trigger_day, run_date, report.run_id)
            self._emit(event, report, allow_dedupe=False)
            report.status = "partial" if report.failures else "success"
        finally:
            self._finish_run_record(report)
        return report

    def _resolve_case_type_id(self) -> str:
        try:
            case_type_id = self.store.resolve_case_type_id(self.case_type_name)
        except Exception as exc:
            logger.exception("Case type lookup failed", extra={"case_type": self.case_type_name})
            raise CaseTypeLookupError(f"Unable to resolve case type {self.case_type_name!r}: {exc}") from exc
        if case_type_id is None:
            raise CaseTypeLookupError(f"{self.case_type_name} type not found")
        return str(case_type_id)

    def _scan_open_cases(self, case_type_id: str) -> list[Case]:
        try:
            return list(self.store.list_open_cases(case_type_id))
        except Exception as exc:
            logger.exception("Open-case scan failed", extra={"case_type_id": case_type_id})
            raise CaseFetchError(f"Failed to fetch dockets: {exc}") from exc

    def _check_budget(self, started: float, report: ReminderRunReport) -> None:
        if self.time_budget_seconds is None:
            return
        elapsed = self._clock() - started
        if elapsed > self.time_budget_seconds:
            raise RunBudgetExceeded(
                f"Reminder run exceeded its {self.time_budget_seconds:g}s budget after "
                f"{len(report.outcomes)} reminders",
            )

    def _emit(self, event: ReminderEvent, report: ReminderRunReport, *, allow_dedupe: bool) -> None:
        outcome = "success"
        try:
            if allow_dedupe and self.dedupe and self.sink.has_reminder(
                event.case_id, event.kind, event.trigger_day
            ):
                outcome = "skipped"
                logger.info(
                    "Reminder already recorded",
                    extra={"run_id": event.run_id, "case_number": event.case_number, "kind": event.kind.value},
                )
            else:
                self.sink.record_reminder(event)
        except Exception as exc:
            outcome = str(exc) or exc.__class__.__name__
            logger.exception(
                "Failed to record reminder",
                extra={
                    "run_id": event.run_id,
                    "case_number": event.case_number,
                    "kind": event.kind.value,
                    "trigger_day": event.trigger_day,
                },
            )
        report.record(
            ReminderOutcome(
                case_number=event.case_number,
                kind=event.kind,
                trigger_day=event.trigger_day,
                outcome=outcome,
                recipients=event.recipients,
            )
        )

    def _build_event(
        self,
        case: Case,
        kind: ReminderKind,
        trigger_day: int,
        run_date: date,
        run_id: str | None,
    ) -> ReminderEvent:
        return ReminderEvent(
            case_id=case.id,
            case_number=case.case_number,
            recipients=tuple(case.assigned_staff_ids),
            kind=kind,
            trigger_day=trigger_day,
            deadline=case.deadline,
            run_date=run_date,
            created_at=self._now(),
            run_id=run_id,
        )

    def _start_run_record(self, report: ReminderRunReport, *, trigger: str) -> None:
        if self.session_factory is None:
            return
        with self.session_factory() as session:
            session.add(
                ReminderRunRecord(
                    id=report.run_id,
                    trigger=trigger,
                    run_date=report.run_date,
                    status="running",
                )
            )
            session.commit()

    def _finish_run_record(self, report: ReminderRunReport) -> None:
        if self.session_factory is None:
            return
        with self.session_factory() as session:
            run = session.get(ReminderRunRecord, report.run_id)
            if run is None:
                return
            run.status = report.status
            run.finished_at = datetime.now(timezone.utc)
            run.cases_scanned = report.cases_scanned
            run.attempts = report.attempts
            run.successes = report.successes
            run.failures = report.failures
            run.skipped = report.skipped
            run.error_message = report.error
            session.commit()


def simulate(
    scheduler: ReminderScheduler,
    cases: Iterable[Case],
    start: DateLike,
    days: int,
) -> list[ReminderEvent]:
    """Evaluate ``cases`` for each of ``days`` consecutive dates from ``start`` without emitting."""

    first = to_date(start)
    cases = list(cases)
    events: list[ReminderEvent] = []
    for offset in range(days):
        current = date.fromordinal(first.toordinal() + offset)
        for case in cases:
            events.extend(scheduler.evaluate_case(case, current))
    return events


def _report_extra(report: ReminderRunReport) -> dict[str, object]:
    return {
        "status": report.status,
        "cases_scanned": report.cases_scanned,
        "attempts": report.attempts,
        "successes": report.successes,
        "failures": report.failures,
        "skipped": report.skipped,
        "invalid_cases": len(report.invalid_cases),
    }
