from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer

from docketwatch.backends import build_backends
from docketwatch.clients import FixtureCaseStore
from docketwatch.config import Settings
from docketwatch.dates import to_date
from docketwatch.errors import (
    CaseNotFoundError,
    ConfigurationError,
    InvalidInputError,
    ManualTriggerError,
    ReminderRunError,
)
from docketwatch.reminders import simulate
from docketwatch.security import verify_trigger_secret
from docketwatch.status import resolve_status, summarize_statuses
from docketwatch.storage import create_session_factory, init_db, seed_from_fixture

app = typer.Typer(help="Docket deadline status and reminder CLI")


@app.callback()
def configure_logging(verbose: bool = typer.Option(False, "--verbose", "-v")) -> None:
    level = logging.DEBUG if verbose else getattr(logging, Settings().log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


@app.command("init-db")
def init_database(
    db_url: Optional[str] = typer.Option(None, envvar="DOCKETWATCH_DATABASE_URL"),
) -> None:
    _, engine = create_session_factory(db_url or Settings().database_url)
    init_db(engine)
    typer.echo("Database initialized")


@app.command("seed")
def seed(
    fixture: Optional[Path] = typer.Option(None, help="Path to fixture JSON"),
    db_url: Optional[str] = typer.Option(None, envvar="DOCKETWATCH_DATABASE_URL"),
) -> None:
    settings = Settings()
    session_factory, engine = create_session_factory(db_url or settings.database_url)
    init_db(engine)
    stats = seed_from_fixture(session_factory, FixtureCaseStore(fixture or settings.fixture_path))
    typer.echo(
        "Seed complete: "
        f"case_types={stats.case_types} staff={stats.staff} dockets={stats.dockets}"
    )


@app.command("run-reminders")
def run_reminders(
    today: Optional[str] = typer.Option(None, help="Run as if today were this date (YYYY-MM-DD)"),
    secret: Optional[str] = typer.Option(
        None,
        envvar="DOCKETWATCH_TRIGGER_TOKEN",
        help="Shared secret presented by the scheduler. Optional 'Bearer ' prefix is accepted.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="List due reminders without recording them"),
) -> None:
    settings = Settings()
    try:
        verify_trigger_secret(settings.cron_secret, secret, required=settings.require_cron_secret)
    except ConfigurationError as exc:
        typer.echo(f"Rejected: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    run_date = _parse_day(today)
    with build_backends(settings) as backends:
        scheduler = backends.scheduler(settings)
        if dry_run:
            case_type_id = backends.store.resolve_case_type_id(settings.investigation_case_type)
            if case_type_id is None:
                typer.echo(f"{settings.investigation_case_type} type not found", err=True)
                raise typer.Exit(code=1)
            events = [
                event
                for case in backends.store.list_open_cases(case_type_id)
                for event in scheduler.evaluate_case(case, run_date)
            ]
            _echo_json([_event_payload(event) for event in events])
            return
        try:
            report = scheduler.run(run_date)
        except ReminderRunError as exc:
            if exc.report is not None:
                _echo_json(exc.report.to_dict())
            typer.echo(f"Reminder run aborted: {exc}", err=True)
            raise typer.Exit(code=1) from exc
    _echo_json(report.to_dict())


@app.command("trigger-reminder")
def trigger_reminder(
    case_number: str = typer.Argument(..., help="Docket number, e.g. CHR-VII-2024-001"),
    trigger_day: int = typer.Argument(..., help="One of the configured reminder days"),
    today: Optional[str] = typer.Option(None, help="Run date (YYYY-MM-DD)"),
) -> None:
    settings = Settings()
    with build_backends(settings) as backends:
        try:
            report = backends.scheduler(settings).trigger(case_number, trigger_day, _parse_day(today))
        except ManualTriggerError as exc:
            raise typer.BadParameter(str(exc), param_hint="TRIGGER_DAY") from exc
        except CaseNotFoundError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
    _echo_json(report.to_dict())
    if report.failures:
        raise typer.Exit(code=1)


@app.command("status")
def status(
    deadline: str = typer.Argument(..., help="Deadline as YYYY-MM-DD or mm/dd/yyyy"),
    raw_status: Optional[str] = typer.Option(None, help="Stored status, e.g. PENDING or FOR_REVIEW"),
    today: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD)"),
) -> None:
    settings = Settings()
    try:
        label = resolve_status(
            _parse_day(today),
            deadline,
            raw_status,
            urgent_window_days=settings.urgent_window_days,
        )
    except InvalidInputError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(label.value)


@app.command("summary")
def summary(today: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD)")) -> None:
    """Count dockets per dashboard bucket."""

    settings = Settings()
    with build_backends(settings) as backends:
        counts = summarize_statuses(
            backends.store.list_cases(),
            _parse_day(today),
            urgent_window_days=settings.urgent_window_days,
        )
    _echo_json({**counts.__dict__, "total": counts.total})


@app.command("preview")
def preview(
    days: int = typer.Option(14, min=1, help="Number of days to look ahead"),
    today: Optional[str] = typer.Option(None, help="First day of the preview (YYYY-MM-DD)"),
) -> None:
    """List reminders that would fire over the coming days, assuming nothing changes."""

    settings = Settings()
    with build_backends(settings) as backends:
        case_type_id = backends.store.resolve_case_type_id(settings.investigation_case_type)
        if case_type_id is None:
            typer.echo(f"{settings.investigation_case_type} type not found", err=True)
            raise typer.Exit(code=1)
        cases = list(backends.store.list_open_cases(case_type_id))
        events = simulate(backends.scheduler(settings), cases, _parse_day(today), days)
    _echo_json([_event_payload(event) for event in events])


def _parse_day(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return to_date(value)
    except InvalidInputError as exc:
        raise typer.BadParameter(str(exc), param_hint="--today") from exc


def _event_payload(event: Any) -> dict[str, Any]:
    return {
        "run_date": event.run_date.isoformat(),
        "case_number": event.case_number,
        "kind": event.kind.value,
        "trigger_day": event.trigger_day,
        "deadline": event.deadline.isoformat() if event.deadline else None,
        "recipients": list(event.recipients),
    }


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
