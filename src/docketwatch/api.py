"""HTTP surface for the reminder job and the status resolver.

The cron route is what the external daily trigger calls. The test-trigger route
lets an operator fire a single pre-deadline reminder without waiting for its date.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterator

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from docketwatch.backends import Backends, build_backends
from docketwatch.config import Settings, get_settings
from docketwatch.errors import (
    CaseNotFoundError,
    ConfigurationError,
    InvalidInputError,
    ManualTriggerError,
    ReminderRunError,
    UnauthorizedError,
)
from docketwatch.security import verify_trigger_secret
from docketwatch.status import resolve_status, summarize_statuses

router = APIRouter(prefix="/api", tags=["reminders"])


class TriggerReminderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case_number: str = Field(alias="caseNumber", min_length=1)
    trigger_day: int = Field(alias="triggerDay")


class StatusResponse(BaseModel):
    deadline: str
    raw_status: str | None = None
    today: date
    status: str


def get_backends(settings: Settings = Depends(get_settings)) -> Iterator[Backends]:
    with build_backends(settings) as backends:
        yield backends


def require_trigger_secret(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    try:
        verify_trigger_secret(
            settings.cron_secret, authorization, required=settings.require_cron_secret
        )
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail="Unauthorized") from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/cron/reminders", dependencies=[Depends(require_trigger_secret)], response_model=None)
def run_reminders(
    today: date | None = Query(default=None),
    settings: Settings = Depends(get_settings),
    backends: Backends = Depends(get_backends),
) -> Any:
    """Run the daily reminder scan and return its report."""

    try:
        report = backends.scheduler(settings).run(today)
    except ReminderRunError as exc:
        body: dict[str, Any] = exc.report.to_dict() if exc.report is not None else {}
        body.update(success=False, error=str(exc))
        return JSONResponse(status_code=500, content=body)
    return {
        "success": True,
        "message": f"Cron job completed. Processed {report.attempts} reminders.",
        **report.to_dict(),
    }


@router.post("/test/trigger-reminders", dependencies=[Depends(require_trigger_secret)])
def trigger_reminder(
    request: TriggerReminderRequest,
    today: date | None = Query(default=None),
    settings: Settings = Depends(get_settings),
    backends: Backends = Depends(get_backends),
) -> dict[str, Any]:
    """Fire one pre-deadline reminder for a docket."""

    try:
        report = backends.scheduler(settings).trigger(request.case_number, request.trigger_day, today)
    except ManualTriggerError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CaseNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    outcome = report.outcomes[0]
    return {
        "success": outcome.succeeded,
        "message": "Reminder recorded" if outcome.succeeded else outcome.outcome,
        "details": {
            "caseNumber": request.case_number,
            "triggerDay": request.trigger_day,
            "recipients": list(outcome.recipients),
        },
        "report": report.to_dict(),
    }


@router.get("/test/trigger-reminders")
def trigger_usage(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    days = ", ".join(str(day) for day in settings.reminder_days)
    return {
        "usage": "POST /api/test/trigger-reminders",
        "body": {
            "caseNumber": 'The docket number (e.g., "CHR-VII-2024-001")',
            "triggerDay": f"One of: {days}",
        },
        "example": {"caseNumber": "CHR-VII-2024-001", "triggerDay": settings.reminder_days[0]},
    }


@router.get("/status", response_model=StatusResponse)
def docket_status(
    deadline: str = Query(...),
    raw_status: str | None = Query(default=None),
    today: date | None = Query(default=None),
    settings: Settings = Depends(get_settings),
) -> StatusResponse:
    reference = today or date.today()
    try:
        label = resolve_status(
            reference, deadline, raw_status, urgent_window_days=settings.urgent_window_days
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return StatusResponse(deadline=deadline, raw_status=raw_status, today=reference, status=label.value)


@router.get("/dashboard/summary")
def dashboard_summary(
    today: date | None = Query(default=None),
    settings: Settings = Depends(get_settings),
    backends: Backends = Depends(get_backends),
) -> dict[str, int]:
    counts = summarize_statuses(
        backends.store.list_cases(),
        today or date.today(),
        urgent_window_days=settings.urgent_window_days,
    )
    return {**counts.__dict__, "total": counts.total}


def create_app() -> FastAPI:
    application = FastAPI(
        title="Docket Watch",
        version="0.1.0",
        description="Deadline status labels and investigation reminders for complaint dockets.",
    )
    application.include_router(router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        """Simple readiness probe used by deployment tooling."""

        return {"status": "ok"}

    return application


app = create_app()
