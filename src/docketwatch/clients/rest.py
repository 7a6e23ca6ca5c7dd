from __future__ import annotations

import logging
import random
import time
from typing import Any, Iterable

import httpx

from docketwatch.clients.base import CaseStore, NotificationSink
from docketwatch.dates import to_date
from docketwatch.errors import InvalidInputError
from docketwatch.messages import notification_type, render_reminder
from docketwatch.status import parse_raw_status
from docketwatch.types import Case, ReminderEvent, ReminderKind

logger = logging.getLogger(__name__)
_RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
_DOCKET_COLUMNS = (
    "id,docket_number,date_received,deadline,status,type_of_request_id,docket_staff(user_id)"
)


class RestDocketClient(CaseStore, NotificationSink):
    """
    Case store and notification sink for a PostgREST-style hosted backend.

    Reads are retried with backoff on transient failures. Writes are sent once: a
    timed-out insert may still have landed, and retrying it would duplicate reminders.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        user_agent: str = "docketwatch/0.1",
        max_retries: int = 4,
        backoff_seconds: float = 0.5,
        max_backoff_seconds: float = 8.0,
        page_size: int = 500,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        key = (api_key or "").strip()
        if not key:
            raise ValueError("An API key for the docket backend is required")

        self._base_url = base_url.rstrip("/")
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._max_backoff_seconds = max_backoff_seconds
        self._page_size = page_size
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "User-Agent": user_agent,
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RestDocketClient":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def resolve_case_type_id(self, name: str) -> str | None:
        rows = self._get("/request_types", params={"select": "id", "name": f"eq.{name}", "limit": 1})
        if not rows:
            return None
        return str(rows[0]["id"])

    def list_open_cases(self, case_type_id: str) -> Iterable[Case]:
        params = {
            "select": _DOCKET_COLUMNS,
            "type_of_request_id": f"eq.{case_type_id}",
            "status": "eq.PENDING",
            "order": "date_received.asc,id.asc",
        }
        yield from _readable_cases(self._paginate("/dockets", params))

    def list_cases(self, case_type_id: str | None = None) -> Iterable[Case]:
        params = {"select": _DOCKET_COLUMNS, "order": "date_received.asc,id.asc"}
        if case_type_id is not None:
            params["type_of_request_id"] = f"eq.{case_type_id}"
        yield from _readable_cases(self._paginate("/dockets", params))

    def get_case_by_number(self, case_number: str) -> Case | None:
        rows = self._get(
            "/dockets",
            params={"select": _DOCKET_COLUMNS, "docket_number": f"eq.{case_number}", "limit": 1},
        )
        if not rows:
            return None
        return _case_from_api(rows[0])

    def has_reminder(self, case_id: str, kind: ReminderKind, trigger_day: int) -> bool:
        rows = self._get(
            "/reminder_events",
            params={
                "select": "id",
                "docket_id": f"eq.{case_id}",
                "kind": f"eq.{kind.value}",
                "trigger_day": f"eq.{trigger_day}",
                "limit": 1,
            },
        )
        return bool(rows)

    def record_reminder(self, event: ReminderEvent) -> None:
        self._post(
            "/reminder_events",
            [
                {
                    "docket_id": event.case_id,
                    "docket_number": event.case_number,
                    "kind": event.kind.value,
                    "trigger_day": event.trigger_day,
                    "deadline": event.deadline.isoformat() if event.deadline else None,
                    "recipients": list(event.recipients),
                    "run_id": event.run_id,
                    "created_at": event.created_at.isoformat(),
                }
            ],
        )
        if not event.recipients:
            return
        title, message = render_reminder(event)
        self._post(
            "/notifications",
            [
                {
                    "user_id": recipient,
                    "title": title,
                    "message": message,
                    "notification_type": notification_type(event),
                    "docket_id": event.case_id,
                    "is_read": False,
                }
                for recipient in event.recipients
            ],
        )

    def _paginate(self, path: str, params: dict[str, Any]) -> Iterable[dict[str, Any]]:
        offset = 0
        while True:
            page = self._get(path, params={**params, "limit": self._page_size, "offset": offset})
            logger.debug("Fetched %s records from %s at offset %s", len(page), path, offset)
            yield from page
            if len(page) < self._page_size:
                break
            offset += len(page)

    def _get(self, path: str, *, params: dict[str, Any]) -> list[dict[str, Any]]:
        response = self._request_with_retry(path, params=params)
        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError(f"Expected a list of rows from {path}, got {type(payload).__name__}")
        return payload

    def _post(self, path: str, rows: list[dict[str, Any]]) -> None:
        response = self._client.post(path, json=rows, headers={"Prefer": "return=minimal"})
        response.raise_for_status()

    def _request_with_retry(
        self,
        url: str,
        *,
        params: dict[str, Any] | None,
    ) -> httpx.Response:
        """Execute GET requests with bounded retry/backoff for transient failures."""

        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.get(url, params=params)
                if response.status_code in _RETRYABLE_STATUS_CODES and attempt < self._max_retries:
                    wait_seconds = self._compute_backoff(attempt, response=response)
                    logger.warning(
                        "Retrying backend request after retryable status",
                        extra={
                            "url": url,
                            "status_code": response.status_code,
                            "attempt": attempt + 1,
                            "max_retries": self._max_retries,
                            "wait_seconds": wait_seconds,
                        },
                    )
                    time.sleep(wait_seconds)
                    continue
                response.raise_for_status()
                return response
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self._max_retries:
                    raise
                wait_seconds = self._compute_backoff(attempt)
                logger.warning(
                    "Retrying backend request after transport failure",
                    extra={
                        "url": url,
                        "attempt": attempt + 1,
                        "max_retries": self._max_retries,
                        "wait_seconds": wait_seconds,
                        "error": str(exc),
                    },
                )
                time.sleep(wait_seconds)

        raise RuntimeError("Unreachable retry state while requesting the docket backend")

    def _compute_backoff(
        self,
        attempt: int,
        *,
        response: httpx.Response | None = None,
    ) -> float:
        # Respect Retry-After when present; otherwise use exponential backoff with jitter.
        retry_after = response.headers.get("Retry-After") if response is not None else None
        if retry_after:
            try:
                wait = float(retry_after)
                return max(0.0, min(wait, self._max_backoff_seconds))
            except ValueError:
                pass
        expo = self._backoff_seconds * (2**attempt)
        jitter = random.uniform(0.0, self._backoff_seconds)
        return max(0.0, min(expo + jitter, self._max_backoff_seconds))


def _case_from_api(raw: dict[str, Any]) -> Case:
    staff = raw.get("docket_staff") or []
    return Case(
        id=str(raw.get("id")),
        case_number=raw.get("docket_number", ""),
        date_received=to_date(raw.get("date_received")),
        deadline=to_date(raw.get("deadline")),
        raw_status=parse_raw_status(raw.get("status")),
        case_type_id=str(raw["type_of_request_id"]) if raw.get("type_of_request_id") else None,
        assigned_staff_ids=tuple(str(item["user_id"]) for item in staff if item.get("user_id")),
        metadata=raw,
    )


def _readable_cases(rows: Iterable[dict[str, Any]]) -> Iterable[Case]:
    # One unreadable row is logged and dropped so it cannot hide the rest of the scan.
    for raw in rows:
        try:
            yield _case_from_api(raw)
        except InvalidInputError as exc:
            logger.warning(
                "Skipping unreadable docket row",
                extra={"docket_id": raw.get("id"), "docket_number": raw.get("docket_number"), "error": str(exc)},
            )
