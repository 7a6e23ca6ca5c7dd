from __future__ import annotations

import json
from datetime import date, datetime, timezone

import httpx
import pytest

from docketwatch.clients import RestDocketClient
from docketwatch.reminders import ReminderScheduler
from docketwatch.types import RawStatus, ReminderEvent, ReminderKind

DOCKET_ROWS = [
    {
        "id": f"d-{index}",
        "docket_number": f"CHR-VII-2024-{index:03d}",
        "date_received": "2024-01-02",
        "deadline": "2024-03-02",
        "status": "PENDING",
        "type_of_request_id": 7,
        "docket_staff": [{"user_id": "u-1"}, {"user_id": "u-2"}],
    }
    for index in range(1, 6)
]


class FakeBackend:
    def __init__(self, *, fail_first: int = 0, rows: list[dict] | None = None):
        self.requests: list[httpx.Request] = []
        self.fail_first = fail_first
        self.rows = DOCKET_ROWS if rows is None else rows

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_first:
            self.fail_first -= 1
            return httpx.Response(503)
        path = request.url.path
        params = request.url.params
        if request.method == "POST":
            return httpx.Response(201)
        if path.endswith("/request_types"):
            rows = [{"id": 7}] if params.get("name") == "eq.Legal Investigation" else []
            return httpx.Response(200, json=rows)
        if path.endswith("/dockets"):
            rows = self.rows
            if "docket_number" in params:
                wanted = params["docket_number"].removeprefix("eq.")
                rows = [row for row in rows if row["docket_number"] == wanted]
            offset = int(params.get("offset", 0))
            limit = int(params.get("limit", len(rows)))
            return httpx.Response(200, json=rows[offset : offset + limit])
        if path.endswith("/reminder_events"):
            return httpx.Response(200, json=[{"id": 1}] if params.get("trigger_day") == "eq.45" else [])
        return httpx.Response(404)


def _client(backend: FakeBackend, **kwargs) -> RestDocketClient:
    return RestDocketClient(
        "https://backend.example/rest/v1",
        "service-key",
        backoff_seconds=0.0,
        max_backoff_seconds=0.0,
        transport=httpx.MockTransport(backend),
        **kwargs,
    )


def test_requires_api_key():
    with pytest.raises(ValueError):
        RestDocketClient("https://backend.example/rest/v1", "  ")


def test_lists_open_cases_across_pages():
    backend = FakeBackend()
    with _client(backend, page_size=2) as client:
        type_id = client.resolve_case_type_id("Legal Investigation")
        cases = list(client.list_open_cases(type_id))

    assert type_id == "7"
    assert [case.case_number for case in cases] == [row["docket_number"] for row in DOCKET_ROWS]
    assert cases[0].assigned_staff_ids == ("u-1", "u-2")
    assert cases[0].raw_status is RawStatus.PENDING
    assert cases[0].date_received == date(2024, 1, 2)
    docket_requests = [r for r in backend.requests if r.url.path.endswith("/dockets")]
    assert len(docket_requests) == 3
    assert docket_requests[0].url.params["status"] == "eq.PENDING"
    assert docket_requests[0].headers["apikey"] == "service-key"


def test_unknown_case_type_returns_none():
    with _client(FakeBackend()) as client:
        assert client.resolve_case_type_id("Unknown") is None
        assert client.get_case_by_number("CHR-VII-2024-003").id == "d-3"


def test_retries_transient_failures():
    backend = FakeBackend(fail_first=2)
    with _client(backend, max_retries=3) as client:
        assert client.resolve_case_type_id("Legal Investigation") == "7"
    assert len(backend.requests) == 3


def test_gives_up_after_max_retries():
    backend = FakeBackend(fail_first=5)
    with _client(backend, max_retries=1) as client:
        with pytest.raises(httpx.HTTPStatusError):
            client.resolve_case_type_id("Legal Investigation")


def test_record_reminder_posts_event_and_notifications():
    backend = FakeBackend()
    event = ReminderEvent(
        case_id="d-1",
        case_number="CHR-VII-2024-001",
        recipients=("u-1", "u-2"),
        kind=ReminderKind.OVERDUE,
        trigger_day=30,
        deadline=date(2024, 3, 2),
        run_date=date(2024, 4, 1),
        created_at=datetime(2024, 4, 1, 8, 0, tzinfo=timezone.utc),
    )
    with _client(backend) as client:
        client.record_reminder(event)
        assert client.has_reminder("d-1", ReminderKind.PRE_DEADLINE, 45)
        assert not client.has_reminder("d-1", ReminderKind.PRE_DEADLINE, 50)

    posts = [r for r in backend.requests if r.method == "POST"]
    assert [r.url.path.rsplit("/", 1)[-1] for r in posts] == ["reminder_events", "notifications"]
    notifications = json.loads(posts[1].content)
    assert [row["user_id"] for row in notifications] == ["u-1", "u-2"]
    assert notifications[0]["notification_type"] == "overdue"
    assert "30 days past its deadline of 03/02/2024" in notifications[0]["message"]


def test_unreadable_docket_row_does_not_block_the_scan():
    rows = [dict(row) for row in DOCKET_ROWS[:3]]
    rows[1]["deadline"] = None
    backend = FakeBackend(rows=rows)

    with _client(backend) as client:
        report = ReminderScheduler(client, client).run(date(2024, 2, 16))

    assert report.status == "success"
    assert report.cases_scanned == 2
    assert [item.case_number for item in report.outcomes] == ["CHR-VII-2024-001", "CHR-VII-2024-003"]
    event_posts = [
        r for r in backend.requests if r.method == "POST" and r.url.path.endswith("/reminder_events")
    ]
    assert len(event_posts) == 2
