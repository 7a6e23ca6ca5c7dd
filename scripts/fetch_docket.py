#!/usr/bin/env python3
"""Fetch a single docket from the hosted backend and show its resolved status."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date

from docketwatch.clients import RestDocketClient
from docketwatch.config import Settings
from docketwatch.dates import days_past_deadline, days_since_received
from docketwatch.status import resolve_status


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("case_number", help="Docket number, e.g. CHR-VII-2024-001")
    parser.add_argument(
        "--api-key",
        dest="api_key",
        default=None,
        help="Backend API key. Defaults to DOCKETWATCH_REST_API_KEY/.env",
    )
    parser.add_argument(
        "--base-url",
        dest="base_url",
        default=None,
        help="Override the backend REST URL (default DOCKETWATCH_REST_BASE_URL)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    settings = Settings()
    api_key = (args.api_key or settings.rest_api_key or "").strip()
    if not api_key:
        print("ERROR: API key required via --api-key or DOCKETWATCH_REST_API_KEY", file=sys.stderr)
        return 2

    with RestDocketClient(
        args.base_url or settings.rest_base_url,
        api_key,
        timeout=settings.rest_timeout,
        user_agent=settings.user_agent,
        max_retries=settings.rest_max_retries,
        backoff_seconds=settings.rest_backoff_seconds,
        max_backoff_seconds=settings.rest_max_backoff_seconds,
    ) as client:
        case = client.get_case_by_number(args.case_number)

    if not case:
        print("Docket not found", file=sys.stderr)
        return 1

    today = date.today()
    payload = {
        "id": case.id,
        "case_number": case.case_number,
        "date_received": case.date_received.isoformat(),
        "deadline": case.deadline.isoformat(),
        "raw_status": case.raw_status.value if case.raw_status else None,
        "status": resolve_status(
            today, case.deadline, case.raw_status, urgent_window_days=settings.urgent_window_days
        ).value,
        "days_since_received": days_since_received(today, case.date_received),
        "days_past_deadline": days_past_deadline(today, case.deadline),
        "assigned_staff_ids": list(case.assigned_staff_ids),
    }
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
