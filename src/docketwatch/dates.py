"""Calendar-day arithmetic shared by the status resolver and the reminder scheduler.

Every value is reduced to a plain ``date`` before subtraction so that the time of
day can never move a result across a day boundary.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Union

from docketwatch.errors import InvalidInputError

DateLike = Union[date, datetime, str]

_US_DATE = re.compile(r"^(0?[1-9]|1[0-2])/(0?[1-9]|[12][0-9]|3[01])/\d{4}$")


def to_date(value: DateLike | None) -> date:
    """Coerce ``value`` to a calendar date or raise ``InvalidInputError``."""

    if value is None:
        raise InvalidInputError("A date is required")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            # Aware timestamps are read in local time, matching how staff see the calendar.
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return _parse_date_string(value)
    raise InvalidInputError(f"Unsupported date value: {value!r}")


def _parse_date_string(value: str) -> date:
    text = value.strip()
    if not text:
        raise InvalidInputError("A date is required")
    if is_valid_date_format(text):
        try:
            return datetime.strptime(text, "%m/%d/%Y").date()
        except ValueError as exc:
            raise InvalidInputError(f"Invalid calendar date: {value!r}") from exc
    try:
        return to_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError as exc:
        raise InvalidInputError(f"Unable to parse date: {value!r}") from exc


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative when ``end`` is earlier)."""

    return (to_date(end) - to_date(start)).days


def days_since_received(today: DateLike, date_received: DateLike) -> int:
    # The receipt date itself is day 0.
    return days_between(date_received, today)


def days_past_deadline(today: DateLike, deadline: DateLike) -> int:
    return days_between(deadline, today)


def is_valid_date_format(value: str) -> bool:
    """True when ``value`` looks like ``mm/dd/yyyy`` (leading zeros optional)."""

    return bool(_US_DATE.match(value))


def format_date(value: DateLike) -> str:
    return to_date(value).strftime("%m/%d/%Y")


def to_db_format(value: str) -> str | None:
    """Convert a ``mm/dd/yyyy`` form value to ``YYYY-MM-DD``, or ``None`` if it is not one."""

    if not is_valid_date_format(value.strip()):
        return None
    try:
        return to_date(value).isoformat()
    except InvalidInputError:
        return None
