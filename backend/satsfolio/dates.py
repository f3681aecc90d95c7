"""Date parsing and calendar-month helpers."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Iterator

DATE_KEY_FORMAT = "%Y-%m-%d"


def parse_timestamp(value: object) -> datetime:
    """Parse a record date into a naive UTC ``datetime``.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` strings and full ISO
    8601 timestamps (a trailing ``Z`` is treated as UTC). Raises ``ValueError``
    for anything else.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError("empty date string")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        parsed = datetime.fromisoformat(raw)
    else:
        raise ValueError(f"unsupported date value {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def date_key(day: date) -> str:
    return day.strftime(DATE_KEY_FORMAT)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    """Shift a first-of-month date by ``months`` calendar months."""

    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from ``start`` to ``end`` inclusive."""

    current = month_start(start)
    while current <= end:
        yield current
        current = add_months(current, 1)


def days_between(later: date, earlier: date) -> int:
    return (later - earlier).days


__all__ = [
    "DATE_KEY_FORMAT",
    "parse_timestamp",
    "date_key",
    "month_key",
    "month_start",
    "month_end",
    "add_months",
    "iter_months",
    "days_between",
]
