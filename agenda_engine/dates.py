"""Local calendar-day helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

DAY_CODES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


def day_code(day: date) -> str:
    """Return the three-letter weekday code for ``day``."""

    return DAY_CODES[day.weekday()]


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def day_of(value: datetime | date) -> date:
    """Return the local calendar day a timestamp falls on."""

    if isinstance(value, datetime):
        return to_local_naive(value).date()
    return value


def same_day(value: Optional[datetime], day: date) -> bool:
    return value is not None and day_of(value) == day


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` range covering ``day``."""

    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS``."""

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"malformed time of day '{value}'")
    try:
        numbers = [int(part) for part in parts]
    except ValueError as exc:
        raise ValueError(f"malformed time of day '{value}'") from exc
    return time(*numbers)


def parse_timestamp(value: str) -> datetime:
    return to_local_naive(datetime.fromisoformat(value))
