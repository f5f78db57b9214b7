"""Recurrence evaluation for routine definitions."""

from __future__ import annotations

from datetime import date

from agenda_engine.dates import DAY_CODES, day_code
from agenda_engine.schema import RecurrencePattern


def is_well_formed(pattern: RecurrencePattern | None) -> bool:
    """Return True when ``pattern`` is one of the supported shapes."""

    if pattern is None:
        return False
    if pattern.type == "daily":
        return True
    if pattern.type == "weekly":
        return all(code in DAY_CODES for code in pattern.days)
    if pattern.type == "monthly":
        return isinstance(pattern.day_of_month, int) and 1 <= pattern.day_of_month <= 31
    return False


def applies(pattern: RecurrencePattern | None, day: date) -> bool:
    """Return whether a routine with ``pattern`` recurs on ``day``.

    Monthly patterns are not clamped to the end of the month, so a
    ``day_of_month`` of 31 never fires in shorter months. Unknown or
    malformed patterns fail closed.
    """

    if pattern is None:
        return False
    if pattern.type == "daily":
        return True
    if pattern.type == "weekly":
        return day_code(day) in (pattern.days or ())
    if pattern.type == "monthly":
        return pattern.day_of_month == day.day
    return False
