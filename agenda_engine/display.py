"""Wall-clock display flags, computed outside the aggregator."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from agenda_engine.schema import DaySections, TimelineItem


def time_section(item: TimelineItem, now: Optional[datetime] = None, soon_hours: int = 3) -> str:
    """Classify ``item`` as ``now``, ``soon``, ``later`` or ``unscheduled``.

    ``now`` covers the current clock hour, ``soon`` the following
    ``soon_hours`` hours. Past items and items on other days are ``later``.
    """

    if item.start_time is None:
        return "unscheduled"
    now = now or datetime.now()
    hour_start = now.replace(minute=0, second=0, microsecond=0)
    next_hour = hour_start + timedelta(hours=1)
    if hour_start <= item.start_time < next_hour:
        return "now"
    if next_hour <= item.start_time < now + timedelta(hours=soon_hours):
        return "soon"
    return "later"


def annotate_now(sections: DaySections, now: Optional[datetime] = None, soon_hours: int = 3) -> dict[str, str]:
    """Map each item id on the agenda to its display flag."""

    now = now or datetime.now()
    return {item.id: time_section(item, now, soon_hours) for item in sections.all_items()}


def is_happening_now(item: TimelineItem, now: Optional[datetime] = None) -> bool:
    if item.start_time is None:
        return False
    now = now or datetime.now()
    if item.end_time is not None:
        return item.start_time <= now < item.end_time
    return time_section(item, now) == "now"
