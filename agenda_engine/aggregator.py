"""Merge resolved occurrences into one ordered, sectioned agenda."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Optional

from agenda_engine.config import DEFAULT_CONFIG, AgendaConfig
from agenda_engine.overrides import build_indexes
from agenda_engine.resolver import resolve_events, resolve_routines, resolve_tasks
from agenda_engine.schema import (
    ActionableInstance,
    CalendarEvent,
    DaySections,
    RoutineDefinition,
    Task,
    TimelineItem,
)

logger = logging.getLogger(__name__)


def dedupe_events(items: list[TimelineItem]) -> list[TimelineItem]:
    """Drop repeated events with the same title and start time.

    The same event may arrive through two calendar feeds; the first one in
    input order wins. Tasks and routines pass through untouched.
    """

    seen: set[tuple[str, object]] = set()
    kept: list[TimelineItem] = []
    for item in items:
        if item.type == "event":
            key = (item.title, item.start_time)
            if key in seen:
                continue
            seen.add(key)
        kept.append(item)
    return kept


def section_for(item: TimelineItem, config: AgendaConfig = DEFAULT_CONFIG) -> str:
    if item.all_day:
        return "allday"
    if item.start_time is None:
        return "unscheduled"
    hour = item.start_time.hour
    if hour < config.sections.afternoon_start:
        return "morning"
    if hour < config.sections.evening_start:
        return "afternoon"
    return "evening"


def _by_start(item: TimelineItem) -> tuple:
    # untimed items sort after timed ones; sorted() keeps input order on ties
    if item.start_time is None:
        return (1, 0)
    return (0, item.start_time)


def bucket(items: Iterable[TimelineItem], config: AgendaConfig = DEFAULT_CONFIG) -> DaySections:
    sections = DaySections()
    for item in items:
        getattr(sections, section_for(item, config)).append(item)
    for name in ("allday", "morning", "afternoon", "evening"):
        setattr(sections, name, sorted(getattr(sections, name), key=_by_start))
    return sections


def aggregate(
    tasks: Iterable[Task],
    routines: Iterable[RoutineDefinition],
    events: Iterable[CalendarEvent],
    viewed_date: date,
    instances: Iterable[ActionableInstance] = (),
    config: Optional[AgendaConfig] = None,
    include_skipped: bool = False,
) -> DaySections:
    """Build the agenda for ``viewed_date``.

    ``instances`` is the raw override list fetched for the date, including
    records deferred onto it from other days. The result depends only on the
    arguments; no clock is read here.
    """

    config = config or DEFAULT_CONFIG
    native, incoming = build_indexes(instances, viewed_date)

    merged = (
        resolve_tasks(tasks, viewed_date, native, include_skipped)
        + resolve_routines(routines, viewed_date, native, incoming, include_skipped)
        + resolve_events(events, viewed_date, native, include_skipped)
    )
    items = dedupe_events(merged)
    if len(items) != len(merged):
        logger.debug("Dropped %d duplicate events for %s", len(merged) - len(items), viewed_date)
    return bucket(items, config)


def filter_by_assignee(
    sections: DaySections, assignees: Iterable[str], include_unassigned: bool = False
) -> DaySections:
    """Keep only items assigned to one of ``assignees``."""

    wanted = set(assignees)

    def keep(item: TimelineItem) -> bool:
        if item.assigned_to is None:
            return include_unassigned
        return item.assigned_to in wanted

    return DaySections(**{name: [item for item in items if keep(item)] for name, items in sections.as_dict().items()})
