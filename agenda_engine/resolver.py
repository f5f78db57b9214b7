"""Per-kind occurrence resolution for a viewed date.

Each resolver turns one kind of entity (task, routine, calendar event) into
timeline items for a single day and applies the override records that
belong to that day. Routines additionally consult the deferred-onto index so
that an occurrence moved from another day shows up on its target date.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional

from agenda_engine.dates import day_of, parse_time_of_day, same_day, to_local_naive
from agenda_engine.overrides import InstanceOverrideIndex
from agenda_engine.recurrence import applies, is_well_formed
from agenda_engine.schema import (
    ActionableInstance,
    CalendarEvent,
    RoutineDefinition,
    Task,
    TimelineItem,
)

logger = logging.getLogger(__name__)


def _moved_away(record: Optional[ActionableInstance], day: date) -> bool:
    return record is not None and record.status == "deferred" and not same_day(record.deferred_to, day)


def _is_skipped(record: Optional[ActionableInstance]) -> bool:
    return record is not None and record.status == "skipped"


def _effective_start(
    native_start: Optional[datetime], record: Optional[ActionableInstance], day: date
) -> Optional[datetime]:
    """Apply a same-day retime carried by ``record``, if any."""

    if record is None or record.status == "skipped":
        return native_start
    if record.deferred_to is not None and same_day(record.deferred_to, day):
        return to_local_naive(record.deferred_to)
    return native_start


def _routine_start(routine: RoutineDefinition, day: date) -> Optional[datetime]:
    if not routine.time_of_day:
        return None
    try:
        return datetime.combine(day, parse_time_of_day(routine.time_of_day))
    except ValueError:
        logger.warning("Routine %s has unparseable time_of_day %r; leaving it unscheduled", routine.id, routine.time_of_day)
        return None


def resolve_tasks(
    tasks: Iterable[Task],
    day: date,
    native: InstanceOverrideIndex,
    include_skipped: bool = False,
) -> list[TimelineItem]:
    """Resolve explicitly scheduled tasks that fall on ``day``.

    Inbox tasks (no ``scheduled_for``) are not considered here.
    """

    items: list[TimelineItem] = []
    for task in tasks:
        if task.scheduled_for is None or day_of(task.scheduled_for) != day:
            continue
        record = native.get("task", task.id)
        skipped = _is_skipped(record)
        if (skipped and not include_skipped) or _moved_away(record, day):
            continue
        completed = task.completed or (record is not None and record.status == "completed")
        items.append(
            TimelineItem(
                id=f"task-{task.id}",
                entity_id=task.id,
                title=task.title,
                type="task",
                start_time=_effective_start(to_local_naive(task.scheduled_for), record, day),
                all_day=task.is_all_day,
                completed=completed,
                skipped=skipped,
                assigned_to=task.assigned_to,
            )
        )
    return items


def _usable_routines(routines: Iterable[RoutineDefinition], day: date) -> dict[str, RoutineDefinition]:
    usable: dict[str, RoutineDefinition] = {}
    for routine in routines:
        if routine.id in usable:
            continue
        if not is_well_formed(routine.recurrence_pattern):
            logger.warning(
                "Routine %s excluded from %s: malformed recurrence pattern %r",
                routine.id,
                day,
                routine.recurrence_pattern,
            )
            continue
        if not routine.show_on_timeline:
            continue
        usable[routine.id] = routine
    return usable


def resolve_routines(
    routines: Iterable[RoutineDefinition],
    day: date,
    native: InstanceOverrideIndex,
    incoming: InstanceOverrideIndex,
    include_skipped: bool = False,
) -> list[TimelineItem]:
    """Resolve routine occurrences for ``day``.

    Candidates are the active routines whose pattern recurs on ``day`` plus
    any routine deferred onto ``day`` from another date. A routine recurring
    natively and also deferred in appears once, at its native time, unless
    its own occurrence was moved off ``day``; then the incoming one is shown.
    """

    usable = _usable_routines(routines, day)

    candidates: list[tuple[RoutineDefinition, Optional[ActionableInstance]]] = [
        (routine, None)
        for routine in usable.values()
        if routine.visibility == "active"
        and applies(routine.recurrence_pattern, day)
        and not _moved_away(native.get("routine", routine.id), day)
    ]
    recurring = {routine.id for routine, _ in candidates}
    for record in incoming.entries("routine"):
        routine = usable.get(record.entity_id)
        if routine is None:
            logger.debug("Deferred record %s has no usable routine", record.instance_key)
            continue
        if routine.id not in recurring:
            candidates.append((routine, record))

    items: list[TimelineItem] = []
    for routine, injected in candidates:
        record = native.get("routine", routine.id)
        if injected is not None and _moved_away(record, day):
            # that record belongs to the day's own occurrence, which has left
            record = None
        skipped = _is_skipped(record)
        if (skipped and not include_skipped) or _moved_away(record, day):
            continue
        if injected is not None:
            native_start = to_local_naive(injected.deferred_to)
            deferred_from = injected.date if injected.date != day else None
        else:
            native_start = _routine_start(routine, day)
            deferred_from = None
        items.append(
            TimelineItem(
                id=f"routine-{routine.id}",
                entity_id=routine.id,
                title=routine.name,
                type="routine",
                start_time=_effective_start(native_start, record, day),
                completed=record is not None and record.status == "completed",
                skipped=skipped,
                deferred_from=deferred_from,
                assigned_to=routine.assigned_to,
            )
        )
    return items


def resolve_events(
    events: Iterable[CalendarEvent],
    day: date,
    native: InstanceOverrideIndex,
    include_skipped: bool = False,
) -> list[TimelineItem]:
    """Resolve calendar events starting on ``day``.

    An event deferred to another day leaves this day's list and is not
    injected on the target day: the calendar owns event timing. A deferral
    within the same day only retimes the item, keeping its duration.
    """

    items: list[TimelineItem] = []
    for event in events:
        if event.start is None:
            logger.warning("Calendar event %s has no start; skipping", event.id)
            continue
        if day_of(event.start) != day:
            continue
        record = native.get("calendar_event", event.id)
        skipped = _is_skipped(record)
        if (skipped and not include_skipped) or _moved_away(record, day):
            continue
        native_start = to_local_naive(event.start)
        start = _effective_start(native_start, record, day)
        end = to_local_naive(event.end) if event.end is not None else None
        if end is not None and start != native_start:
            end = end + (start - native_start)
        items.append(
            TimelineItem(
                id=f"event-{event.id}",
                entity_id=event.id,
                title=event.title,
                type="event",
                start_time=start,
                end_time=end,
                all_day=event.all_day,
                completed=record is not None and record.status == "completed",
                skipped=skipped,
                assigned_to=event.assigned_to,
            )
        )
    return items
