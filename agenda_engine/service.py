"""Fetch a day's inputs from the collaborators and build its agenda."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Optional

from agenda_engine.aggregator import aggregate
from agenda_engine.config import AgendaConfig
from agenda_engine.dates import day_bounds
from agenda_engine.schema import DayInputs, DaySections
from agenda_engine.stores import CalendarSource, InstanceStore, RoutineStore, TaskStore

logger = logging.getLogger(__name__)


async def fetch_day(
    day: date,
    *,
    tasks: TaskStore,
    routines: RoutineStore,
    calendar: CalendarSource,
    instances: InstanceStore,
) -> DayInputs:
    """Fetch the four inputs concurrently. Any collaborator failure propagates."""

    range_start, range_end = day_bounds(day)
    task_list, routine_list, event_list, instance_list = await asyncio.gather(
        tasks.list_tasks(),
        routines.list_routine_definitions(),
        calendar.fetch_events(range_start, range_end),
        instances.list_instances_for_date(day),
    )
    logger.debug(
        "Fetched %d tasks, %d routines, %d events, %d instances for %s",
        len(task_list),
        len(routine_list),
        len(event_list),
        len(instance_list),
        day,
    )
    return DayInputs(list(task_list), list(routine_list), list(event_list), list(instance_list))


async def load_agenda(
    day: date,
    *,
    tasks: TaskStore,
    routines: RoutineStore,
    calendar: CalendarSource,
    instances: InstanceStore,
    config: Optional[AgendaConfig] = None,
) -> DaySections:
    inputs = await fetch_day(day, tasks=tasks, routines=routines, calendar=calendar, instances=instances)
    return aggregate(inputs.tasks, inputs.routines, inputs.events, day, inputs.instances, config)


class AgendaView:
    """Tracks the viewed date and drops results of loads for other dates.

    A failed load leaves the previously shown sections in place.
    """

    def __init__(self, viewed_date: date):
        self.viewed_date = viewed_date
        self.sections: Optional[DaySections] = None

    def view(self, day: date) -> None:
        self.viewed_date = day

    def accept(self, day: date, sections: DaySections) -> bool:
        if day != self.viewed_date:
            logger.debug("Discarding stale agenda for %s (viewing %s)", day, self.viewed_date)
            return False
        self.sections = sections
        return True

    async def refresh(self, loader) -> bool:
        """Run ``loader(day)`` for the current date and keep it if still current."""

        day = self.viewed_date
        sections = await loader(day)
        return self.accept(day, sections)
