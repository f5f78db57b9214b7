"""Collaborator contracts consumed by the engine, with in-memory versions."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Protocol

from agenda_engine.dates import same_day, to_local_naive
from agenda_engine.schema import (
    ActionableInstance,
    CalendarEvent,
    InstanceKey,
    RoutineDefinition,
    Task,
)


class TaskStore(Protocol):
    async def list_tasks(self) -> list[Task]: ...

    async def set_completed(self, task_id: str, completed: bool) -> None: ...


class RoutineStore(Protocol):
    async def list_routine_definitions(self) -> list[RoutineDefinition]: ...


class CalendarSource(Protocol):
    async def fetch_events(self, range_start: datetime, range_end: datetime) -> list[CalendarEvent]: ...


class InstanceStore(Protocol):
    async def list_instances_for_date(self, day: date) -> list[ActionableInstance]: ...

    async def upsert_instance(self, record: ActionableInstance) -> None: ...


class InMemoryTaskStore:
    def __init__(self, tasks: list[Task] | None = None):
        self._tasks = {task.id: task for task in tasks or []}

    async def list_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    async def set_completed(self, task_id: str, completed: bool) -> None:
        if task_id not in self._tasks:
            raise KeyError(f"unknown task '{task_id}'")
        self._tasks[task_id] = replace(self._tasks[task_id], completed=completed)


class InMemoryRoutineStore:
    def __init__(self, routines: list[RoutineDefinition] | None = None):
        self._routines = list(routines or [])

    async def list_routine_definitions(self) -> list[RoutineDefinition]:
        return list(self._routines)


class InMemoryCalendar:
    def __init__(self, events: list[CalendarEvent] | None = None):
        self._events = list(events or [])

    async def fetch_events(self, range_start: datetime, range_end: datetime) -> list[CalendarEvent]:
        return [event for event in self._events if range_start <= to_local_naive(event.start) < range_end]


class InMemoryInstanceStore:
    """Instance store holding at most one record per ``InstanceKey``."""

    def __init__(self, records: list[ActionableInstance] | None = None):
        self._records: dict[InstanceKey, ActionableInstance] = {}
        for record in records or []:
            self._records[record.key] = record

    async def list_instances_for_date(self, day: date) -> list[ActionableInstance]:
        # records native to the day first, then those deferred onto it
        native = [record for record in self._records.values() if record.date == day]
        incoming = [
            record
            for record in self._records.values()
            if record.date != day and record.status == "deferred" and same_day(record.deferred_to, day)
        ]
        return native + incoming

    async def upsert_instance(self, record: ActionableInstance) -> None:
        self._records[record.key] = record

    def records(self) -> list[ActionableInstance]:
        return list(self._records.values())

