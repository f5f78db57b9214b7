import asyncio
from datetime import date, datetime

import pytest

from agenda_engine.schema import CalendarEvent, DaySections, RecurrencePattern, RoutineDefinition, Task
from agenda_engine.service import AgendaView, fetch_day, load_agenda
from agenda_engine.stores import (
    InMemoryCalendar,
    InMemoryInstanceStore,
    InMemoryRoutineStore,
    InMemoryTaskStore,
)

TUESDAY = date(2024, 3, 5)
WEDNESDAY = date(2024, 3, 6)


def sample_stores():
    return {
        "tasks": InMemoryTaskStore([Task("t1", "Dentist", scheduled_for=datetime(2024, 3, 5, 9, 30))]),
        "routines": InMemoryRoutineStore(
            [RoutineDefinition("trash", "Trash day", RecurrencePattern("weekly", days=("tue",)), "07:30")]
        ),
        "calendar": InMemoryCalendar(
            [
                CalendarEvent("e1", "Standup", datetime(2024, 3, 5, 9, 0)),
                CalendarEvent("e2", "Late film", datetime(2024, 3, 6, 0, 0)),
            ]
        ),
        "instances": InMemoryInstanceStore(),
    }


class BrokenCalendar:
    async def fetch_events(self, range_start, range_end):
        raise ConnectionError("calendar unavailable")


def test_fetch_day_uses_half_open_range():
    inputs = asyncio.run(fetch_day(TUESDAY, **sample_stores()))
    assert [event.id for event in inputs.events] == ["e1"]
    assert len(inputs.tasks) == 1
    assert len(inputs.routines) == 1


def test_load_agenda_builds_sections():
    sections = asyncio.run(load_agenda(TUESDAY, **sample_stores()))
    assert [item.id for item in sections.morning] == ["routine-trash", "event-e1", "task-t1"]


def test_collaborator_failure_propagates():
    stores = sample_stores()
    stores["calendar"] = BrokenCalendar()
    with pytest.raises(ConnectionError):
        asyncio.run(load_agenda(TUESDAY, **stores))


def test_view_discards_stale_results():
    view = AgendaView(TUESDAY)
    view.view(WEDNESDAY)
    assert not view.accept(TUESDAY, DaySections())
    assert view.sections is None

    fresh = DaySections()
    assert view.accept(WEDNESDAY, fresh)
    assert view.sections is fresh


def test_refresh_drops_result_when_date_changes_mid_load():
    view = AgendaView(TUESDAY)

    async def loader(day):
        view.view(WEDNESDAY)
        return DaySections()

    assert not asyncio.run(view.refresh(loader))
    assert view.sections is None


def test_failed_refresh_keeps_previous_sections():
    view = AgendaView(TUESDAY)
    shown = DaySections()
    view.accept(TUESDAY, shown)

    async def loader(day):
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        asyncio.run(view.refresh(loader))
    assert view.sections is shown
