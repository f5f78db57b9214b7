"""Demo script for agenda-engine: move "Trash day" from Tuesday to Wednesday."""

import asyncio
import sys
from datetime import date, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from agenda_engine.adapters.json_adapter import parse
from agenda_engine.service import load_agenda
from agenda_engine.stores import InMemoryCalendar, InMemoryInstanceStore, InMemoryRoutineStore, InMemoryTaskStore
from agenda_engine.transitions import StatusTransition

TUESDAY = date(2024, 3, 5)
WEDNESDAY = date(2024, 3, 6)


def _print_agenda(day: date, sections) -> None:
    print(f"== {day:%A %Y-%m-%d}")
    for name, items in sections.as_dict().items():
        for item in items:
            when = f"{item.start_time:%H:%M}" if item.start_time else "--:--"
            flags = " (done)" if item.completed else ""
            print(f"  {name:<12} {when}  {item.title}{flags}")


async def main() -> None:
    inputs = parse("examples/sample_day.json")
    stores = {
        "tasks": InMemoryTaskStore(inputs.tasks),
        "routines": InMemoryRoutineStore(inputs.routines),
        "calendar": InMemoryCalendar(inputs.events),
        "instances": InMemoryInstanceStore(inputs.instances),
    }

    _print_agenda(TUESDAY, await load_agenda(TUESDAY, **stores))

    transitions = StatusTransition(stores["instances"], stores["tasks"])
    await transitions.defer("routine", "r-trash", TUESDAY, datetime(2024, 3, 6, 8, 0))
    await transitions.complete("task", "t-dentist", TUESDAY)

    _print_agenda(TUESDAY, await load_agenda(TUESDAY, **stores))
    _print_agenda(WEDNESDAY, await load_agenda(WEDNESDAY, **stores))


if __name__ == "__main__":
    asyncio.run(main())
