"""JSON adapter for day snapshots."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Optional

from agenda_engine.dates import DAY_CODES, parse_timestamp
from agenda_engine.schema import (
    ENTITY_TYPES,
    PATTERN_TYPES,
    STATUSES,
    ActionableInstance,
    CalendarEvent,
    DayInputs,
    DaySections,
    RecurrencePattern,
    RoutineDefinition,
    Task,
    TimelineItem,
)

logger = logging.getLogger(__name__)

_REQUIRED_TASK_FIELDS = {"id", "title"}
_REQUIRED_ROUTINE_FIELDS = {"id", "name"}
_REQUIRED_EVENT_FIELDS = {"id", "title", "start"}
_REQUIRED_INSTANCE_FIELDS = {"entity_type", "entity_id", "date", "status"}


def _missing(item: dict, required: set[str]) -> list[str]:
    return sorted(field for field in required if not item.get(field))


def _timestamp(value, where: str, field: str):
    if value in (None, ""):
        return None
    try:
        return parse_timestamp(str(value))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"{where}: malformed {field}") from exc


def _parse_task(item: dict, index: int) -> Task:
    where = f"Task {index}"
    missing = _missing(item, _REQUIRED_TASK_FIELDS)
    if missing:
        raise ValueError(f"{where}: missing required fields {missing}")

    deferred_raw = item.get("deferred_until")
    deferred_until = None
    if deferred_raw:
        try:
            deferred_until = date.fromisoformat(str(deferred_raw))
        except Exception as exc:  # noqa: BLE001
            raise ValueError(f"{where}: malformed deferred_until") from exc

    category_raw = item.get("category")
    return Task(
        id=str(item["id"]).strip(),
        title=str(item["title"]).strip(),
        completed=bool(item.get("completed", False)),
        scheduled_for=_timestamp(item.get("scheduled_for"), where, "scheduled_for"),
        is_all_day=bool(item.get("is_all_day", False)),
        deferred_until=deferred_until,
        category=str(category_raw).strip() if category_raw else None,
        assigned_to=item.get("assigned_to"),
    )


def _parse_pattern(raw, where: str) -> Optional[RecurrencePattern]:
    # malformed patterns load as-is; the resolver excludes them with a warning
    if not isinstance(raw, dict) or not raw.get("type"):
        return None
    pattern_type = str(raw["type"]).strip()
    if pattern_type not in PATTERN_TYPES:
        logger.warning("%s: unsupported recurrence type '%s'", where, pattern_type)
    days = tuple(str(code).strip().lower() for code in raw.get("days") or ())
    unknown = [code for code in days if code not in DAY_CODES]
    if unknown:
        logger.warning("%s: unknown day codes %s", where, unknown)
    day_of_month = raw.get("day_of_month")
    return RecurrencePattern(
        type=pattern_type,
        days=days,
        day_of_month=day_of_month if isinstance(day_of_month, int) else None,
    )


def _parse_routine(item: dict, index: int) -> RoutineDefinition:
    where = f"Routine {index}"
    missing = _missing(item, _REQUIRED_ROUTINE_FIELDS)
    if missing:
        raise ValueError(f"{where}: missing required fields {missing}")

    return RoutineDefinition(
        id=str(item["id"]).strip(),
        name=str(item["name"]).strip(),
        recurrence_pattern=_parse_pattern(item.get("recurrence_pattern"), where),
        time_of_day=item.get("time_of_day") or None,
        assigned_to=item.get("assigned_to"),
        show_on_timeline=bool(item.get("show_on_timeline", True)),
        visibility=str(item.get("visibility", "active")),
        description=item.get("description"),
    )


def _parse_event(item: dict, index: int) -> CalendarEvent:
    where = f"Event {index}"
    missing = _missing(item, _REQUIRED_EVENT_FIELDS)
    if missing:
        raise ValueError(f"{where}: missing required fields {missing}")

    return CalendarEvent(
        id=str(item["id"]).strip(),
        title=str(item["title"]),
        start=_timestamp(item["start"], where, "start"),
        end=_timestamp(item.get("end"), where, "end"),
        all_day=bool(item.get("all_day", False)),
        location=item.get("location"),
        assigned_to=item.get("assigned_to"),
    )


def parse_instance(item: dict, index: int) -> ActionableInstance:
    where = f"Instance {index}"
    missing = _missing(item, _REQUIRED_INSTANCE_FIELDS)
    if missing:
        raise ValueError(f"{where}: missing required fields {missing}")

    entity_type = str(item["entity_type"]).strip()
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"{where}: invalid entity_type '{entity_type}'")
    status = str(item["status"]).strip()
    if status not in STATUSES:
        raise ValueError(f"{where}: invalid status '{status}'")
    try:
        day = date.fromisoformat(str(item["date"]))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"{where}: malformed date") from exc

    deferred_to = _timestamp(item.get("deferred_to"), where, "deferred_to")
    if status == "deferred" and deferred_to is None:
        raise ValueError(f"{where}: deferred without deferred_to")

    return ActionableInstance(
        entity_type=entity_type,
        entity_id=str(item["entity_id"]).strip(),
        date=day,
        status=status,
        deferred_to=deferred_to,
    )


def parse_instances(payload: list) -> list[ActionableInstance]:
    """Parse override records, skipping malformed ones with a warning."""

    instances: list[ActionableInstance] = []
    for index, item in enumerate(payload, start=1):
        try:
            instances.append(parse_instance(item, index))
        except (ValueError, AttributeError) as exc:
            logger.warning("Skipping instance record: %s", exc)
    return instances


def _section(payload: dict, name: str) -> list:
    value = payload.get(name, [])
    if not isinstance(value, list):
        raise ValueError(f"'{name}' must be a list of objects")
    return value


def parse_payload(payload) -> DayInputs:
    if not isinstance(payload, dict):
        raise ValueError("JSON payload must be an object with tasks, routines, events and instances")

    return DayInputs(
        tasks=[_parse_task(item, i) for i, item in enumerate(_section(payload, "tasks"), start=1)],
        routines=[_parse_routine(item, i) for i, item in enumerate(_section(payload, "routines"), start=1)],
        events=[_parse_event(item, i) for i, item in enumerate(_section(payload, "events"), start=1)],
        instances=parse_instances(_section(payload, "instances")),
    )


def parse(file_path: str) -> DayInputs:
    """Parse a JSON day snapshot file."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    return parse_payload(payload)


def _dump_item(item: TimelineItem) -> dict:
    return {
        "id": item.id,
        "type": item.type,
        "title": item.title,
        "start_time": item.start_time.isoformat() if item.start_time else None,
        "end_time": item.end_time.isoformat() if item.end_time else None,
        "all_day": item.all_day,
        "completed": item.completed,
        "skipped": item.skipped,
        "deferred_from": item.deferred_from.isoformat() if item.deferred_from else None,
        "assigned_to": item.assigned_to,
    }


def dump_sections(sections: DaySections) -> dict:
    """JSON-ready mapping of section name to items."""

    return {name: [_dump_item(item) for item in items] for name, items in sections.as_dict().items()}
