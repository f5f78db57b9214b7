"""Core data schema for the daily agenda engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import NamedTuple, Optional

ENTITY_TYPES = ("task", "routine", "calendar_event")
STATUSES = ("pending", "completed", "skipped", "deferred")
PATTERN_TYPES = ("daily", "weekly", "monthly")
SECTION_NAMES = ("allday", "morning", "afternoon", "evening", "unscheduled")

# override entity type behind each timeline item type
ENTITY_TYPE_FOR_ITEM = {"task": "task", "routine": "routine", "event": "calendar_event"}


@dataclass(frozen=True)
class RecurrencePattern:
    """Recurrence rule of a routine: daily, weekly by day code or monthly by day."""

    type: str
    days: tuple[str, ...] = ()
    day_of_month: Optional[int] = None


@dataclass
class Task:
    """One-off actionable item owned by the task store."""

    id: str
    title: str
    completed: bool = False
    scheduled_for: Optional[datetime] = None
    is_all_day: bool = False
    deferred_until: Optional[date] = None
    category: Optional[str] = None
    assigned_to: Optional[str] = None


@dataclass
class RoutineDefinition:
    """Recurring template owned by the routine store."""

    id: str
    name: str
    recurrence_pattern: Optional[RecurrencePattern]
    time_of_day: Optional[str] = None
    assigned_to: Optional[str] = None
    show_on_timeline: bool = True
    visibility: str = "active"
    description: Optional[str] = None


@dataclass
class CalendarEvent:
    """Read-only projection of an external calendar event."""

    id: str
    title: str
    start: datetime
    end: Optional[datetime] = None
    all_day: bool = False
    location: Optional[str] = None
    assigned_to: Optional[str] = None


class InstanceKey(NamedTuple):
    """Identity of an override record: one per entity per calendar day."""

    entity_type: str
    entity_id: str
    date: date

    def to_string(self) -> str:
        return f"{self.entity_id}_{self.date.isoformat()}"

    @classmethod
    def from_string(cls, entity_type: str, value: str) -> "InstanceKey":
        entity_id, sep, day = value.rpartition("_")
        if not sep or not entity_id:
            raise ValueError(f"malformed instance key '{value}'")
        try:
            parsed = date.fromisoformat(day)
        except ValueError as exc:
            raise ValueError(f"malformed instance key '{value}'") from exc
        return cls(entity_type, entity_id, parsed)


@dataclass(frozen=True)
class ActionableInstance:
    """Override record for a single occurrence. Absence means ``pending``."""

    entity_type: str
    entity_id: str
    date: date
    status: str = "pending"
    deferred_to: Optional[datetime] = None

    @property
    def key(self) -> InstanceKey:
        return InstanceKey(self.entity_type, self.entity_id, self.date)

    @property
    def instance_key(self) -> str:
        return self.key.to_string()


@dataclass(frozen=True)
class TimelineItem:
    """Common shape of one resolved occurrence on the agenda."""

    id: str
    entity_id: str
    title: str
    type: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    all_day: bool = False
    completed: bool = False
    skipped: bool = False
    deferred_from: Optional[date] = None
    assigned_to: Optional[str] = None


@dataclass
class DaySections:
    """Agenda of one date grouped into fixed time buckets."""

    allday: list[TimelineItem] = field(default_factory=list)
    morning: list[TimelineItem] = field(default_factory=list)
    afternoon: list[TimelineItem] = field(default_factory=list)
    evening: list[TimelineItem] = field(default_factory=list)
    unscheduled: list[TimelineItem] = field(default_factory=list)

    section_names = SECTION_NAMES

    def as_dict(self) -> dict[str, list[TimelineItem]]:
        return {name: getattr(self, name) for name in SECTION_NAMES}

    def all_items(self) -> list[TimelineItem]:
        return [item for name in SECTION_NAMES for item in getattr(self, name)]

    def find(self, item_id: str) -> Optional[tuple[str, TimelineItem]]:
        for name in SECTION_NAMES:
            for item in getattr(self, name):
                if item.id == item_id:
                    return name, item
        return None


@dataclass
class DayInputs:
    """Everything the aggregator needs for one date."""

    tasks: list[Task] = field(default_factory=list)
    routines: list[RoutineDefinition] = field(default_factory=list)
    events: list[CalendarEvent] = field(default_factory=list)
    instances: list[ActionableInstance] = field(default_factory=list)
