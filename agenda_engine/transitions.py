"""Status transitions for single occurrences.

Every action upserts at most one override record keyed by
``(entity_type, entity_id, date)``. Writes are last-write-wins; callers
re-fetch the affected dates before aggregating again.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from agenda_engine.dates import day_of, same_day, to_local_naive
from agenda_engine.overrides import is_valid_record
from agenda_engine.schema import ENTITY_TYPES, ActionableInstance, InstanceKey
from agenda_engine.stores import InstanceStore, TaskStore

logger = logging.getLogger(__name__)

APPLY = "apply"
NOOP = "noop"

# current status -> action -> verdict; missing pairs are rejected
TRANSITIONS: dict[str, dict[str, str]] = {
    "pending": {"complete": APPLY, "undo_complete": NOOP, "skip": APPLY, "defer": APPLY, "undo_defer": NOOP},
    "completed": {"complete": NOOP, "undo_complete": APPLY},
    "skipped": {"complete": APPLY, "skip": NOOP, "defer": APPLY},
    "deferred": {"complete": APPLY, "skip": APPLY, "defer": APPLY, "undo_defer": APPLY},
}


class InvalidTransitionError(ValueError):
    """Raised when an action is not allowed from the occurrence's current status."""


def _retime(current: Optional[ActionableInstance]) -> Optional[datetime]:
    # only a target on the record's own day survives completion
    if current is not None and current.status != "skipped" and same_day(current.deferred_to, current.date):
        return to_local_naive(current.deferred_to)
    return None


def plan_transition(
    current: Optional[ActionableInstance],
    key: InstanceKey,
    action: str,
    deferred_to: Optional[datetime] = None,
) -> tuple[ActionableInstance, bool]:
    """Compute the record an action produces.

    Returns ``(record, changed)``; when ``changed`` is False nothing needs to
    be written and ``record`` is the current state.
    """

    if key.entity_type not in ENTITY_TYPES:
        raise ValueError(f"unknown entity type '{key.entity_type}'")
    if current is not None and not is_valid_record(current):
        current = None
    status = current.status if current is not None else "pending"
    verdict = TRANSITIONS[status].get(action)
    if verdict is None:
        raise InvalidTransitionError(f"cannot {action} {key.to_string()}: occurrence is {status}")

    unchanged = current if current is not None else ActionableInstance(key.entity_type, key.entity_id, key.date)
    if verdict == NOOP:
        return unchanged, False

    if action == "complete":
        record = ActionableInstance(*key, status="completed", deferred_to=_retime(current))
    elif action == "undo_complete":
        record = ActionableInstance(*key, status="pending", deferred_to=_retime(current))
    elif action == "skip":
        record = ActionableInstance(*key, status="skipped")
    elif action == "undo_defer":
        record = ActionableInstance(*key, status="pending")
    elif action == "defer":
        if deferred_to is None:
            raise ValueError("defer needs a target date and time")
        record = ActionableInstance(*key, status="deferred", deferred_to=to_local_naive(deferred_to))
    else:
        raise InvalidTransitionError(f"unknown action '{action}'")
    return record, record != current


class StatusTransition:
    """Mutation surface for occurrence status, backed by an instance store."""

    def __init__(self, instances: InstanceStore, tasks: Optional[TaskStore] = None):
        self._instances = instances
        self._tasks = tasks

    async def _current(self, key: InstanceKey) -> Optional[ActionableInstance]:
        found = None
        for record in await self._instances.list_instances_for_date(key.date):
            if record.key == key:
                found = record
        return found

    async def _write(self, key: InstanceKey, action: str, deferred_to: Optional[datetime] = None) -> ActionableInstance:
        current = await self._current(key)
        record, changed = plan_transition(current, key, action, deferred_to)
        if changed:
            await self._instances.upsert_instance(record)
            logger.info("%s %s -> %s", action, record.instance_key, record.status)
        return record

    async def _set_task_completed(self, entity_id: str, completed: bool) -> None:
        if self._tasks is None:
            raise ValueError("task transitions need a task store")
        await self._tasks.set_completed(entity_id, completed)

    async def complete(self, entity_type: str, entity_id: str, day: date) -> ActionableInstance:
        record = await self._write(InstanceKey(entity_type, entity_id, day_of(day)), "complete")
        if entity_type == "task":
            await self._set_task_completed(entity_id, True)
        return record

    async def undo_complete(self, entity_type: str, entity_id: str, day: date) -> ActionableInstance:
        record = await self._write(InstanceKey(entity_type, entity_id, day_of(day)), "undo_complete")
        if entity_type == "task":
            await self._set_task_completed(entity_id, False)
        return record

    async def skip(self, entity_type: str, entity_id: str, day: date) -> ActionableInstance:
        return await self._write(InstanceKey(entity_type, entity_id, day_of(day)), "skip")

    async def defer(
        self, entity_type: str, entity_id: str, from_date: date, to_datetime: datetime
    ) -> ActionableInstance:
        """Move the occurrence native to ``from_date``.

        The record stays keyed by ``from_date``; whether the target is a
        retime or a move is decided when a date is resolved.
        """

        return await self._write(InstanceKey(entity_type, entity_id, day_of(from_date)), "defer", to_datetime)

    async def undo_defer(self, entity_type: str, entity_id: str, day: date) -> ActionableInstance:
        return await self._write(InstanceKey(entity_type, entity_id, day_of(day)), "undo_defer")

    async def reschedule(
        self, entity_type: str, entity_id: str, from_date: date, to_datetime: datetime
    ) -> ActionableInstance:
        """Retime within ``from_date`` or move to another day."""

        key = InstanceKey(entity_type, entity_id, day_of(from_date))
        if not same_day(to_datetime, key.date):
            return await self._write(key, "defer", to_datetime)

        current = await self._current(key)
        # validates against the defer row of the table
        plan_transition(current, key, "defer", to_datetime)
        record = ActionableInstance(*key, status="pending", deferred_to=to_local_naive(to_datetime))
        if record != current:
            await self._instances.upsert_instance(record)
            logger.info("retime %s -> %s", record.instance_key, record.deferred_to)
        return record
