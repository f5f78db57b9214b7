"""In-memory override index built once per viewed date."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Optional

from agenda_engine.dates import same_day
from agenda_engine.schema import ENTITY_TYPES, STATUSES, ActionableInstance

logger = logging.getLogger(__name__)


def is_valid_record(record: ActionableInstance) -> bool:
    """Records that fail this check are treated as if they did not exist."""

    if record.entity_type not in ENTITY_TYPES or record.status not in STATUSES:
        return False
    if record.status == "deferred" and record.deferred_to is None:
        return False
    return True


class InstanceOverrideIndex:
    """Lookup of override records by ``(entity_type, entity_id)``.

    Later records replace earlier ones for the same entity, matching the
    upsert semantics of the instance store.
    """

    def __init__(self, records: dict[tuple[str, str], ActionableInstance], day: date):
        self._records = records
        self.date = day

    @classmethod
    def build(
        cls,
        raw: Iterable[ActionableInstance],
        day: date,
        predicate: Callable[[ActionableInstance], bool],
    ) -> "InstanceOverrideIndex":
        records: dict[tuple[str, str], ActionableInstance] = {}
        for record in raw:
            if is_valid_record(record) and predicate(record):
                records[(record.entity_type, record.entity_id)] = record
        return cls(records, day)

    @classmethod
    def for_date(cls, raw: Iterable[ActionableInstance], day: date) -> "InstanceOverrideIndex":
        """Index of the records that belong to ``day`` itself."""

        return cls.build(raw, day, lambda record: record.date == day)

    @classmethod
    def deferred_onto(cls, raw: Iterable[ActionableInstance], day: date) -> "InstanceOverrideIndex":
        """Index of deferred records whose target lands on ``day``."""

        return cls.build(
            raw,
            day,
            lambda record: record.status == "deferred" and same_day(record.deferred_to, day),
        )

    def get(self, entity_type: str, entity_id: str) -> Optional[ActionableInstance]:
        return self._records.get((entity_type, entity_id))

    def status(self, entity_type: str, entity_id: str) -> str:
        record = self.get(entity_type, entity_id)
        return record.status if record is not None else "pending"

    def entries(self, entity_type: str) -> list[ActionableInstance]:
        """Records of one entity type in first-insertion order."""

        return [record for (kind, _), record in self._records.items() if kind == entity_type]

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InstanceOverrideIndex):
            return NotImplemented
        return self.date == other.date and self._records == other._records


def build_indexes(
    raw: Iterable[ActionableInstance], day: date
) -> tuple[InstanceOverrideIndex, InstanceOverrideIndex]:
    """Build the viewed-date index and the deferred-onto index from one list."""

    records = list(raw)
    valid = [record for record in records if is_valid_record(record)]
    if len(valid) != len(records):
        logger.warning("Ignored %d malformed instance records for %s", len(records) - len(valid), day)
    records = valid
    native = InstanceOverrideIndex.for_date(records, day)
    incoming = InstanceOverrideIndex.deferred_onto(records, day)
    logger.debug("Indexed %d native and %d deferred-in records for %s", len(native), len(incoming), day)
    return native, incoming
