"""CSV adapter for persisted override records."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable

from agenda_engine.dates import parse_timestamp
from agenda_engine.schema import ENTITY_TYPES, STATUSES, ActionableInstance, InstanceKey

logger = logging.getLogger(__name__)

FIELDNAMES = ["entity_type", "instance_key", "status", "deferred_to"]
_REQUIRED_FIELDS = {"entity_type", "instance_key", "status"}


def _parse_row(row: dict, row_number: int) -> ActionableInstance:
    missing = sorted(field for field in _REQUIRED_FIELDS if not row.get(field))
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")

    entity_type = row["entity_type"].strip()
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Row {row_number}: invalid entity_type '{entity_type}'")

    status = row["status"].strip()
    if status not in STATUSES:
        raise ValueError(f"Row {row_number}: invalid status '{status}'")

    try:
        key = InstanceKey.from_string(entity_type, row["instance_key"].strip())
    except ValueError as exc:
        raise ValueError(f"Row {row_number}: {exc}") from exc

    deferred_raw = row.get("deferred_to")
    deferred_to = None
    if deferred_raw not in (None, ""):
        try:
            deferred_to = parse_timestamp(deferred_raw)
        except Exception as exc:  # noqa: BLE001
            raise ValueError(f"Row {row_number}: malformed deferred_to") from exc
    if status == "deferred" and deferred_to is None:
        raise ValueError(f"Row {row_number}: deferred without deferred_to")

    return ActionableInstance(*key, status=status, deferred_to=deferred_to)


def parse(file_path: str) -> list[ActionableInstance]:
    """Parse a CSV file of override records.

    Malformed rows are skipped with a warning; their occurrences read as
    pending.
    """

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        instances: list[ActionableInstance] = []
        for row_number, row in enumerate(reader, start=2):
            try:
                instances.append(_parse_row(row, row_number))
            except ValueError as exc:
                logger.warning("Skipping override record: %s", exc)
        return instances


def write(file_path: str, instances: Iterable[ActionableInstance]) -> None:
    """Write override records in the format ``parse`` reads."""

    with open(file_path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)
        writer.writeheader()
        for record in instances:
            writer.writerow(
                {
                    "entity_type": record.entity_type,
                    "instance_key": record.instance_key,
                    "status": record.status,
                    "deferred_to": record.deferred_to.isoformat() if record.deferred_to else "",
                }
            )
