import json
from datetime import date, datetime
from pathlib import Path

import pytest

from agenda_engine.adapters import csv_adapter, json_adapter
from agenda_engine.aggregator import aggregate
from agenda_engine.schema import ActionableInstance, InstanceKey

SAMPLE_DAY = Path(__file__).resolve().parents[1] / "examples" / "sample_day.json"
TUESDAY = date(2024, 3, 5)


def test_instance_key_round_trips_ids_with_underscores():
    key = InstanceKey("routine", "take_out_trash", TUESDAY)
    assert key.to_string() == "take_out_trash_2024-03-05"
    assert InstanceKey.from_string("routine", key.to_string()) == key


@pytest.mark.parametrize("value", ["trash", "_2024-03-05", "trash_2024-13-40"])
def test_instance_key_rejects_malformed_strings(value):
    with pytest.raises(ValueError):
        InstanceKey.from_string("routine", value)


def test_json_sample_day_builds_agenda():
    inputs = json_adapter.parse(str(SAMPLE_DAY))
    assert len(inputs.tasks) == 3
    assert len(inputs.instances) == 2

    sections = aggregate(inputs.tasks, inputs.routines, inputs.events, TUESDAY, inputs.instances)
    assert [item.title for item in sections.morning] == ["Trash day", "Standup", "Call the dentist"]
    assert [item.id for item in sections.evening] == ["event-e-soccer", "routine-r-meds"]
    assert sections.find("event-e-soccer")[1].start_time == datetime(2024, 3, 5, 17, 0)
    assert sections.find("routine-r-rent")[1].completed
    assert sections.find("routine-r-broken") is None
    assert {item.id for item in sections.allday} == {"task-t-permission", "event-e-holiday"}


def test_json_missing_fields_raise():
    with pytest.raises(ValueError, match="Task 1: missing required fields"):
        json_adapter.parse_payload({"tasks": [{"id": "t1"}]})
    with pytest.raises(ValueError, match="Event 1: malformed start"):
        json_adapter.parse_payload({"events": [{"id": "e1", "title": "x", "start": "tuesday"}]})
    with pytest.raises(ValueError):
        json_adapter.parse_payload([])


def test_json_bad_instances_are_skipped(caplog):
    instances = json_adapter.parse_instances(
        [
            {"entity_type": "routine", "entity_id": "r1", "date": "2024-03-05", "status": "deferred"},
            {"entity_type": "routine", "entity_id": "r2", "date": "2024-03-05", "status": "done"},
            {"entity_type": "routine", "entity_id": "r3", "date": "2024-03-05", "status": "skipped"},
        ]
    )
    assert instances == [ActionableInstance("routine", "r3", TUESDAY, "skipped")]
    assert "Instance 1: deferred without deferred_to" in caplog.text
    assert "Instance 2: invalid status 'done'" in caplog.text


def test_dump_sections_is_json_ready():
    inputs = json_adapter.parse(str(SAMPLE_DAY))
    sections = aggregate(inputs.tasks, inputs.routines, inputs.events, TUESDAY, inputs.instances)
    dumped = json.loads(json.dumps(json_adapter.dump_sections(sections)))
    assert list(dumped) == ["allday", "morning", "afternoon", "evening", "unscheduled"]
    assert dumped["morning"][0]["start_time"] == "2024-03-05T07:30:00"


def test_csv_write_then_parse(tmp_path):
    path = tmp_path / "instances.csv"
    records = [
        ActionableInstance("routine", "take_out_trash", TUESDAY, "deferred", datetime(2024, 3, 6, 8, 0)),
        ActionableInstance("calendar_event", "e1", TUESDAY, "skipped"),
    ]
    csv_adapter.write(str(path), records)
    assert csv_adapter.parse(str(path)) == records


def test_csv_malformed_rows_are_skipped(tmp_path, caplog):
    path = tmp_path / "instances.csv"
    path.write_text(
        "entity_type,instance_key,status,deferred_to\n"
        "routine,trash_2024-03-05,completed,\n"
        "routine,trash,completed,\n"
        "note,n1_2024-03-05,completed,\n"
        "routine,meds_2024-03-05,deferred,\n",
        encoding="utf-8",
    )
    assert csv_adapter.parse(str(path)) == [ActionableInstance("routine", "trash", TUESDAY, "completed")]
    assert "Row 3: malformed instance key 'trash'" in caplog.text
    assert "Row 4: invalid entity_type 'note'" in caplog.text
    assert "Row 5: deferred without deferred_to" in caplog.text


def test_csv_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    assert csv_adapter.parse(str(path)) == []
