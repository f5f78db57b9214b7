import asyncio
from datetime import date

from agenda_engine.schema import ActionableInstance, DayInputs, RecurrencePattern, RoutineDefinition, TimelineItem
from ui_demo_streamlit.app import build_stores, press

TUESDAY = date(2024, 3, 5)


def sample_stores(records=()):
    trash = RoutineDefinition("trash", "Trash day", RecurrencePattern("weekly", days=("tue",)), "07:30")
    return build_stores(DayInputs(routines=[trash], instances=list(records)))


def trash_item(completed=False):
    return TimelineItem("routine-trash", "trash", "Trash day", "routine", completed=completed)


def test_rejected_action_leaves_notice_for_next_run():
    stores = sample_stores([ActionableInstance("routine", "trash", TUESDAY, "completed")])
    state = {}
    press(stores, trash_item(completed=True), "skip", TUESDAY, state)
    assert "cannot skip" in state["notice"]


def test_accepted_action_writes_record_without_notice():
    stores = sample_stores()
    state = {}
    press(stores, trash_item(), "complete", TUESDAY, state)
    assert state == {}
    (record,) = asyncio.run(stores["instances"].list_instances_for_date(TUESDAY))
    assert record.status == "completed"
