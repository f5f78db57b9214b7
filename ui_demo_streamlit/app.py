"""Streamlit demo UI for agenda-engine."""

from __future__ import annotations

import asyncio
import tempfile
from datetime import date, datetime, time, timedelta
from typing import Any

from agenda_engine.adapters import json_adapter
from agenda_engine.aggregator import filter_by_assignee
from agenda_engine.config import load_config
from agenda_engine.display import annotate_now
from agenda_engine.schema import ENTITY_TYPE_FOR_ITEM, DayInputs, DaySections, TimelineItem
from agenda_engine.service import load_agenda
from agenda_engine.stores import InMemoryCalendar, InMemoryInstanceStore, InMemoryRoutineStore, InMemoryTaskStore
from agenda_engine.transitions import InvalidTransitionError, StatusTransition

DEMO_SNAPSHOT = "examples/sample_day.json"
SECTION_TITLES = {
    "allday": "All day",
    "morning": "Morning",
    "afternoon": "Afternoon",
    "evening": "Evening",
    "unscheduled": "Unscheduled",
}


def _parse_uploaded(uploaded_file) -> DayInputs:
    with tempfile.NamedTemporaryFile(delete=False, suffix=".json") as handle:
        handle.write(uploaded_file.getbuffer())
        temp_path = handle.name
    return json_adapter.parse(temp_path)


def build_stores(inputs: DayInputs) -> dict[str, Any]:
    return {
        "tasks": InMemoryTaskStore(inputs.tasks),
        "routines": InMemoryRoutineStore(inputs.routines),
        "calendar": InMemoryCalendar(inputs.events),
        "instances": InMemoryInstanceStore(inputs.instances),
    }


def run_action(stores: dict[str, Any], item: TimelineItem, action: str, viewed: date) -> None:
    """Apply a button press to the in-memory stores."""

    transitions = StatusTransition(stores["instances"], stores["tasks"])
    entity_type = ENTITY_TYPE_FOR_ITEM[item.type]
    native_day = item.deferred_from or viewed
    if action == "complete":
        coro = transitions.complete(entity_type, item.entity_id, viewed)
    elif action == "undo":
        coro = transitions.undo_complete(entity_type, item.entity_id, viewed)
    elif action == "skip":
        coro = transitions.skip(entity_type, item.entity_id, viewed)
    elif action == "tomorrow":
        target = datetime.combine(viewed + timedelta(days=1), time(9, 0))
        coro = transitions.defer(entity_type, item.entity_id, native_day, target)
    else:
        raise ValueError(f"unknown action '{action}'")
    asyncio.run(coro)



def press(stores: dict[str, Any], item: TimelineItem, action: str, viewed: date, state) -> None:
    """Run a button action; a rejected one leaves a notice for the next run."""

    try:
        run_action(stores, item, action, viewed)
    except InvalidTransitionError as exc:
        state["notice"] = str(exc)


def _fmt_item(item: TimelineItem, flag: str) -> str:
    when = f"{item.start_time:%H:%M}" if item.start_time and not item.all_day else ""
    text = f"{when} **{item.title}** · {item.type}"
    if item.deferred_from:
        text += f" · moved from {item.deferred_from:%a %d %b}"
    if flag in ("now", "soon"):
        text += f" · {flag}"
    return f"~~{text}~~" if item.completed else text


def main() -> None:
    import streamlit as st

    st.set_page_config(page_title="Agenda Engine Demo", layout="wide")
    st.title("Agenda Engine — Streamlit Demo")
    config = load_config()

    with st.sidebar:
        st.header("Controls")
        uploaded = st.file_uploader("Upload day snapshot", type=["json"])
        viewed = st.date_input("Viewed date", value=date(2024, 3, 5))
        assignees = st.text_input("Only show assignees (comma separated)", value="")
        reset = st.button("Reload snapshot")

    try:
        if reset or "stores" not in st.session_state:
            inputs = _parse_uploaded(uploaded) if uploaded is not None else json_adapter.parse(DEMO_SNAPSHOT)
            st.session_state["stores"] = build_stores(inputs)
    except ValueError as exc:
        st.error(f"Input error: {exc}")
        return

    stores = st.session_state["stores"]
    notice = st.session_state.pop("notice", None)
    if notice:
        st.warning(notice)

    sections: DaySections = asyncio.run(load_agenda(viewed, config=config, **stores))
    wanted = [name.strip() for name in assignees.split(",") if name.strip()]
    if wanted:
        sections = filter_by_assignee(sections, wanted)
    flags = annotate_now(sections, soon_hours=config.display.soon_hours)

    for name, items in sections.as_dict().items():
        st.subheader(SECTION_TITLES[name])
        if not items:
            st.caption("Nothing here.")
            continue
        for item in items:
            text_col, *button_cols = st.columns([6, 1, 1, 1])
            text_col.markdown(_fmt_item(item, flags[item.id]))
            actions = [("undo", "Undo")] if item.completed else [("complete", "Done"), ("skip", "Skip")]
            if not item.completed:
                actions.append(("tomorrow", "Tomorrow"))
            for column, (action, label) in zip(button_cols, actions):
                if column.button(label, key=f"{action}-{item.id}-{viewed}"):
                    press(stores, item, action, viewed, st.session_state)
                    st.rerun()


if __name__ == "__main__":
    main()
