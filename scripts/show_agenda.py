"""Print the agenda of one date from a JSON day snapshot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from agenda_engine.adapters import csv_adapter, json_adapter
from agenda_engine.aggregator import aggregate
from agenda_engine.config import load_config


def main() -> None:
    parser = argparse.ArgumentParser(description="Show the agenda for one date")
    parser.add_argument("--data", required=True, help="Path to a JSON day snapshot")
    parser.add_argument("--date", required=True, help="Viewed date, YYYY-MM-DD")
    parser.add_argument("--instances", help="Optional CSV of override records to add")
    parser.add_argument("--config", help="Path to a TOML config file")
    parser.add_argument("--include-skipped", action="store_true", help="Keep skipped occurrences, flagged")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        viewed = date.fromisoformat(args.date)
    except ValueError:
        parser.error(f"invalid --date '{args.date}', expected YYYY-MM-DD")

    inputs = json_adapter.parse(args.data)
    if args.instances:
        inputs.instances.extend(csv_adapter.parse(args.instances))

    sections = aggregate(
        inputs.tasks,
        inputs.routines,
        inputs.events,
        viewed,
        inputs.instances,
        config=load_config(args.config),
        include_skipped=args.include_skipped,
    )
    print(json.dumps({"date": viewed.isoformat(), "sections": json_adapter.dump_sections(sections)}, indent=2))


if __name__ == "__main__":
    main()
