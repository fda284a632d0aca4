"""Command line entry point printing clinic views as JSON."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Callable, List, Optional, TextIO

if __package__ is None or __package__ == "":  # pragma: no cover - runtime safety for script execution
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from records import ResourceStore
from records.seed import build_seed_store
from views import SortState, patient_table, patient_timeline
from views.export import agenda_rows, calendar_payload, to_primitive

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def execute_with_logging(task_name: str, action: Callable[[], object]) -> object:
    """Run ``action`` while emitting start and completion log records."""

    start_time = _utc_now()
    status = "success"
    try:
        return action()
    except Exception:
        status = "failed"
        logger.exception("Task %s failed", task_name)
        raise
    finally:
        elapsed = (_utc_now() - start_time).total_seconds()
        logger.info("Task %s finished with status=%s in %.3fs", task_name, status, elapsed)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Dates must be ISO formatted (YYYY-MM-DD): {value!r}") from exc


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clinic chart views")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    patients = subparsers.add_parser("patients", help="List patients")
    patients.add_argument("--search", default="", help="Filter by name or identifier")
    patients.add_argument("--sort", default="name", choices=("name", "identifier", "birth_date"))
    patients.add_argument("--direction", default="asc", choices=("asc", "desc"))

    agenda = subparsers.add_parser("agenda", help="Appointments for one day")
    agenda.add_argument("--date", type=_parse_date, default=None)

    calendar = subparsers.add_parser("calendar", help="Month grid with appointment ids")
    calendar.add_argument("--date", type=_parse_date, default=None)

    timeline = subparsers.add_parser("timeline", help="Clinical timeline for a patient")
    timeline.add_argument("patient_id")

    return parser.parse_args(argv)


def run_command(args: argparse.Namespace, store: ResourceStore) -> object:
    snapshot = store.snapshot
    target_date = getattr(args, "date", None) or date.today()
    if args.command == "patients":
        sort = SortState(column=args.sort, direction=args.direction)
        return to_primitive(patient_table(snapshot, args.search, sort))
    if args.command == "agenda":
        return agenda_rows(snapshot, target_date)
    if args.command == "calendar":
        return calendar_payload(snapshot, target_date)
    if args.command == "timeline":
        return to_primitive(patient_timeline(snapshot, args.patient_id))
    raise ValueError(f"Unknown command {args.command!r}")


def main(
    argv: Optional[List[str]] = None,
    *,
    store: Optional[ResourceStore] = None,
    stream: Optional[TextIO] = None,
) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    store = store or build_seed_store()
    if stream is None:
        stream = sys.stdout
    result = execute_with_logging(args.command, lambda: run_command(args, store))
    stream.write(json.dumps(result, indent=2))
    stream.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
