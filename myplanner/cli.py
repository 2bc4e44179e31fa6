"""
CLI (Command Line Interface).

Quick terminal commands for the weekly course schedule, e.g.:

    myplanner week [--date 2025-12-10] [--public]
    myplanner status <course_id> [--date ...]
    myplanner toggle <course_id> [--date ...]
    myplanner add-course <course_id> --day 1 --start 09:00 --end 12:00 --type odd-onsite
    myplanner edit-course <course_id> [--room B-101] [--type even-onsite] ...
    myplanner remove-course <course_id>
    myplanner export <file.ics> [--date ...] [--public]

Note:
- Data is read from the local JSON file (--data / MYPLANNER_DATA), or from
  the cloud store when the MYPLANNER_FIRESTORE_* variables are set
- Output is plain text, except the week grid which is a rich table
"""

from __future__ import annotations

import argparse
import logging
from datetime import date

import requests
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from myplanner.config import firestore_settings
from myplanner.export_ics import export_week_to_ics
from myplanner.firestore import FirestoreError, FirestoreRepository
from myplanner.model import ONLINE, ONSITE, SCHEDULE_TYPES, Course
from myplanner.resolver import as_date, resolve_status, toggle_override
from myplanner.storage import JsonFileRepository, PlannerFileError, PlannerRepository
from myplanner.week import WeekView, build_public_week, build_week

LOG = logging.getLogger(__name__)

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
STATUS_STYLE = {ONSITE: "green", ONLINE: "cyan"}

# Course attributes edit-course can change
EDITABLE_FIELDS = (
    "day_of_week",
    "start_time",
    "end_time",
    "schedule_type",
    "name",
    "code",
    "room",
    "p_room",
    "teacher",
    "color",
)


def _repository(args: argparse.Namespace) -> PlannerRepository:
    """
    Pick the storage backend: an explicit --data path wins, then the cloud
    store if configured, then the default local file.
    """
    if args.data:
        return JsonFileRepository(args.data)

    settings = firestore_settings()
    if settings is not None:
        LOG.debug("Using Firestore project %s", settings.project_id)
        return FirestoreRepository(settings.project_id, settings.user_id, settings.id_token)

    return JsonFileRepository()


def _target_date(args: argparse.Namespace) -> date:
    """
    Date given with --date, or today. Raises ValueError on bad input.
    """
    raw = getattr(args, "date", None)
    if not raw:
        return date.today()
    return as_date(raw)


def _print_week(view: WeekView, public: bool) -> None:
    title = f"Week of {view.week_start.isoformat()} ({view.parity} week)"
    if public:
        title += " - shared view"

    table = Table(title=title)
    table.add_column("Day")
    table.add_column("Time")
    table.add_column("Course")
    table.add_column("Room")
    table.add_column("Status")

    for day in view.days:
        label = f"{DAY_NAMES[(day.date.weekday() + 1) % 7]} {day.date.isoformat()}"
        if not day.courses:
            table.add_row(label, "", "(no classes)", "", "")
            continue
        for i, entry in enumerate(day.courses):
            c = entry.course
            status = entry.status + (" *" if entry.is_overridden else "")
            style = STATUS_STYLE.get(entry.status, "red")
            table.add_row(
                label if i == 0 else "",
                f"{c.start_time}-{c.end_time}",
                escape(f"{c.code} {c.name}".strip() or c.id),
                escape(c.room or c.p_room),
                f"[{style}]{escape(status)}[/{style}]",
            )

    console = Console()
    console.print(table)
    if any(e.is_overridden for e in view.entries()):
        console.print("* changed manually for this week")


def _cmd_week(args: argparse.Namespace, repo: PlannerRepository) -> int:
    """
    Print the Monday-Friday grid with resolved statuses.
    """
    try:
        target = _target_date(args)
    except ValueError as exc:
        print(str(exc))
        return 1

    state = repo.load()
    if args.public:
        view = build_public_week(state.courses, target)
    else:
        view = build_week(state.courses, target, state.overrides)
    _print_week(view, args.public)
    return 0


def _cmd_status(args: argparse.Namespace, repo: PlannerRepository) -> int:
    try:
        target = _target_date(args)
    except ValueError as exc:
        print(str(exc))
        return 1

    state = repo.load()
    course = state.course_by_id(args.course_id.strip())
    if course is None:
        print(f"Unknown course: {args.course_id}")
        return 1

    res = resolve_status(course, target, state.overrides)
    suffix = " (override)" if res.is_overridden else ""
    print(f"{course.id} on {target.isoformat()}: {res.status}{suffix}")
    return 0


def _cmd_toggle(args: argparse.Namespace, repo: PlannerRepository) -> int:
    """
    Flip a course between online and onsite for one week and persist it.
    """
    try:
        target = _target_date(args)
    except ValueError as exc:
        print(str(exc))
        return 1

    state = repo.load()
    course = state.course_by_id(args.course_id.strip())
    if course is None:
        print(f"Unknown course: {args.course_id}")
        return 1

    try:
        state.overrides = toggle_override(course, target, state.overrides)
    except ValueError as exc:
        print(str(exc))
        return 1

    repo.save(state)
    res = resolve_status(course, target, state.overrides)
    suffix = " (override)" if res.is_overridden else " (back to default)"
    print(f"{course.id} for week of {target.isoformat()}: {res.status}{suffix}")
    return 0


def _cmd_add_course(args: argparse.Namespace, repo: PlannerRepository) -> int:
    cid = (args.course_id or "").strip()
    if not cid:
        print("Please provide a course_id.")
        return 1

    state = repo.load()
    if state.course_by_id(cid) is not None:
        print(f"Course already exists: {cid}")
        return 1

    try:
        course = Course(
            id=cid,
            day_of_week=args.day,
            start_time=args.start,
            end_time=args.end,
            schedule_type=args.type,
            name=args.name,
            code=args.code,
            room=args.room,
            p_room=args.p_room,
            teacher=args.teacher,
            color=args.color,
        )
    except ValueError as exc:
        print(str(exc))
        return 1

    state.courses.append(course)
    repo.save(state)
    print(f"Added: {cid} (courses: {len(state.courses)})")
    return 0


def _cmd_remove_course(args: argparse.Namespace, repo: PlannerRepository) -> int:
    """
    Remove a course together with its weekly overrides.
    """
    cid = (args.course_id or "").strip()
    state = repo.load()
    if not state.remove_course(cid):
        print(f"Unknown course: {cid}")
        return 1

    repo.save(state)
    print(f"Removed: {cid} (courses: {len(state.courses)})")
    return 0


def _cmd_edit_course(args: argparse.Namespace, repo: PlannerRepository) -> int:
    """
    Change fields of an existing course. Only the options given are changed.
    """
    cid = (args.course_id or "").strip()
    changes = {
        name: getattr(args, name)
        for name in EDITABLE_FIELDS
        if getattr(args, name) is not None
    }
    if not changes:
        print("Nothing to change.")
        return 1

    state = repo.load()
    try:
        course = state.update_course(cid, **changes)
    except ValueError as exc:
        print(str(exc))
        return 1
    if course is None:
        print(f"Unknown course: {cid}")
        return 1

    repo.save(state)
    print(f"Updated: {cid} ({', '.join(sorted(changes))})")
    return 0


def _cmd_export(args: argparse.Namespace, repo: PlannerRepository) -> int:
    """
    Export one resolved week into an iCalendar (.ics) file.
    """
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    try:
        target = _target_date(args)
    except ValueError as exc:
        print(str(exc))
        return 1

    state = repo.load()
    if args.public:
        view = build_public_week(state.courses, target)
    else:
        view = build_week(state.courses, target, state.overrides)

    n = export_week_to_ics(view, out_path)
    print(f"Exported {n} events to: {out_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="myplanner", description="MyPlanner CLI")
    parser.add_argument("--data", type=str, default=None, help="Planner JSON file (default: MYPLANNER_DATA)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_week = sub.add_parser("week", help="Show the weekly schedule")
    p_week.add_argument("--date", type=str, help="Any date of the week (YYYY-MM-DD), default today")
    p_week.add_argument("--public", action="store_true", help="Shared view: ignore personal overrides")

    p_status = sub.add_parser("status", help="Show online/onsite status of a course")
    p_status.add_argument("course_id", type=str)
    p_status.add_argument("--date", type=str, help="Date (YYYY-MM-DD), default today")

    p_toggle = sub.add_parser("toggle", help="Flip online/onsite for one week")
    p_toggle.add_argument("course_id", type=str)
    p_toggle.add_argument("--date", type=str, help="Any date of the week (YYYY-MM-DD), default today")

    p_add = sub.add_parser("add-course", help="Add a weekly course")
    p_add.add_argument("course_id", type=str)
    p_add.add_argument("--day", type=int, required=True, help="Day of week, 0=Sun 1=Mon ... 6=Sat")
    p_add.add_argument("--start", type=str, required=True, help="Start time HH:MM")
    p_add.add_argument("--end", type=str, required=True, help="End time HH:MM")
    p_add.add_argument("--type", type=str, required=True, choices=SCHEDULE_TYPES, help="Rotation mode")
    p_add.add_argument("--name", type=str, default="")
    p_add.add_argument("--code", type=str, default="")
    p_add.add_argument("--room", type=str, default="")
    p_add.add_argument("--p-room", type=str, default="", help="Secondary room")
    p_add.add_argument("--teacher", type=str, default="")
    p_add.add_argument("--color", type=str, default="")

    p_remove = sub.add_parser("remove-course", help="Remove a course and its overrides")
    p_remove.add_argument("course_id", type=str)

    p_edit = sub.add_parser("edit-course", help="Change fields of a course")
    p_edit.add_argument("course_id", type=str)
    p_edit.add_argument("--day", dest="day_of_week", type=int, help="Day of week, 0=Sun 1=Mon ... 6=Sat")
    p_edit.add_argument("--start", dest="start_time", type=str, help="Start time HH:MM")
    p_edit.add_argument("--end", dest="end_time", type=str, help="End time HH:MM")
    p_edit.add_argument("--type", dest="schedule_type", type=str, choices=SCHEDULE_TYPES, help="Rotation mode")
    p_edit.add_argument("--name", type=str)
    p_edit.add_argument("--code", type=str)
    p_edit.add_argument("--room", type=str)
    p_edit.add_argument("--p-room", type=str, help="Secondary room")
    p_edit.add_argument("--teacher", type=str)
    p_edit.add_argument("--color", type=str)

    p_export = sub.add_parser("export", help="Export one week to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. week.ics)")
    p_export.add_argument("--date", type=str, help="Any date of the week (YYYY-MM-DD), default today")
    p_export.add_argument("--public", action="store_true", help="Ignore personal overrides")

    return parser


COMMANDS = {
    "week": _cmd_week,
    "status": _cmd_status,
    "toggle": _cmd_toggle,
    "add-course": _cmd_add_course,
    "remove-course": _cmd_remove_course,
    "edit-course": _cmd_edit_course,
    "export": _cmd_export,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        code = handler(args, _repository(args))
    except (ValueError, PlannerFileError, FirestoreError, requests.RequestException) as exc:
        LOG.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}")
        code = 1

    raise SystemExit(code)
