"""
CLI (Command Line Interface).

Terminal commands for building a course calendar, e.g.:

    coursecal terms
    coursecal search "I&C SCI 32A" --term "2025 Fall"
    coursecal add 35870
    coursecal remove 35870
    coursecal week
    coursecal conflicts
    coursecal new "Plan B"

Note:
- catalog access lives in coursecal/websoc.py
- calendars are stored locally by coursecal/storage.py
- week/details/courses output is rendered by coursecal/render.py
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import requests
from rich.console import Console

from coursecal.conflicts import find_conflicts
from coursecal.layout import build_instances, transform_calendar_events
from coursecal.render import DAY_SHORT, format_clock, render_courses, render_details, render_week
from coursecal.storage import (
    CalendarError,
    State,
    active_events,
    add_event,
    create_calendar,
    delete_calendar,
    get_active_calendar,
    list_calendars,
    load_state,
    remove_event,
    save_state,
    set_active_calendar,
)
from coursecal.websoc import (
    WebSocError,
    fetch_term_calendars,
    find_section,
    get_terms,
    latest_soc_available,
    parse_course_query,
    search_sections,
    term_name,
)

logger = logging.getLogger(__name__)

console = Console()


def _default_term() -> str:
    """
    Term used when --term is not given: the most recently published
    schedule of classes, falling back to the first catalog term.
    """
    latest = latest_soc_available(fetch_term_calendars(), date.today())
    if latest is not None:
        return term_name(latest)

    terms = get_terms()
    if not terms:
        raise WebSocError("catalog returned no terms")
    return str(terms[0]["shortName"])


def _cmd_terms(args: argparse.Namespace) -> int:
    terms = get_terms()
    if not terms:
        print("No terms available.")
        return 0
    for t in terms:
        print(f"{t.get('shortName', '')} | {t.get('longName', '')}")
    return 0


def _cmd_search(args: argparse.Namespace, state: State) -> int:
    """
    Search sections by "DEPARTMENT NUMBER", e.g. "COMPSCI 161".
    """
    text = (args.text or "").strip()
    if not text:
        print("Please provide a search text (e.g. 'COMPSCI 161').")
        return 1

    department, course_number = parse_course_query(text)
    term = args.term or _default_term()
    sections = search_sections(term, department, course_number)

    if not sections:
        print("No results.")
        return 0

    added = {ev.section_code for ev in active_events(state)}
    print(f"{term}: {len(sections)} sections")
    current_course = None
    for ev in sections:
        course = (ev.dept_code, ev.course_number)
        if course != current_course:
            current_course = course
            print(f"\n{ev.dept_code} {ev.course_number} - {ev.course_title}")
            if ev.course_comment:
                print(ev.course_comment)
        mark = "*" if ev.section_code in added else " "
        times = ", ".join(
            "TBA"
            if m.time_is_tba or m.start_time is None or m.end_time is None
            else f"{m.days} {format_clock(m.start_time)}-{format_clock(m.end_time)}"
            for m in ev.meetings
        )
        instructors = "; ".join(ev.instructors) or "STAFF"
        print(
            f"{mark} {ev.section_code} | {ev.dept_code} {ev.course_number} {ev.section_type} "
            f"{ev.section_num} | {times or 'TBA'} | {instructors}"
        )
    return 0


def _ensure_active_calendar(state: State, name: str) -> None:
    """
    Make sure there is an active calendar to add to.
    """
    if get_active_calendar(state) is not None:
        return
    if any(cal["name"] == name for cal in list_calendars(state)):
        set_active_calendar(state, name)
    else:
        create_calendar(state, name)
        print(f"Created calendar: {name}")


def _cmd_add(args: argparse.Namespace, state: State, state_path: Optional[Path]) -> int:
    """
    Fetch a section by code and add it to the active calendar.
    """
    code = (args.section_code or "").strip()
    if not code:
        print("Please provide a section code.")
        return 1

    if any(ev.section_code == code for ev in active_events(state)):
        print(f"Already added: {code}")
        return 0

    term = args.term or _default_term()
    event = find_section(term, code)
    if event is None:
        print(f"Section {code} not found in {term}.")
        return 1

    _ensure_active_calendar(state, term)
    add_event(state, event)
    save_state(state, state_path)

    cal = get_active_calendar(state)
    print(
        f"Added: {event.dept_code} {event.course_number} {event.section_type} ({code}) "
        f"to {cal['name'] if cal else '?'}"
    )
    return 0


def _cmd_remove(args: argparse.Namespace, state: State, state_path: Optional[Path]) -> int:
    code = (args.section_code or "").strip()
    if not code:
        print("Please provide a section code.")
        return 1

    if get_active_calendar(state) is None or not remove_event(state, code):
        print(f"Not added: {code}")
        return 0

    save_state(state, state_path)
    print(f"Removed: {code}")
    return 0


def _cmd_courses(args: argparse.Namespace, state: State) -> int:
    render_courses(active_events(state), console)
    return 0


def _cmd_week(args: argparse.Namespace, state: State) -> int:
    render_week(transform_calendar_events(active_events(state)), console)
    return 0


def _cmd_details(args: argparse.Namespace, state: State) -> int:
    render_details(transform_calendar_events(active_events(state)), console)
    return 0


def _cmd_conflicts(args: argparse.Namespace, state: State) -> int:
    """
    Print all overlapping meetings of different sections.
    """
    confs = find_conflicts(build_instances(active_events(state)))
    if not confs:
        print("No conflicts found.")
        return 0

    print(f"Conflicts found: {len(confs)}")
    for a, b in confs:
        print(
            f"- {DAY_SHORT[a.weekday]} "
            f"{format_clock(a.start_time)}-{format_clock(a.end_time)} {a.dept_code} {a.course_number} "
            f"{a.section_type} ({a.section_code})  <->  "
            f"{format_clock(b.start_time)}-{format_clock(b.end_time)} {b.dept_code} {b.course_number} "
            f"{b.section_type} ({b.section_code})"
        )
    return 0


def _cmd_calendars(args: argparse.Namespace, state: State) -> int:
    calendars = list_calendars(state)
    if not calendars:
        print("No calendars yet.")
        return 0
    for cal in calendars:
        mark = "*" if cal.get("is_active") else " "
        print(f"{mark} {cal['name']} ({len(cal['events'])} sections)")
    return 0


def _cmd_new(args: argparse.Namespace, state: State, state_path: Optional[Path]) -> int:
    create_calendar(state, args.name)
    save_state(state, state_path)
    print(f"Created calendar: {args.name.strip()}")
    return 0


def _cmd_use(args: argparse.Namespace, state: State, state_path: Optional[Path]) -> int:
    set_active_calendar(state, args.name)
    save_state(state, state_path)
    print(f"Active calendar: {args.name}")
    return 0


def _cmd_delete(args: argparse.Namespace, state: State, state_path: Optional[Path]) -> int:
    if not delete_calendar(state, args.name):
        print(f"Cannot delete the active calendar: {args.name}")
        return 1
    save_state(state, state_path)
    print(f"Deleted calendar: {args.name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursecal", description="Course calendar CLI")
    parser.add_argument("--state", type=Path, default=None, help="Path of the calendars JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("terms", help="List catalog terms")

    p_search = sub.add_parser("search", help="Search sections of a course")
    p_search.add_argument("text", type=str, help="Department and course number (e.g. 'COMPSCI 161')")
    p_search.add_argument("--term", type=str, default=None, help="Term (e.g. '2025 Fall')")

    p_add = sub.add_parser("add", help="Add a section by section code")
    p_add.add_argument("section_code", type=str, help="Section code (e.g. 35870)")
    p_add.add_argument("--term", type=str, default=None, help="Term (e.g. '2025 Fall')")

    p_remove = sub.add_parser("remove", help="Remove a section by section code")
    p_remove.add_argument("section_code", type=str, help="Section code (e.g. 35870)")

    sub.add_parser("courses", help="Show added sections grouped by course")
    sub.add_parser("week", help="Show the weekly calendar grid")
    sub.add_parser("details", help="Show every scheduled meeting")
    sub.add_parser("conflicts", help="Show overlapping sections")
    sub.add_parser("calendars", help="List calendars")

    p_new = sub.add_parser("new", help="Create a calendar and make it active")
    p_new.add_argument("name", type=str)

    p_use = sub.add_parser("use", help="Switch the active calendar")
    p_use.add_argument("name", type=str)

    p_delete = sub.add_parser("delete", help="Delete an inactive calendar")
    p_delete.add_argument("name", type=str)

    return parser


def _dispatch(args: argparse.Namespace) -> int:
    state_path: Optional[Path] = args.state
    state = load_state(state_path)

    if args.command == "terms":
        return _cmd_terms(args)
    if args.command == "search":
        return _cmd_search(args, state)
    if args.command == "add":
        return _cmd_add(args, state, state_path)
    if args.command == "remove":
        return _cmd_remove(args, state, state_path)
    if args.command == "courses":
        return _cmd_courses(args, state)
    if args.command == "week":
        return _cmd_week(args, state)
    if args.command == "details":
        return _cmd_details(args, state)
    if args.command == "conflicts":
        return _cmd_conflicts(args, state)
    if args.command == "calendars":
        return _cmd_calendars(args, state)
    if args.command == "new":
        return _cmd_new(args, state, state_path)
    if args.command == "use":
        return _cmd_use(args, state, state_path)
    if args.command == "delete":
        return _cmd_delete(args, state, state_path)
    return 2


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

    try:
        code = _dispatch(args)
    except CalendarError as exc:
        print(f"Error: {exc}")
        code = 1
    except (WebSocError, requests.RequestException) as exc:
        logger.debug("catalog request failed", exc_info=True)
        print(f"Course catalog error: {exc}")
        code = 1
    except ValueError as exc:
        print(f"Error: {exc}")
        code = 1

    raise SystemExit(code)
