"""
Terminal rendering of laid-out calendar items.

Everything here consumes RenderItem lists produced by coursecal.layout;
no layout decisions are made in this module.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from coursecal.layout import GRID_END_HOUR, GRID_START_HOUR, ROW_MINUTES, WEEKDAYS
from coursecal.model import CalendarEvent, FinalExam, RenderItem, Time

DAY_NAMES = {"M": "Monday", "T": "Tuesday", "W": "Wednesday", "Th": "Thursday", "F": "Friday"}
DAY_SHORT = {"M": "Mon", "T": "Tue", "W": "Wed", "Th": "Thu", "F": "Fri"}

# palette label -> rich color name
COLOR_STYLES = {
    "blue": "blue",
    "green": "green",
    "purple": "purple",
    "pink": "pink1",
    "indigo": "slate_blue1",
    "teal": "dark_cyan",
    "orange": "orange1",
    "amber": "gold1",
    "violet": "violet",
    "cyan": "cyan",
    "emerald": "spring_green2",
    "rose": "light_pink1",
}

ROWS_PER_HOUR = 60 // ROW_MINUTES


def _meridiem(hour: int) -> str:
    return "PM" if hour >= 12 else "AM"


def _hour12(hour: int) -> int:
    return 12 if hour % 12 == 0 else hour % 12


def format_clock(time: Time) -> str:
    """
    Time(13, 5) -> "1:05 PM"
    """
    return f"{_hour12(time.hour)}:{time.minute:02d} {_meridiem(time.hour)}"


def _hour_label(hour: int) -> str:
    return f"{_hour12(hour)}{_meridiem(hour)}"


def describe_final(final_exam: Optional[FinalExam]) -> str:
    """
    Human-readable final exam line.

    Scheduled: "Mon, June 9 8:00-10:00 AM at HSLH 100A"
    Otherwise: first word of the status ("NO", "TBA").
    """
    if final_exam is None:
        return "NO"
    if not final_exam.is_scheduled or final_exam.start_time is None or final_exam.end_time is None:
        return final_exam.exam_status.split("_")[0]

    month = ""
    if final_exam.month is not None and 0 <= final_exam.month <= 11:
        month = calendar.month_name[final_exam.month + 1]
    start = final_exam.start_time
    end = final_exam.end_time
    text = (
        f"{final_exam.day_of_week}, {month} {final_exam.day} "
        f"{start.hour}:{start.minute:02d}-{end.hour}:{end.minute:02d} {_meridiem(end.hour)}"
    )
    if final_exam.locations:
        text += f" at {', '.join(final_exam.locations)}"
    return text


def item_label(item: RenderItem) -> str:
    inst = item.instance
    return f"{inst.dept_code} {inst.course_number} {inst.section_type}"


def _row_to_hour(row: int) -> int:
    return GRID_START_HOUR + (row - 1) // ROWS_PER_HOUR


def week_table(items: list[RenderItem]) -> Table:
    """
    Build a Mon-Fri table with one row per displayed hour.

    Items are listed in the hour their first grid row falls in.
    """
    cells: dict[tuple[int, str], list[RenderItem]] = defaultdict(list)
    for item in items:
        cells[(_row_to_hour(item.grid_row_start), item.instance.weekday)].append(item)

    table = Table(box=box.SIMPLE, show_lines=False)
    table.add_column("", justify="right", style="dim", no_wrap=True)
    for day in WEEKDAYS:
        table.add_column(DAY_SHORT[day])

    # 11PM is included so clamped late meetings stay visible
    for hour in range(GRID_START_HOUR, GRID_END_HOUR + 1):
        row: list[Text] = [Text(_hour_label(hour))]
        for day in WEEKDAYS:
            cell = Text()
            for item in cells.get((hour, day), []):
                if cell.plain:
                    cell.append("\n")
                style = COLOR_STYLES.get(item.instance.color, "")
                cell.append(item_label(item), style=f"bold {style}".strip())
                cell.append(f" {format_clock(item.instance.start_time)}", style=style)
                if item.overlap_count > 1:
                    cell.append(f" [lane {item.overlap_index + 1}/{item.overlap_count}]", style="dim")
            row.append(cell)
        table.add_row(*row)

    return table


def render_week(items: list[RenderItem], console: Console) -> None:
    if not items:
        console.print("No scheduled meetings.")
        return
    console.print(week_table(items))


def detail_line(item: RenderItem) -> str:
    inst = item.instance
    locations = ", ".join(inst.locations) if inst.locations else "TBA"
    instructors = ", ".join(inst.instructors) if inst.instructors else "STAFF"
    return (
        f"{item_label(item)} ({inst.section_code}) | {DAY_NAMES[inst.weekday]}, "
        f"{format_clock(inst.start_time)} - {format_clock(inst.end_time)} | "
        f"{locations} | {instructors} | Final: {describe_final(inst.final_exam)}"
    )


def render_details(items: list[RenderItem], console: Console) -> None:
    if not items:
        console.print("No scheduled meetings.")
        return
    for item in items:
        console.print(detail_line(item), style=COLOR_STYLES.get(item.instance.color, ""), markup=False, highlight=False)


def group_events_by_course(events: list[CalendarEvent]) -> dict[str, dict[str, list[CalendarEvent]]]:
    """
    {dept name: {"DEPT NUM": [sections...]}} in insertion order.
    """
    grouped: dict[str, dict[str, list[CalendarEvent]]] = {}
    for ev in events:
        dept = ev.dept_name or ev.dept_code
        course = f"{ev.dept_code} {ev.course_number}"
        grouped.setdefault(dept, {}).setdefault(course, []).append(ev)
    return grouped


def _meeting_times(ev: CalendarEvent) -> str:
    parts: list[str] = []
    for m in ev.meetings:
        if m.time_is_tba or m.start_time is None or m.end_time is None:
            parts.append("TBA")
            continue
        parts.append(f"{m.days} {format_clock(m.start_time)}-{format_clock(m.end_time)}")
    return "; ".join(parts) if parts else "TBA"


def render_courses(events: list[CalendarEvent], console: Console) -> None:
    """
    Added sections grouped by department, then by course.
    """
    if not events:
        console.print("No courses added yet. Search and add courses to see them here.")
        return

    for dept, courses in group_events_by_course(events).items():
        console.print(f"\n[bold]{escape(dept)}[/bold]")
        for course, sections in courses.items():
            table = Table(title=Text(course), title_justify="left", box=box.SIMPLE)
            for col in ("Code", "Type", "Instructors", "Times", "Status"):
                table.add_column(col)
            for ev in sections:
                # catalog text is plain, never rich markup
                table.add_row(
                    Text(ev.section_code),
                    Text(ev.section_type),
                    Text(", ".join(ev.instructors)),
                    Text(_meeting_times(ev)),
                    Text(ev.status),
                )
            console.print(table)
