"""
Event layout (calendar events -> positioned grid items).

- Parses meeting day codes ("MWF", "TuTh") into weekday tokens
- Snaps meeting times to the 10-minute grid and the displayable hours
- Assigns every section a stable color
- Fans each section out into one instance per meeting per weekday
- Places every instance on a weekly grid of 5-minute rows starting at 7:00

Important rules (DO NOT CHANGE):
- Multi-character day codes ("Tu", "Th") are stripped before single letters
- Rounding is half-up; hours are clamped to [7, 23], minutes are not
- Lane order follows input order, never a sort
"""

from __future__ import annotations

import math

from coursecal.conflicts import GRID_START_HOUR, assign_lanes
from coursecal.model import CalendarEvent, EventInstance, RenderItem, Time


# ---------------------------------------------------------------------------
# Grid geometry
# ---------------------------------------------------------------------------

GRID_END_HOUR = 23
ROW_MINUTES = 5
# 7:00 through 23:00 in 5-minute rows
GRID_ROWS = (GRID_END_HOUR - GRID_START_HOUR) * 60 // ROW_MINUTES

WEEKDAYS = ("M", "T", "W", "Th", "F")

PALETTE = (
    "blue",
    "green",
    "purple",
    "pink",
    "indigo",
    "teal",
    "orange",
    "amber",
    "violet",
    "cyan",
    "emerald",
    "rose",
)

_MULTI_CHAR_DAYS = (("Tu", "T"), ("Th", "Th"))
_SINGLE_CHAR_DAYS = {"M": "M", "T": "T", "W": "W", "F": "F"}


# ---------------------------------------------------------------------------
# Day codes
# ---------------------------------------------------------------------------


def parse_days(days: str) -> list[str]:
    """
    Parse a compact day string into canonical weekday tokens.

    "TuTh" -> ["T", "Th"], "MWF" -> ["M", "W", "F"]. Unknown characters are
    ignored. Each weekday appears at most once.
    """
    result: list[str] = []

    for code, token in _MULTI_CHAR_DAYS:
        if code in days:
            result.append(token)
            # strip so the leftover "T" of "Tu"/"Th" is not read again
            days = days.replace(code, "")

    for ch in days:
        token = _SINGLE_CHAR_DAYS.get(ch)
        if token and token not in result:
            result.append(token)

    return result


# ---------------------------------------------------------------------------
# Times
# ---------------------------------------------------------------------------


def round_to_nearest_10(minute: int) -> int:
    # half-up: 45 -> 50, 5 -> 10
    return int(math.floor(minute / 10 + 0.5)) * 10


def _clamp_hour(hour: int) -> int:
    return max(GRID_START_HOUR, min(GRID_END_HOUR, hour))


def normalize_time(time: Time) -> Time:
    """
    Snap a time to the 10-minute grid and clamp its hour into [7, 23].

    A minute that rounds up to 60 carries into the next hour.
    """
    minute = round_to_nearest_10(time.minute)
    hour = time.hour
    if minute >= 60:
        hour += 1
    return Time(hour=_clamp_hour(hour), minute=minute % 60)


def time_to_row(time: Time) -> int:
    """
    1-based grid row for a time. Row 1 is 7:00-7:05, 23:00 is row 193.
    """
    total_minutes = (time.hour - GRID_START_HOUR) * 60 + time.minute
    return total_minutes // ROW_MINUTES + 1


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def color_for_section(section_code: str) -> str:
    """
    Map a section code to a palette color.

    Pure function of the code: the same section always gets the same color.
    """
    h = 0
    # ord() is a code point; equals a UTF-16 unit only inside the BMP
    for ch in section_code:
        # h * 31 + ch, with the shift done in 32-bit signed arithmetic
        h = ord(ch) + (_to_int32(_to_int32(h) << 5) - h)
    return PALETTE[abs(h) % len(PALETTE)]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def build_instances(events: list[CalendarEvent]) -> list[EventInstance]:
    """
    Expand events into one instance per (event, meeting, weekday).

    TBA meetings and meetings without times produce nothing.
    """
    instances: list[EventInstance] = []

    for event_index, event in enumerate(events):
        color = color_for_section(event.section_code)

        for meeting_index, meeting in enumerate(event.meetings):
            if meeting.time_is_tba or meeting.start_time is None or meeting.end_time is None:
                continue

            start = normalize_time(meeting.start_time)
            end = normalize_time(meeting.end_time)

            for weekday in parse_days(meeting.days):
                instances.append(
                    EventInstance(
                        key=f"{event_index}-{meeting_index}-{weekday}",
                        weekday=weekday,
                        start_time=start,
                        end_time=end,
                        color=color,
                        section_code=event.section_code,
                        dept_code=event.dept_code,
                        course_number=event.course_number,
                        section_type=event.section_type,
                        instructors=list(event.instructors),
                        final_exam=event.final_exam,
                        locations=list(meeting.locations),
                    )
                )

    return instances


def transform_calendar_events(events: list[CalendarEvent]) -> list[RenderItem]:
    """
    Run the full layout pipeline and return positioned items in instance order.
    """
    instances = build_instances(events)
    lanes = assign_lanes(instances)

    items: list[RenderItem] = []
    for inst, (count, index) in zip(instances, lanes):
        row_start = time_to_row(inst.start_time)
        row_end = time_to_row(inst.end_time)
        # clamping can collapse a meeting; keep it visible as one row
        if row_end <= row_start:
            row_end = row_start + 1
        items.append(
            RenderItem(
                instance=inst,
                overlap_count=count,
                overlap_index=index,
                grid_row_start=row_start,
                grid_row_end=row_end,
            )
        )
    return items
