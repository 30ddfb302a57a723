"""
Central data model definitions used across the project.

This module defines the canonical structure of the records that flow through
the calendar so that:
- catalog results, stored calendars and the layout engine share one shape
- dict conversion happens in exactly one place
- the layout engine can work on plain, immutable-in-spirit records

Dict forms use the catalog's camelCase keys (``sectionCode``, ``timeIsTBA``,
``bldg`` ...) so a section returned by the catalog can be stored as-is.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


SECTION_TYPES = (
    "Act",
    "Col",
    "Dis",
    "Fld",
    "Lab",
    "Lec",
    "Qiz",
    "Res",
    "Sem",
    "Stu",
    "Tap",
    "Tut",
)


@dataclass(frozen=True)
class Time:
    """
    A wall-clock time of day as the catalog sends it.
    """

    hour: int
    minute: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Time":
        return cls(hour=int(data.get("hour", 0)), minute=int(data.get("minute", 0)))

    def to_dict(self) -> Dict[str, int]:
        return {"hour": self.hour, "minute": self.minute}


@dataclass
class Meeting:
    """
    One recurring weekly time block of a section.

    A TBA meeting carries no days/times and never shows up on the grid.
    """

    time_is_tba: bool
    days: str = ""
    start_time: Optional[Time] = None
    end_time: Optional[Time] = None
    locations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meeting":
        if data.get("timeIsTBA", False):
            return cls(time_is_tba=True)

        start = data.get("startTime")
        end = data.get("endTime")
        return cls(
            time_is_tba=False,
            days=str(data.get("days") or ""),
            start_time=Time.from_dict(start) if isinstance(start, dict) else None,
            end_time=Time.from_dict(end) if isinstance(end, dict) else None,
            locations=[str(x) for x in data.get("bldg") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.time_is_tba:
            return {"timeIsTBA": True}
        return {
            "timeIsTBA": False,
            "days": self.days,
            "startTime": self.start_time.to_dict() if self.start_time else None,
            "endTime": self.end_time.to_dict() if self.end_time else None,
            "bldg": list(self.locations),
        }


@dataclass
class FinalExam:
    """
    Final exam descriptor. Only SCHEDULED_FINAL carries a date/time.

    ``month`` is 0-based (0 = January), exactly as the catalog sends it.
    """

    exam_status: str
    day_of_week: Optional[str] = None
    month: Optional[int] = None
    day: Optional[int] = None
    start_time: Optional[Time] = None
    end_time: Optional[Time] = None
    locations: List[str] = field(default_factory=list)

    @property
    def is_scheduled(self) -> bool:
        return self.exam_status == "SCHEDULED_FINAL"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FinalExam":
        if not data:
            return cls(exam_status="NO_FINAL")

        status = str(data.get("examStatus") or "NO_FINAL")
        if status != "SCHEDULED_FINAL":
            return cls(exam_status=status)

        start = data.get("startTime")
        end = data.get("endTime")
        return cls(
            exam_status=status,
            day_of_week=data.get("dayOfWeek"),
            month=data.get("month"),
            day=data.get("day"),
            start_time=Time.from_dict(start) if isinstance(start, dict) else None,
            end_time=Time.from_dict(end) if isinstance(end, dict) else None,
            locations=[str(x) for x in data.get("bldg") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        if not self.is_scheduled:
            return {"examStatus": self.exam_status}
        return {
            "examStatus": self.exam_status,
            "dayOfWeek": self.day_of_week,
            "month": self.month,
            "day": self.day,
            "startTime": self.start_time.to_dict() if self.start_time else None,
            "endTime": self.end_time.to_dict() if self.end_time else None,
            "bldg": list(self.locations),
        }


@dataclass
class CalendarEvent:
    """
    One section added to a calendar.

    The section code is unique within a calendar. Sections are never edited
    after they are added; removing and re-adding is the only update path.
    """

    section_code: str
    dept_code: str
    course_number: str
    dept_name: str
    section_type: str
    meetings: List[Meeting]
    final_exam: FinalExam
    instructors: List[str]
    calendar: Optional[str] = None
    course_title: str = ""
    course_comment: str = ""
    section_num: str = ""
    units: str = ""
    max_capacity: str = ""
    status: str = ""
    restrictions: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarEvent":
        return cls(
            section_code=str(data.get("sectionCode", "")).strip(),
            dept_code=str(data.get("deptCode", "")),
            course_number=str(data.get("courseNumber", "")),
            dept_name=str(data.get("deptName", "")),
            section_type=str(data.get("sectionType", "")),
            meetings=[Meeting.from_dict(m) for m in data.get("meetings") or [] if isinstance(m, dict)],
            final_exam=FinalExam.from_dict(data.get("finalExam")),
            instructors=[str(x) for x in data.get("instructors") or []],
            calendar=data.get("calendar"),
            course_title=str(data.get("courseTitle") or ""),
            course_comment=str(data.get("courseComment") or ""),
            section_num=str(data.get("sectionNum") or ""),
            units=str(data.get("units") or ""),
            max_capacity=str(data.get("maxCapacity") or ""),
            status=str(data.get("status") or ""),
            restrictions=str(data.get("restrictions") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sectionCode": self.section_code,
            "deptCode": self.dept_code,
            "courseNumber": self.course_number,
            "deptName": self.dept_name,
            "sectionType": self.section_type,
            "meetings": [m.to_dict() for m in self.meetings],
            "finalExam": self.final_exam.to_dict(),
            "instructors": list(self.instructors),
            "courseTitle": self.course_title,
            "courseComment": self.course_comment,
            "sectionNum": self.section_num,
            "units": self.units,
            "maxCapacity": self.max_capacity,
            "status": self.status,
            "restrictions": self.restrictions,
        }
        if self.calendar is not None:
            out["calendar"] = self.calendar
        return out


@dataclass(frozen=True)
class EventInstance:
    """
    One weekday occurrence of one meeting of one section.

    Built fresh on every layout pass and never stored.
    ``key`` is "<event index>-<meeting index>-<weekday>" and identifies the
    instance within a single pass.
    """

    key: str
    weekday: str
    start_time: Time
    end_time: Time
    color: str
    section_code: str
    dept_code: str
    course_number: str
    section_type: str
    instructors: List[str]
    final_exam: FinalExam
    locations: List[str]


@dataclass(frozen=True)
class RenderItem:
    """
    A positioned, colored instance ready for a renderer.
    """

    instance: EventInstance
    overlap_count: int
    overlap_index: int
    grid_row_start: int
    grid_row_end: int

    @property
    def width_percent(self) -> float:
        return 100.0 / self.overlap_count

    @property
    def left_percent(self) -> float:
        return self.overlap_index * 100.0 / self.overlap_count
