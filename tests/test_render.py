import io
import unittest

from rich.console import Console

from coursecal.layout import transform_calendar_events
from coursecal.model import CalendarEvent, FinalExam, Meeting, Time
from coursecal.render import (
    describe_final,
    detail_line,
    format_clock,
    group_events_by_course,
    render_courses,
    render_week,
)


def _console() -> Console:
    return Console(file=io.StringIO(), width=400, color_system=None)


def _event(code: str, dept: str, number: str, days: str, start: Time, end: Time) -> CalendarEvent:
    return CalendarEvent(
        section_code=code,
        dept_code=dept,
        course_number=number,
        dept_name=dept.title(),
        section_type="Lec",
        meetings=[Meeting(False, days, start, end, ["DBH 1100"])],
        final_exam=FinalExam(exam_status="TBA_FINAL"),
        instructors=["KLEFSTAD, R."],
    )


class TestFormatting(unittest.TestCase):
    def test_format_clock(self) -> None:
        self.assertEqual(format_clock(Time(9, 5)), "9:05 AM")
        self.assertEqual(format_clock(Time(12, 0)), "12:00 PM")
        self.assertEqual(format_clock(Time(13, 30)), "1:30 PM")

    def test_describe_scheduled_final(self) -> None:
        final = FinalExam(
            exam_status="SCHEDULED_FINAL",
            day_of_week="Mon",
            month=5,
            day=9,
            start_time=Time(8, 0),
            end_time=Time(10, 0),
            locations=["HSLH 100A"],
        )
        self.assertEqual(describe_final(final), "Mon, June 9 8:00-10:00 AM at HSLH 100A")

    def test_describe_unscheduled_final(self) -> None:
        self.assertEqual(describe_final(FinalExam(exam_status="TBA_FINAL")), "TBA")
        self.assertEqual(describe_final(FinalExam(exam_status="NO_FINAL")), "NO")


class TestRender(unittest.TestCase):
    def test_week_grid_lists_items_and_lanes(self) -> None:
        items = transform_calendar_events(
            [
                _event("1", "COMPSCI", "161", "M", Time(10, 0), Time(10, 50)),
                _event("2", "MATH", "2A", "M", Time(10, 30), Time(11, 20)),
            ]
        )
        console = _console()
        render_week(items, console)
        out = console.file.getvalue()
        self.assertIn("Mon", out)
        self.assertIn("COMPSCI 161 Lec", out)
        self.assertIn("MATH 2A Lec", out)
        self.assertIn("[lane 2/2]", out)

    def test_empty_week(self) -> None:
        console = _console()
        render_week([], console)
        self.assertIn("No scheduled meetings.", console.file.getvalue())

    def test_detail_line(self) -> None:
        items = transform_calendar_events([_event("35870", "COMPSCI", "161", "Th", Time(14, 0), Time(15, 20))])
        line = detail_line(items[0])
        self.assertIn("Thursday, 2:00 PM - 3:20 PM", line)
        self.assertIn("DBH 1100", line)
        self.assertIn("Final: TBA", line)

    def test_courses_grouped_by_department(self) -> None:
        events = [
            _event("1", "COMPSCI", "161", "M", Time(10, 0), Time(10, 50)),
            _event("2", "MATH", "2A", "W", Time(9, 0), Time(9, 50)),
            _event("3", "COMPSCI", "161", "F", Time(12, 0), Time(12, 50)),
        ]
        grouped = group_events_by_course(events)
        self.assertEqual(list(grouped), ["Compsci", "Math"])
        self.assertEqual([e.section_code for e in grouped["Compsci"]["COMPSCI 161"]], ["1", "3"])

        console = _console()
        render_courses(events, console)
        self.assertIn("COMPSCI 161", console.file.getvalue())

    def test_courses_print_bracketed_catalog_text_verbatim(self) -> None:
        ev = _event("1", "COMPSCI", "161", "M", Time(10, 0), Time(10, 50))
        ev.instructors = ["[/i] SMITH", "[bold]LEE"]
        ev.status = "[FULL]"

        console = _console()
        render_courses([ev], console)
        out = console.file.getvalue()
        self.assertIn("[/i] SMITH, [bold]LEE", out)
        self.assertIn("[FULL]", out)


if __name__ == "__main__":
    unittest.main()
