"""
Unit tests for the course catalog client.

No network: requests.get is patched and returns canned envelopes.
"""

import unittest
from datetime import date
from unittest import mock

from coursecal import websoc
from coursecal.websoc import (
    WebSocError,
    latest_soc_available,
    parse_course_query,
    parse_term,
    query_websoc,
    sections_from_websoc,
    strip_html,
)


SECTION = {
    "units": "4",
    "status": "OPEN",
    "meetings": [
        {
            "timeIsTBA": False,
            "bldg": ["SSLH 100"],
            "days": "MWF",
            "startTime": {"hour": 10, "minute": 0},
            "endTime": {"hour": 10, "minute": 50},
        },
        {"timeIsTBA": True},
    ],
    "finalExam": {
        "examStatus": "SCHEDULED_FINAL",
        "dayOfWeek": "Mon",
        "month": 5,
        "day": 9,
        "startTime": {"hour": 8, "minute": 0},
        "endTime": {"hour": 10, "minute": 0},
        "bldg": ["SSLH 100"],
    },
    "sectionNum": "A",
    "instructors": ["SHINDLER, M."],
    "maxCapacity": "300",
    "sectionCode": "35870",
    "sectionType": "Lec",
    "numRequested": "0",
}

WEBSOC_DATA = {
    "schools": [
        {
            "schoolName": "Donald Bren School of ICS",
            "schoolComment": "",
            "updatedAt": None,
            "departments": [
                {
                    "deptCode": "COMPSCI",
                    "deptName": "Computer Science",
                    "deptComment": "",
                    "sectionCodeRangeComments": [],
                    "courseNumberRangeComments": [],
                    "updatedAt": None,
                    "courses": [
                        {
                            "deptCode": "COMPSCI",
                            "courseNumber": "161",
                            "courseTitle": "DES&ANALYS OF ALGOR",
                            "courseComment": "",
                            "prerequisiteLink": "",
                            "updatedAt": None,
                            "sections": [SECTION],
                        }
                    ],
                }
            ],
        }
    ]
}


def _response(payload: dict) -> mock.Mock:
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class TestParsing(unittest.TestCase):
    def test_parse_term(self) -> None:
        self.assertEqual(parse_term("2025 Fall"), ("2025", "Fall"))
        with self.assertRaises(ValueError):
            parse_term("Fall")

    def test_parse_course_query(self) -> None:
        self.assertEqual(parse_course_query("i&c sci 32a"), ("I&C SCI", "32A"))
        self.assertEqual(parse_course_query("COMPSCI 161"), ("COMPSCI", "161"))
        with self.assertRaises(ValueError):
            parse_course_query("   ")

    def test_strip_html(self) -> None:
        self.assertEqual(strip_html("<p>Same as <b>CS 161</b>.</p><br/>Open"), "Same as CS 161.\nOpen")
        self.assertEqual(strip_html(None), "")

    def test_sections_from_websoc(self) -> None:
        events = sections_from_websoc(WEBSOC_DATA)
        self.assertEqual(len(events), 1)
        ev = events[0]
        self.assertEqual(ev.section_code, "35870")
        self.assertEqual(ev.dept_code, "COMPSCI")
        self.assertEqual(ev.dept_name, "Computer Science")
        self.assertEqual(ev.course_number, "161")
        self.assertEqual(ev.course_title, "DES&ANALYS OF ALGOR")
        self.assertEqual(ev.meetings[0].locations, ["SSLH 100"])
        self.assertTrue(ev.meetings[1].time_is_tba)
        self.assertTrue(ev.final_exam.is_scheduled)
        self.assertEqual(ev.final_exam.month, 5)


class TestRequests(unittest.TestCase):
    def test_query_sends_only_set_params(self) -> None:
        with mock.patch.object(websoc.requests, "get", return_value=_response({"ok": True, "data": WEBSOC_DATA})) as get:
            data = query_websoc({"year": "2025", "quarter": "Fall", "department": "COMPSCI", "courseNumber": "", "ge": None})

        self.assertEqual(len(data["schools"]), 1)
        _, kwargs = get.call_args
        self.assertEqual(kwargs["params"], {"year": "2025", "quarter": "Fall", "department": "COMPSCI"})

    def test_query_requires_year_and_quarter(self) -> None:
        with self.assertRaises(ValueError):
            query_websoc({"year": "2025"})

    def test_error_envelope_raises(self) -> None:
        with mock.patch.object(websoc.requests, "get", return_value=_response({"ok": False, "message": "bad term"})):
            with self.assertRaises(WebSocError) as ctx:
                websoc.get_terms()
        self.assertIn("bad term", str(ctx.exception))

    def test_find_section(self) -> None:
        with mock.patch.object(websoc.requests, "get", return_value=_response({"ok": True, "data": WEBSOC_DATA})) as get:
            ev = websoc.find_section("2025 Fall", "35870")
            missing = websoc.find_section("2025 Fall", "99999")

        self.assertIsNotNone(ev)
        self.assertIsNone(missing)
        _, kwargs = get.call_args
        self.assertEqual(kwargs["params"]["sectionCodes"], "99999")


class TestLatestTerm(unittest.TestCase):
    def test_picks_most_recent_published(self) -> None:
        calendars = [
            {"year": "2025", "quarter": "Fall", "socAvailable": "2025-05-01"},
            {"year": "2026", "quarter": "Winter", "socAvailable": "2025-10-20"},
            {"year": "2026", "quarter": "Spring", "socAvailable": "2026-02-10"},
        ]
        latest = latest_soc_available(calendars, date(2025, 11, 1))
        self.assertEqual(websoc.term_name(latest), "2026 Winter")

    def test_nothing_published(self) -> None:
        calendars = [{"year": "2026", "quarter": "Spring", "socAvailable": "2026-02-10"}]
        self.assertIsNone(latest_soc_available(calendars, date(2025, 1, 1)))


if __name__ == "__main__":
    unittest.main()
