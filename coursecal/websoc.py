"""
Course catalog client (Anteater API WebSoc endpoints).

- Lists available terms
- Queries sections by department / course number / section code
- Flattens the nested schools -> departments -> courses -> sections
  response into CalendarEvent records

Every endpoint answers with the same envelope:
    {"ok": true, "data": ...}  or  {"ok": false, "message": "..."}
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from coursecal.model import SECTION_TYPES, CalendarEvent


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

API_URL = "https://anteaterapi.com/v2/rest"
WEBSOC_URL = API_URL + "/websoc"
TERMS_URL = WEBSOC_URL + "/terms"
CALENDARS_URL = API_URL + "/calendar/all"

TIMEOUT_SECONDS = 30

QUERY_PARAMS = (
    "ge",
    "department",
    "courseTitle",
    "courseNumber",
    "sectionCodes",
    "instructorName",
    "days",
    "building",
    "room",
    "division",
    "sectionType",
    "fullCourses",
    "cancelledCourses",
    "units",
    "startTime",
    "endTime",
    "excludeRestrictionCodes",
)

_TERM_RE = re.compile(r"^(\d{4})\s+(Fall|Winter|Spring|Summer1|Summer2|Summer10wk)$", re.I)


class WebSocError(Exception):
    """
    The catalog answered, but with an error or an unexpected shape.
    """


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unwrap(payload: Any, url: str) -> Any:
    """
    Return the ``data`` part of a response envelope or raise WebSocError.
    """
    if not isinstance(payload, dict) or "ok" not in payload:
        raise WebSocError(f"Unexpected response shape from {url}")
    if not payload["ok"]:
        raise WebSocError(str(payload.get("message") or url))
    if "data" not in payload:
        raise WebSocError(f"Response from {url} has no data")
    return payload["data"]


def _get(url: str, params: Optional[Dict[str, str]] = None) -> Any:
    logger.debug("GET %s params=%s", url, params)
    resp = requests.get(url, params=params, timeout=TIMEOUT_SECONDS)
    resp.raise_for_status()
    return _unwrap(resp.json(), url)


def strip_html(text: Optional[str]) -> str:
    """
    Catalog comments are HTML fragments; return them as plain text.
    """
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    lines = [" ".join(line.split()) for line in soup.get_text().splitlines()]
    return "\n".join(line for line in lines if line)


def parse_term(term: str) -> Tuple[str, str]:
    """
    "2025 Fall" -> ("2025", "Fall")
    """
    m = _TERM_RE.match((term or "").strip())
    if not m:
        raise ValueError(f"term must look like '2025 Fall', got {term!r}")
    return m.group(1), m.group(2)


def parse_course_query(text: str) -> Tuple[str, str]:
    """
    Split a search like "I&C SCI 32A" into (department, course number).

    The last whitespace-separated token is the course number; everything
    before it is the department. Both are upper-cased.
    """
    parts = (text or "").split()
    if not parts:
        raise ValueError("search text is empty")
    course_number = parts.pop().upper()
    department = " ".join(parts).upper()
    return department, course_number


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_terms() -> List[Dict[str, str]]:
    """
    Return the catalog's terms as [{"shortName": ..., "longName": ...}, ...].
    """
    data = _get(TERMS_URL)
    if not isinstance(data, list):
        raise WebSocError("terms response is not a list")
    return data


def query_websoc(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Query sections. ``year`` and ``quarter`` are required; the optional
    filters in QUERY_PARAMS are only sent when they have a value.
    """
    year = params.get("year")
    quarter = params.get("quarter")
    if not year or not quarter:
        raise ValueError("year and quarter are required")

    query: Dict[str, str] = {"year": str(year), "quarter": str(quarter)}
    for key in QUERY_PARAMS:
        val = params.get(key)
        if val is not None and val != "":
            query[key] = str(val)

    # includeRelatedCourses is a flag: present-but-empty still counts
    if "includeRelatedCourses" in params:
        related = params["includeRelatedCourses"]
        query["includeRelatedCourses"] = "" if related is None else str(related)

    data = _get(WEBSOC_URL, query)
    if not isinstance(data, dict) or not isinstance(data.get("schools"), list):
        raise WebSocError("websoc response has no schools")
    return {"schools": data["schools"]}


def sections_from_websoc(data: Dict[str, Any]) -> List[CalendarEvent]:
    """
    Flatten a websoc response into one CalendarEvent per section.
    """
    events: List[CalendarEvent] = []

    for school in data.get("schools") or []:
        for dept in school.get("departments") or []:
            for course in dept.get("courses") or []:
                for section in course.get("sections") or []:
                    record = dict(section)
                    record["deptCode"] = course.get("deptCode", dept.get("deptCode", ""))
                    record["deptName"] = dept.get("deptName", "")
                    record["courseNumber"] = course.get("courseNumber", "")
                    record["courseTitle"] = course.get("courseTitle", "")
                    record["courseComment"] = strip_html(course.get("courseComment"))
                    if record.get("sectionType") not in SECTION_TYPES:
                        logger.debug("unknown section type %r for %s", record.get("sectionType"), record.get("sectionCode"))
                    events.append(CalendarEvent.from_dict(record))

    logger.debug("websoc response contained %d sections", len(events))
    return events


def search_sections(term: str, department: str, course_number: str) -> List[CalendarEvent]:
    year, quarter = parse_term(term)
    data = query_websoc(
        {"year": year, "quarter": quarter, "department": department, "courseNumber": course_number}
    )
    return sections_from_websoc(data)


def find_section(term: str, section_code: str) -> Optional[CalendarEvent]:
    """
    Look up a single section by its code, or None if the catalog has none.
    """
    year, quarter = parse_term(term)
    data = query_websoc({"year": year, "quarter": quarter, "sectionCodes": section_code})
    for event in sections_from_websoc(data):
        if event.section_code == section_code:
            return event
    return None


# ---------------------------------------------------------------------------
# Term calendars
# ---------------------------------------------------------------------------


def fetch_term_calendars() -> List[Dict[str, Any]]:
    data = _get(CALENDARS_URL)
    if not isinstance(data, list):
        raise WebSocError("calendar response is not a list")
    return data


def latest_soc_available(calendars: List[Dict[str, Any]], today: date) -> Optional[Dict[str, Any]]:
    """
    Return the term whose schedule of classes was published most recently
    on or before ``today`` (None if no term qualifies).
    """
    published: List[Tuple[date, Dict[str, Any]]] = []
    for cal in calendars:
        raw = str(cal.get("socAvailable") or "")[:10]
        try:
            available = date.fromisoformat(raw)
        except ValueError:
            logger.debug("skipping term calendar with bad socAvailable %r", raw)
            continue
        if available <= today:
            published.append((available, cal))

    if not published:
        return None
    published.sort(key=lambda pair: pair[0], reverse=True)
    return published[0][1]


def term_name(calendar: Dict[str, Any]) -> str:
    """
    "2025 Fall" style name for a term calendar entry.
    """
    return f"{calendar.get('year', '')} {calendar.get('quarter', '')}".strip()
