"""
Persistent storage for the user's calendars.

This module manages the file:

    data/calendars.json

Layout:
    {"calendars": [{"name": "2025 Fall", "is_active": true, "events": [...]}]}

Rules:
- exactly one calendar is active once any calendar exists
- a section code appears at most once per calendar
- sections are never edited in place; remove and re-add instead
- the active calendar cannot be deleted

Loading is defensive (a missing or broken file is an empty state).
Mutations work on the in-memory state dict; callers save afterwards.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from coursecal.model import CalendarEvent


logger = logging.getLogger(__name__)

State = dict[str, Any]


class CalendarError(Exception):
    """
    Raised when a calendar operation cannot be applied to the current state.
    """


def _default_state_path() -> Path:
    """
    Return the default path of calendars.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "calendars.json"


def empty_state() -> State:
    return {"calendars": []}


def load_state(path: str | Path | None = None) -> State:
    """
    Load calendars from calendars.json.

    Returns an empty state if the file does not exist or is invalid.
    """
    state_path = Path(path) if path is not None else _default_state_path()

    # First run: nothing saved yet
    if not state_path.exists():
        return empty_state()

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable state file %s: %s", state_path, exc)
        return empty_state()

    calendars = data.get("calendars") if isinstance(data, dict) else None
    if not isinstance(calendars, list):
        logger.warning("Ignoring state file %s without a calendars list", state_path)
        return empty_state()

    out: list[dict[str, Any]] = []
    seen: set[str] = set()
    for cal in calendars:
        if not isinstance(cal, dict):
            continue
        name = str(cal.get("name", "")).strip()
        if not name:
            continue
        if name in seen:
            logger.warning("Dropping duplicate calendar %r in %s", name, state_path)
            continue
        seen.add(name)
        events = cal.get("events")
        out.append(
            {
                "name": name,
                "is_active": bool(cal.get("is_active", False)),
                "events": [e for e in events if isinstance(e, dict)] if isinstance(events, list) else [],
            }
        )

    # exactly one active: the first flagged one, else the first calendar
    active = next((cal for cal in out if cal["is_active"]), out[0] if out else None)
    for cal in out:
        cal["is_active"] = cal is active
    return {"calendars": out}


def save_state(state: State, path: str | Path | None = None) -> None:
    """
    Save calendars to calendars.json, creating parent directories if needed.
    """
    state_path = Path(path) if path is not None else _default_state_path()
    state_path.parent.mkdir(parents=True, exist_ok=True)

    state_path.write_text(json.dumps(state, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.debug("Saved %d calendars to %s", len(state.get("calendars", [])), state_path)


# ---------------------------------------------------------------------------
# Calendars
# ---------------------------------------------------------------------------


def list_calendars(state: State) -> list[dict[str, Any]]:
    return list(state.get("calendars", []))


def _find_calendar(state: State, name: str) -> Optional[dict[str, Any]]:
    for cal in state.get("calendars", []):
        if cal["name"] == name:
            return cal
    return None


def get_active_calendar(state: State) -> Optional[dict[str, Any]]:
    for cal in state.get("calendars", []):
        if cal.get("is_active"):
            return cal
    return None


def create_calendar(state: State, name: str) -> dict[str, Any]:
    """
    Create a calendar and make it the active one.
    """
    name = (name or "").strip()
    if not name:
        raise CalendarError("Calendar name must not be empty")
    if _find_calendar(state, name) is not None:
        raise CalendarError(f"Calendar already exists: {name}")

    for cal in state.setdefault("calendars", []):
        cal["is_active"] = False

    cal = {"name": name, "is_active": True, "events": []}
    state["calendars"].append(cal)
    return cal


def set_active_calendar(state: State, name: str) -> None:
    target = _find_calendar(state, name)
    if target is None:
        raise CalendarError(f"No such calendar: {name}")

    for cal in state["calendars"]:
        cal["is_active"] = cal is target


def delete_calendar(state: State, name: str) -> bool:
    """
    Delete a calendar and all of its events.

    Returns False (and changes nothing) for the active calendar.
    """
    target = _find_calendar(state, name)
    if target is None:
        raise CalendarError(f"No such calendar: {name}")
    if target.get("is_active"):
        return False

    state["calendars"] = [cal for cal in state["calendars"] if cal is not target]
    return True


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _require_active(state: State) -> dict[str, Any]:
    cal = get_active_calendar(state)
    if cal is None:
        raise CalendarError("No active calendar")
    return cal


def add_event(state: State, event: CalendarEvent) -> bool:
    """
    Add a section to the active calendar.

    Returns False if the section is already part of it.
    """
    cal = _require_active(state)
    if any(e.get("sectionCode") == event.section_code for e in cal["events"]):
        return False

    record = event.to_dict()
    record["calendar"] = cal["name"]
    cal["events"].append(record)
    return True


def remove_event(state: State, section_code: str) -> bool:
    cal = _require_active(state)
    before = len(cal["events"])
    cal["events"] = [e for e in cal["events"] if e.get("sectionCode") != section_code]
    return len(cal["events"]) != before


def active_events(state: State) -> list[CalendarEvent]:
    """
    Sections of the active calendar, in the order they were added.
    """
    cal = get_active_calendar(state)
    if cal is None:
        return []
    return [CalendarEvent.from_dict(e) for e in cal["events"]]
