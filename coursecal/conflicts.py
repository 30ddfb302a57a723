"""
Overlap detection and lane assignment.

Given the event instances of one calendar, find which ones overlap on the
same weekday. Overlap rule (half-open intervals):
    start < other_end AND other_start < end

Touching endpoints (10:00-10:50 and 10:50-11:40) do not overlap.
"""

from __future__ import annotations

from collections import defaultdict

from coursecal.model import EventInstance, Time

GRID_START_HOUR = 7


def time_to_minutes(time: Time) -> int:
    """
    Convert a Time to minutes since the start of the grid (7:00).
    """
    return (time.hour - GRID_START_HOUR) * 60 + time.minute


def events_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and b_start < a_end


def _overlapping(a: EventInstance, b: EventInstance) -> bool:
    if a.weekday != b.weekday:
        return False
    return events_overlap(
        time_to_minutes(a.start_time),
        time_to_minutes(a.end_time),
        time_to_minutes(b.start_time),
        time_to_minutes(b.end_time),
    )


def overlap_group(instance: EventInstance, instances: list[EventInstance]) -> list[EventInstance]:
    """
    All instances on the same weekday that overlap ``instance``, in list order.

    The instance itself is always part of its own group, even when clamping
    collapsed it to a zero-length interval.
    """
    return [other for other in instances if other.key == instance.key or _overlapping(instance, other)]


def assign_lanes(instances: list[EventInstance]) -> list[tuple[int, int]]:
    """
    Return (overlap_count, overlap_index) for every instance, in input order.

    overlap_index is the position of the instance inside its overlap group
    when the group is enumerated in input order.
    """
    # only instances on the same weekday can overlap
    by_day: dict[str, list[EventInstance]] = defaultdict(list)
    for inst in instances:
        by_day[inst.weekday].append(inst)

    lanes: list[tuple[int, int]] = []
    for inst in instances:
        group = overlap_group(inst, by_day[inst.weekday])
        index = next(i for i, other in enumerate(group) if other.key == inst.key)
        lanes.append((len(group), index))
    return lanes


def find_conflicts(instances: list[EventInstance]) -> list[tuple[EventInstance, EventInstance]]:
    """
    Find overlapping instance pairs (A, B), each pair once (i < j).

    Two meetings of the same section are never reported against each other.
    """
    conflicts: list[tuple[EventInstance, EventInstance]] = []

    # O(n^2) is fine for typical calendar sizes
    for i in range(len(instances)):
        a = instances[i]
        for j in range(i + 1, len(instances)):
            b = instances[j]
            if a.section_code == b.section_code:
                continue
            if _overlapping(a, b):
                conflicts.append((a, b))

    return conflicts
