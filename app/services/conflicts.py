"""Service for detecting time-range conflicts between schedule entries."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from app.domain.models import ScheduleEntry, normalize_location


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open overlap test for ``[start_a, end_a)`` and ``[start_b, end_b)``.

    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return start_a < end_b and start_b < end_a


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing_entries: Iterable[ScheduleEntry],
    location: str | None = None,
    exclude_id: str | None = None,
) -> list[ScheduleEntry]:
    """Return existing entries whose time range overlaps the given one.

    When *location* is given only entries at exactly that location are
    candidates. A blank *location* counts as not given, and a blank stored
    location never matches one.
    The entry with id *exclude_id* (the one being edited) is never returned.
    """
    location = normalize_location(location)
    conflicts = [
        entry
        for entry in existing_entries
        if entry.id != exclude_id
        and (location is None or normalize_location(entry.location) == location)
        and intervals_overlap(new_start, new_end, entry.start_time, entry.end_time)
    ]
    return sorted(conflicts, key=lambda e: e.start_time)
