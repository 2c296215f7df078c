"""Optimistic concurrency helpers built on the entry's ``last_modified`` stamp."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.domain.errors import ConcurrencyError
from app.services.timezones import as_utc

_TICK = timedelta(microseconds=1)


def next_stamp(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Return the commit stamp for a write that follows *previous*.

    This is the commit time, bumped by one microsecond when the clock has
    not moved past *previous*, so successive stamps are strictly increasing.
    """
    current = now or datetime.now(timezone.utc)
    if previous is not None and current <= previous:
        return previous + _TICK
    return current


def ensure_current(entry_id: str, expected: datetime, current: datetime) -> None:
    """Raise ``ConcurrencyError`` unless *expected* matches the stored stamp."""
    if as_utc(expected) != current:
        raise ConcurrencyError(entry_id, current)
