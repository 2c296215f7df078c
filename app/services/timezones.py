"""Conversion between organizer-entered local wall time and UTC instants.

DST policy:
    - An ambiguous wall time (the repeated hour when clocks fall back)
      resolves to its first occurrence, i.e. the pre-transition offset
      (``fold=0``).
    - A nonexistent wall time (the skipped hour when clocks spring forward)
      is moved forward by the length of the gap, so 02:30 on a
      spring-forward night in New York becomes 03:30 EDT.
"""

from __future__ import annotations

import logging
import re
from datetime import date as date_type
from datetime import datetime, time as time_type, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz

from app.domain.errors import InvalidInputError

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIME_RE = re.compile(r"\d{2}:\d{2}")


def validate_timezone(zone: str) -> ZoneInfo:
    """Return the ZoneInfo for an IANA identifier or raise InvalidInputError."""
    if not zone:
        raise InvalidInputError("Timezone is required", field="timezone")
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidInputError(
            f"Unknown timezone: {zone}", field="timezone", value=zone
        ) from exc


def parse_date(value: str, field: str = "date") -> date_type:
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise InvalidInputError(
            "Invalid date format (YYYY-MM-DD)", field=field, value=value
        )
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidInputError(
            f"Invalid calendar date: {value}", field=field, value=value
        ) from exc


def parse_time(value: str, field: str = "time") -> time_type:
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise InvalidInputError(
            "Invalid time format (HH:MM)", field=field, value=value
        )
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError as exc:
        raise InvalidInputError(
            f"Invalid time of day: {value}", field=field, value=value
        ) from exc


def combine(
    date: str,
    time: str,
    zone: str,
    *,
    time_field: str = "time",
) -> datetime:
    """Combine a local calendar date and time of day in *zone* into a UTC instant.

    Raises ``InvalidInputError`` if the date, time or zone is malformed.
    """
    tzinfo = validate_timezone(zone)
    local = datetime.combine(
        parse_date(date), parse_time(time, field=time_field), tzinfo=tzinfo
    )

    # Gap times also report as ambiguous under PEP 495, so test existence first
    if not dateutil_tz.datetime_exists(local):
        resolved = dateutil_tz.resolve_imaginary(local)
        logger.debug(
            f"{date} {time} does not exist in {zone}; shifted to {resolved:%H:%M}"
        )
        local = resolved
    elif dateutil_tz.datetime_ambiguous(local):
        logger.debug(f"{date} {time} is ambiguous in {zone}; using first occurrence")

    return local.astimezone(timezone.utc)


def as_utc(instant: datetime) -> datetime:
    """Normalise to an aware UTC datetime; naive values are read as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_local(instant: datetime, zone: str) -> tuple[str, str]:
    """Return the ``(YYYY-MM-DD, HH:MM)`` wall-clock pair for *instant* in *zone*.

    Naive datetimes are treated as UTC.
    """
    local = as_utc(instant).astimezone(validate_timezone(zone))
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def day_bounds(date: str, zone: str) -> tuple[datetime, datetime]:
    """Half-open UTC range ``[start, end)`` covering one local calendar day."""
    day = parse_date(date)
    next_day = (day + timedelta(days=1)).isoformat()
    return combine(date, "00:00", zone), combine(next_day, "00:00", zone)
