"""Schedule service: create, edit and query the sessions of an event.

Orchestrates the time-zone converter, the overlap detector and the
repository's compare-and-swap. Event and speaker identity come from the
collaborator directories; ownership decisions stay with the HTTP layer.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from app.domain.bus import EventBus
from app.domain.errors import (
    ConcurrencyError,
    ResourceNotFoundError,
    ScheduleValidationError,
)
from app.domain.events import (
    ScheduleEntryCreated,
    ScheduleEntryDeleted,
    ScheduleEntryUpdated,
)
from app.domain.models import (
    CreateScheduleEntryRequest,
    DaySchedule,
    OverlapReport,
    ScheduleEntry,
    SpeakerRole,
    Track,
    UpdateScheduleEntryRequest,
)
from app.repos.collaborators import EventDirectory, EventInfo, SpeakerDirectory
from app.repos.memory import ScheduleRepository
from app.services.concurrency import ensure_current
from app.services.conflicts import find_conflicts
from app.services.timezones import as_utc, combine, day_bounds, to_local

logger = logging.getLogger(__name__)

DEFAULT_TRACK_COLOR = "#6B7280"

_EDITABLE_FIELDS = (
    "title",
    "description",
    "location",
    "track",
    "track_color",
    "session_type",
)
_REQUIRED_FIELDS = ("title", "description")
_TIME_FIELDS = {"date", "start_time", "end_time"}


def _ensure_ordered(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ScheduleValidationError(
            "End time must be after start time", field="end_time"
        )


def _validation_error(exc: ValidationError) -> ScheduleValidationError:
    first = exc.errors()[0]
    field = ".".join(str(loc) for loc in first["loc"]) or None
    return ScheduleValidationError(first["msg"], field=field)


class ScheduleService:
    """Entry point for every schedule operation."""

    def __init__(
        self,
        repo: ScheduleRepository,
        events: EventDirectory,
        speakers: SpeakerDirectory,
        bus: EventBus | None = None,
        default_track_color: str = DEFAULT_TRACK_COLOR,
    ) -> None:
        self.repo = repo
        self.events = events
        self.speakers = speakers
        self.bus = bus
        self.default_track_color = default_track_color

    # ------------------------------------------------------------------
    # Collaborator lookups
    # ------------------------------------------------------------------

    def event_info(self, event_id: str) -> EventInfo:
        info = self.events.get_timezone_and_ownership(event_id)
        if info is None:
            raise ResourceNotFoundError("Event", event_id)
        return info

    def _validated_speakers(self, speaker_ids: list[str]) -> list[str]:
        unique = list(dict.fromkeys(speaker_ids))
        for speaker_id in unique:
            if not self.speakers.exists(speaker_id):
                raise ResourceNotFoundError("Speaker", speaker_id)
        return unique

    def _publish(self, event: object) -> None:
        if self.bus is not None:
            self.bus.publish(event)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, request: CreateScheduleEntryRequest) -> ScheduleEntry:
        """Create an entry from local date/time fields in the event's timezone."""
        info = self.event_info(request.event_id)
        start = combine(
            request.date, request.start_time, info.timezone, time_field="start_time"
        )
        end = combine(
            request.date, request.end_time, info.timezone, time_field="end_time"
        )
        _ensure_ordered(start, end)
        speaker_ids = self._validated_speakers(request.speaker_ids or [])

        try:
            entry = ScheduleEntry(
                event_id=request.event_id,
                title=request.title,
                description=request.description,
                start_time=start,
                end_time=end,
                location=request.location,
                track=request.track,
                track_color=request.track_color,
                session_type=request.session_type,
            )
        except ValidationError as exc:
            raise _validation_error(exc) from exc

        stored = self.repo.add(entry, speaker_ids)
        logger.info(
            f"Created schedule entry '{stored.title}'",
            extra={"event_id": stored.event_id, "entry_id": stored.id},
        )
        self._publish(ScheduleEntryCreated(entry_id=stored.id, event_id=stored.event_id))
        return stored

    def update(
        self, entry_id: str, request: UpdateScheduleEntryRequest
    ) -> ScheduleEntry:
        """Apply a partial update guarded by the caller's ``expected_stamp``.

        Only fields present in the request change. If any of date, start
        time or end time is supplied, the missing parts are taken from the
        entry's current local values and the pair is recombined in the
        event's timezone. ``speaker_ids``, when present, replaces the
        assignment set.
        """
        current = self.get(entry_id)
        try:
            ensure_current(entry_id, request.expected_stamp, current.last_modified)
        except ConcurrencyError:
            logger.warning(
                "Rejected update with a stale stamp",
                extra={"event_id": current.event_id, "entry_id": entry_id},
            )
            raise
        provided = request.model_fields_set

        if request.event_id is not None and request.event_id != current.event_id:
            raise ScheduleValidationError(
                "Schedule entry belongs to a different event", field="event_id"
            )

        changes = {
            name: getattr(request, name) for name in _EDITABLE_FIELDS if name in provided
        }
        for name in _REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise ScheduleValidationError(f"{name} cannot be cleared", field=name)

        times_changed = bool(provided & _TIME_FIELDS)
        if times_changed:
            tz = self.event_info(current.event_id).timezone
            current_date, current_start = to_local(current.start_time, tz)
            _, current_end = to_local(current.end_time, tz)
            date = request.date or current_date
            changes["start_time"] = combine(
                date, request.start_time or current_start, tz, time_field="start_time"
            )
            changes["end_time"] = combine(
                date, request.end_time or current_end, tz, time_field="end_time"
            )
            _ensure_ordered(changes["start_time"], changes["end_time"])

        speaker_ids = None
        if request.speaker_ids is not None:
            speaker_ids = self._validated_speakers(request.speaker_ids)

        try:
            ScheduleEntry.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            raise _validation_error(exc) from exc

        updated = self.repo.compare_and_swap(
            entry_id, as_utc(request.expected_stamp), changes, speaker_ids
        )
        logger.info(
            f"Updated schedule entry '{updated.title}'",
            extra={"event_id": updated.event_id, "entry_id": updated.id},
        )
        self._publish(
            ScheduleEntryUpdated(
                entry_id=updated.id,
                event_id=updated.event_id,
                slot_changed=times_changed or "location" in changes,
            )
        )
        return updated

    def delete(self, entry_id: str) -> dict:
        """Remove an entry and its speaker assignments."""
        removed = self.repo.delete(entry_id)
        if removed is None:
            raise ResourceNotFoundError("ScheduleEntry", entry_id)
        logger.info(
            f"Deleted schedule entry '{removed.title}'",
            extra={"event_id": removed.event_id, "entry_id": removed.id},
        )
        self._publish(
            ScheduleEntryDeleted(
                entry_id=removed.id,
                event_id=removed.event_id,
                speaker_ids=removed.speaker_ids,
            )
        )
        return {"success": True}

    def assign_speaker(
        self,
        entry_id: str,
        speaker_id: str,
        role: SpeakerRole = SpeakerRole.SPEAKER,
    ) -> ScheduleEntry:
        if not self.speakers.exists(speaker_id):
            raise ResourceNotFoundError("Speaker", speaker_id)
        return self.repo.add_assignment(entry_id, speaker_id, role)

    def unassign_speaker(self, entry_id: str, speaker_id: str) -> ScheduleEntry:
        return self.repo.remove_assignment(entry_id, speaker_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> ScheduleEntry:
        entry = self.repo.get(entry_id)
        if entry is None:
            raise ResourceNotFoundError("ScheduleEntry", entry_id)
        return entry

    def list(
        self, event_id: str, date: str | None = None, track: str | None = None
    ) -> list[ScheduleEntry]:
        """Entries ordered by start time, optionally one local day or one track."""
        entries = self.repo.list_for_event(event_id)
        if date is not None:
            info = self.events.get_timezone_and_ownership(event_id)
            if info is None:
                return []
            day_start, day_end = day_bounds(date, info.timezone)
            entries = [e for e in entries if day_start <= e.start_time < day_end]
        if track is not None:
            entries = [e for e in entries if e.track == track]
        return entries

    def get_by_date(self, event_id: str, date: str) -> DaySchedule:
        """One local day of the schedule with the tracks that appear in it."""
        tz = self.event_info(event_id).timezone
        entries = sorted(
            self.list(event_id, date=date),
            key=lambda e: (e.start_time, e.track or ""),
        )
        tracks = list(dict.fromkeys(e.track for e in entries if e.track))
        return DaySchedule(date=date, timezone=tz, tracks=tracks, entries=entries)

    def get_tracks(self, event_id: str) -> list[Track]:
        colors: dict[str, str | None] = {}
        for entry in sorted(
            self.repo.list_for_event(event_id), key=lambda e: e.last_modified
        ):
            if not entry.track:
                continue
            if entry.track_color:
                colors[entry.track] = entry.track_color
            else:
                colors.setdefault(entry.track, None)
        return [
            Track(name=name, color=color or self.default_track_color)
            for name, color in sorted(colors.items())
        ]

    def check_overlap(
        self,
        event_id: str,
        start_time: datetime,
        end_time: datetime,
        location: str | None = None,
        exclude_id: str | None = None,
    ) -> OverlapReport:
        """Advisory conflict report; never blocks a write.

        An empty or inverted range overlaps nothing.
        """
        start, end = as_utc(start_time), as_utc(end_time)
        if end <= start:
            return OverlapReport(has_overlap=False, count=0, conflicts=[])
        conflicts = find_conflicts(
            start,
            end,
            self.repo.list_for_event(event_id),
            location=location,
            exclude_id=exclude_id,
        )
        return OverlapReport(
            has_overlap=bool(conflicts), count=len(conflicts), conflicts=conflicts
        )
