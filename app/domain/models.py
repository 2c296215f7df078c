"""Domain models for the schedule-entry subsystem."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, model_validator


DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"
COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class SessionType(StrEnum):
    KEYNOTE = "keynote"
    TALK = "talk"
    WORKSHOP = "workshop"
    BREAK = "break"
    NETWORKING = "networking"


class SpeakerRole(StrEnum):
    SPEAKER = "speaker"
    MODERATOR = "moderator"
    PANELIST = "panelist"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def normalize_location(value: str | None) -> str | None:
    """A blank room name means no room was given."""
    if value is None or not value.strip():
        return None
    return value.strip()


Location = Annotated[str | None, AfterValidator(normalize_location)]


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class SpeakerAssignment(BaseModel):
    schedule_entry_id: str
    speaker_id: str
    role: SpeakerRole = SpeakerRole.SPEAKER
    created_at: datetime = Field(default_factory=_utcnow)


class ScheduleEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    event_id: str
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(max_length=2000)
    start_time: datetime
    end_time: datetime
    location: Location = None
    track: str | None = None
    track_color: str | None = Field(default=None, pattern=COLOR_PATTERN)
    session_type: SessionType | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    last_modified: datetime = Field(default_factory=_utcnow)
    speakers: list[SpeakerAssignment] = Field(default_factory=list)

    @model_validator(mode="after")
    def _end_after_start(self) -> ScheduleEntry:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def speaker_ids(self) -> list[str]:
        return [a.speaker_id for a in self.speakers]


class Track(BaseModel):
    name: str
    color: str


class DaySchedule(BaseModel):
    date: str
    timezone: str
    tracks: list[str] = Field(default_factory=list)
    entries: list[ScheduleEntry] = Field(default_factory=list)


class OverlapReport(BaseModel):
    has_overlap: bool
    count: int
    conflicts: list[ScheduleEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CreateScheduleEntryRequest(BaseModel):
    event_id: str
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(max_length=2000)
    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    location: Location = None
    track: str | None = None
    track_color: str | None = Field(default=None, pattern=COLOR_PATTERN)
    session_type: SessionType | None = None
    speaker_ids: list[str] | None = None


class UpdateScheduleEntryRequest(BaseModel):
    """Partial update.

    Only fields present in the payload are applied; an explicit ``null``
    clears an optional field. ``expected_stamp`` is the ``last_modified``
    value the caller read together with the entry.
    """

    expected_stamp: datetime
    event_id: str | None = None
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    date: str | None = Field(default=None, pattern=DATE_PATTERN)
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    location: Location = None
    track: str | None = None
    track_color: str | None = Field(default=None, pattern=COLOR_PATTERN)
    session_type: SessionType | None = None
    speaker_ids: list[str] | None = None


class CheckOverlapRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    location: Location = None
    exclude_id: str | None = None


class AssignSpeakerRequest(BaseModel):
    speaker_id: str
    role: SpeakerRole = SpeakerRole.SPEAKER
