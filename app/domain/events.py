"""Domain events emitted around schedule changes."""

from __future__ import annotations

from pydantic import BaseModel


class ScheduleEntryCreated(BaseModel):
    """Fired when a new ScheduleEntry is persisted."""

    entry_id: str
    event_id: str


class ScheduleEntryUpdated(BaseModel):
    """Fired after a successful compare-and-swap on an entry."""

    entry_id: str
    event_id: str
    slot_changed: bool = False


class ScheduleEntryDeleted(BaseModel):
    """Fired when an entry and its speaker assignments are removed."""

    entry_id: str
    event_id: str
    speaker_ids: list[str]


class EventDeleted(BaseModel):
    """Fired by the event directory when an owning event goes away."""

    event_id: str


class SpeakerDeleted(BaseModel):
    """Fired by the speaker directory when a speaker profile goes away."""

    speaker_id: str
