"""Contracts for the Event and Speaker collaborators, plus in-memory stand-ins.

The schedule core only ever reads identity, timezone and ownership through
these protocols; it never owns Event or Speaker records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from app.domain.bus import EventBus
from app.domain.events import EventDeleted, SpeakerDeleted
from app.services.timezones import validate_timezone


@dataclass(frozen=True)
class EventInfo:
    timezone: str
    organizer_id: str


class EventDirectory(Protocol):
    def get_timezone_and_ownership(self, event_id: str) -> EventInfo | None: ...
    def exists(self, event_id: str) -> bool: ...


class SpeakerDirectory(Protocol):
    def exists(self, speaker_id: str) -> bool: ...


class InMemoryEventDirectory:
    """Dict-backed EventDirectory. Removing an event publishes EventDeleted."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self._events: dict[str, EventInfo] = {}
        self._bus = bus

    def add(self, event_id: str, timezone: str, organizer_id: str) -> EventInfo:
        validate_timezone(timezone)
        info = EventInfo(timezone=timezone, organizer_id=organizer_id)
        self._events[event_id] = info
        return info

    def remove(self, event_id: str) -> None:
        if self._events.pop(event_id, None) is not None and self._bus:
            self._bus.publish(EventDeleted(event_id=event_id))

    def get_timezone_and_ownership(self, event_id: str) -> EventInfo | None:
        return self._events.get(event_id)

    def exists(self, event_id: str) -> bool:
        return event_id in self._events


class InMemorySpeakerDirectory:
    """Set-backed SpeakerDirectory. Removing a speaker publishes SpeakerDeleted."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self._speakers: set[str] = set()
        self._bus = bus

    def add(self, speaker_id: str) -> None:
        self._speakers.add(speaker_id)

    def remove(self, speaker_id: str) -> None:
        if speaker_id in self._speakers:
            self._speakers.discard(speaker_id)
            if self._bus:
                self._bus.publish(SpeakerDeleted(speaker_id=speaker_id))

    def exists(self, speaker_id: str) -> bool:
        return speaker_id in self._speakers
