"""Shared fixtures: a fresh bus, directories, repository and service per test."""

from __future__ import annotations

import pytest

from app.domain.bus import EventBus
from app.domain.handlers import HandlerRegistry
from app.domain.models import CreateScheduleEntryRequest
from app.repos.collaborators import InMemoryEventDirectory, InMemorySpeakerDirectory
from app.repos.memory import ScheduleRepository
from app.services.schedule import ScheduleService

EVENT_ID = "evt-1"
ORGANIZER_ID = "org-1"
EVENT_TZ = "America/New_York"


class Env:
    bus: EventBus
    repo: ScheduleRepository
    events: InMemoryEventDirectory
    speakers: InMemorySpeakerDirectory
    registry: HandlerRegistry
    service: ScheduleService

    def create(self, **overrides):
        defaults = dict(
            event_id=EVENT_ID,
            title="Opening keynote",
            description="Welcome to the conference",
            date="2026-06-15",
            start_time="09:00",
            end_time="10:00",
            location="Main Hall",
        )
        defaults.update(overrides)
        return self.service.create(CreateScheduleEntryRequest(**defaults))


@pytest.fixture()
def env() -> Env:
    e = Env()
    e.bus = EventBus()
    e.repo = ScheduleRepository()
    e.events = InMemoryEventDirectory(bus=e.bus)
    e.speakers = InMemorySpeakerDirectory(bus=e.bus)
    e.registry = HandlerRegistry(bus=e.bus, schedule_repo=e.repo)
    e.service = ScheduleService(
        repo=e.repo, events=e.events, speakers=e.speakers, bus=e.bus
    )

    e.events.add(EVENT_ID, timezone=EVENT_TZ, organizer_id=ORGANIZER_ID)
    for speaker_id in ("x", "y", "z"):
        e.speakers.add(speaker_id)
    return e
