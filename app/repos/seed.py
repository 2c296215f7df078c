"""Seed data – one two-track conference day useful for overlap testing."""

from __future__ import annotations

from app.domain.models import CreateScheduleEntryRequest, SessionType
from app.repos.collaborators import InMemoryEventDirectory, InMemorySpeakerDirectory
from app.services.schedule import ScheduleService

DEMO_EVENT_ID = "demo-event"
DEMO_ORGANIZER_ID = "demo-organizer"


def seed_demo_schedule(
    events: InMemoryEventDirectory,
    speakers: InMemorySpeakerDirectory,
    service: ScheduleService,
) -> None:
    events.add(DEMO_EVENT_ID, timezone="Europe/Berlin", organizer_id=DEMO_ORGANIZER_ID)
    for speaker_id in ("ada", "grace", "linus"):
        speakers.add(speaker_id)

    sessions = [
        dict(
            title="Opening keynote",
            start_time="09:00",
            end_time="10:00",
            location="Main Hall",
            session_type=SessionType.KEYNOTE,
            speaker_ids=["ada"],
        ),
        dict(
            title="Typed Python at scale",
            start_time="10:00",
            end_time="10:45",
            location="Main Hall",
            track="Backend",
            track_color="#2563EB",
            session_type=SessionType.TALK,
            speaker_ids=["grace"],
        ),
        dict(
            title="Hands-on profiling",
            start_time="10:00",
            end_time="11:30",
            location="Room B",
            track="Workshops",
            track_color="#16A34A",
            session_type=SessionType.WORKSHOP,
            speaker_ids=["linus", "grace"],
        ),
        dict(
            title="Coffee break",
            start_time="10:45",
            end_time="11:15",
            session_type=SessionType.BREAK,
        ),
    ]
    for session in sessions:
        service.create(
            CreateScheduleEntryRequest(
                event_id=DEMO_EVENT_ID,
                description=f"{session['title']} at the demo conference",
                date="2026-09-17",
                **session,
            )
        )
