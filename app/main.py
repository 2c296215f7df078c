"""FastAPI application: entry point for the event schedule service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, Query

from app.api.error_handlers import register_error_handlers
from app.config import get_settings
from app.domain.bus import EventBus
from app.domain.errors import ForbiddenError
from app.domain.handlers import HandlerRegistry
from app.domain.models import (
    DATE_PATTERN,
    AssignSpeakerRequest,
    CheckOverlapRequest,
    CreateScheduleEntryRequest,
    DaySchedule,
    OverlapReport,
    ScheduleEntry,
    Track,
    UpdateScheduleEntryRequest,
)
from app.observability import setup_logging
from app.repos.collaborators import InMemoryEventDirectory, InMemorySpeakerDirectory
from app.repos.memory import ScheduleRepository
from app.repos.seed import seed_demo_schedule
from app.services.schedule import ScheduleService

logger = logging.getLogger(__name__)

settings = get_settings()

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
schedule_repo = ScheduleRepository()
event_directory = InMemoryEventDirectory(bus=event_bus)
speaker_directory = InMemorySpeakerDirectory(bus=event_bus)

handler_registry = HandlerRegistry(bus=event_bus, schedule_repo=schedule_repo)

schedule_service = ScheduleService(
    repo=schedule_repo,
    events=event_directory,
    speakers=speaker_directory,
    bus=event_bus,
    default_track_color=settings.default_track_color,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_logging(settings.log_level, settings.log_format)
    if settings.seed_demo_data:
        seed_demo_schedule(event_directory, speaker_directory, schedule_service)
    logger.info(f"{settings.app_name} started")
    yield
    logger.info(f"{settings.app_name} shutting down")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
register_error_handlers(app)


def _require_organizer(event_id: str, user_id: str | None) -> None:
    """Ownership gate. The schedule core never makes this decision itself."""
    info = schedule_service.event_info(event_id)
    if user_id is None or user_id != info.organizer_id:
        raise ForbiddenError()


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/schedule", response_model=ScheduleEntry, status_code=201)
def create_entry(
    payload: CreateScheduleEntryRequest,
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> ScheduleEntry:
    """Create a session from local date/time in the event's timezone."""
    _require_organizer(payload.event_id, user_id)
    return schedule_service.create(payload)


@app.get("/schedule/{entry_id}", response_model=ScheduleEntry)
def get_entry(entry_id: str) -> ScheduleEntry:
    return schedule_service.get(entry_id)


@app.patch("/schedule/{entry_id}", response_model=ScheduleEntry)
def update_entry(
    entry_id: str,
    payload: UpdateScheduleEntryRequest,
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> ScheduleEntry:
    """Partial update. Returns 409 when ``expected_stamp`` is stale."""
    entry = schedule_service.get(entry_id)
    _require_organizer(entry.event_id, user_id)
    return schedule_service.update(entry_id, payload)


@app.delete("/schedule/{entry_id}")
def delete_entry(
    entry_id: str,
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> dict:
    entry = schedule_service.get(entry_id)
    _require_organizer(entry.event_id, user_id)
    return schedule_service.delete(entry_id)


@app.post(
    "/schedule/{entry_id}/speakers", response_model=ScheduleEntry, status_code=201
)
def assign_speaker(
    entry_id: str,
    payload: AssignSpeakerRequest,
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> ScheduleEntry:
    entry = schedule_service.get(entry_id)
    _require_organizer(entry.event_id, user_id)
    return schedule_service.assign_speaker(entry_id, payload.speaker_id, payload.role)


@app.delete("/schedule/{entry_id}/speakers/{speaker_id}", response_model=ScheduleEntry)
def unassign_speaker(
    entry_id: str,
    speaker_id: str,
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> ScheduleEntry:
    entry = schedule_service.get(entry_id)
    _require_organizer(entry.event_id, user_id)
    return schedule_service.unassign_speaker(entry_id, speaker_id)


@app.get("/events/{event_id}/schedule", response_model=list[ScheduleEntry])
def list_entries(
    event_id: str,
    date: str | None = Query(default=None, pattern=DATE_PATTERN),
    track: str | None = None,
) -> list[ScheduleEntry]:
    """Entries ordered by start time, optionally one local day or one track."""
    return schedule_service.list(event_id, date=date, track=track)


@app.get("/events/{event_id}/schedule/days/{date}", response_model=DaySchedule)
def get_day(event_id: str, date: str) -> DaySchedule:
    return schedule_service.get_by_date(event_id, date)


@app.get("/events/{event_id}/tracks", response_model=list[Track])
def get_tracks(event_id: str) -> list[Track]:
    return schedule_service.get_tracks(event_id)


@app.post("/events/{event_id}/schedule/overlaps", response_model=OverlapReport)
def check_overlap(event_id: str, payload: CheckOverlapRequest) -> OverlapReport:
    """Advisory overlap report. Never blocks a create or update."""
    return schedule_service.check_overlap(
        event_id,
        payload.start_time,
        payload.end_time,
        location=payload.location,
        exclude_id=payload.exclude_id,
    )
