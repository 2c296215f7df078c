"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from app.domain.bus import EventBus
from app.domain.events import (
    EventDeleted,
    ScheduleEntryCreated,
    ScheduleEntryDeleted,
    ScheduleEntryUpdated,
    SpeakerDeleted,
)
from app.domain.models import normalize_location
from app.repos.memory import ScheduleRepository
from app.services.conflicts import find_conflicts

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the schedule store."""

    def __init__(self, bus: EventBus, schedule_repo: ScheduleRepository) -> None:
        self.bus = bus
        self.schedule_repo = schedule_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ScheduleEntryCreated, self.on_entry_created)
        self.bus.subscribe(ScheduleEntryUpdated, self.on_entry_updated)
        self.bus.subscribe(ScheduleEntryDeleted, self.on_entry_deleted)
        self.bus.subscribe(EventDeleted, self.on_event_deleted)
        self.bus.subscribe(SpeakerDeleted, self.on_speaker_deleted)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_entry_created(self, event: ScheduleEntryCreated) -> None:
        self._warn_on_overlap(event.entry_id)

    def on_entry_updated(self, event: ScheduleEntryUpdated) -> None:
        if event.slot_changed:
            self._warn_on_overlap(event.entry_id)

    def on_entry_deleted(self, event: ScheduleEntryDeleted) -> None:
        logger.info(
            f"Released {len(event.speaker_ids)} speaker assignment(s)",
            extra={"event_id": event.event_id, "entry_id": event.entry_id},
        )

    def on_event_deleted(self, event: EventDeleted) -> None:
        removed = self.schedule_repo.delete_for_event(event.event_id)
        logger.info(
            f"Cascaded event deletion to {len(removed)} schedule entries",
            extra={"event_id": event.event_id},
        )

    def on_speaker_deleted(self, event: SpeakerDeleted) -> None:
        sessions = self.schedule_repo.list_for_speaker(event.speaker_id)
        self.schedule_repo.remove_speaker(event.speaker_id)
        for session in sessions:
            logger.info(
                f"Removed speaker {event.speaker_id} from '{session.title}'",
                extra={"event_id": session.event_id, "entry_id": session.id},
            )

    # ------------------------------------------------------------------

    def _warn_on_overlap(self, entry_id: str) -> None:
        """Log a warning when an entry shares its location and time with others.

        Purely advisory: the write has already happened and stays. Entries
        without a location never conflict.
        """
        stored = self.schedule_repo.get(entry_id)
        if stored is None or normalize_location(stored.location) is None:
            return

        conflicts = find_conflicts(
            stored.start_time,
            stored.end_time,
            self.schedule_repo.list_for_event(stored.event_id),
            location=stored.location,
            exclude_id=stored.id,
        )
        if conflicts:
            logger.warning(
                f"'{stored.title}' overlaps "
                + ", ".join(f"'{c.title}'" for c in conflicts)
                + f" at {stored.location}",
                extra={
                    "event_id": stored.event_id,
                    "entry_id": stored.id,
                    "conflict_count": len(conflicts),
                },
            )
