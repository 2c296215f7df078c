"""In-memory repository for schedule entries and speaker assignments."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from app.domain.errors import DuplicateAssignmentError, ResourceNotFoundError
from app.domain.models import ScheduleEntry, SpeakerAssignment, SpeakerRole
from app.services.concurrency import ensure_current, next_stamp

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unique(ids: Iterable[str]) -> list[str]:
    """Drop duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


class ScheduleRepository:
    """Dict-backed store for ScheduleEntry and SpeakerAssignment records.

    All writes, including the compare-and-swap used for optimistic
    concurrency, run inside one re-entrant lock so no reader ever sees a
    half-applied update. Reads hand out copies.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._entries: dict[str, ScheduleEntry] = {}
        # entry id -> speaker id -> assignment
        self._assignments: dict[str, dict[str, SpeakerAssignment]] = {}
        self._lock = threading.RLock()
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> ScheduleEntry | None:
        with self._lock:
            stored = self._entries.get(entry_id)
            return self._materialize(stored) if stored else None

    def list_for_event(self, event_id: str) -> list[ScheduleEntry]:
        with self._lock:
            entries = [
                self._materialize(e)
                for e in self._entries.values()
                if e.event_id == event_id
            ]
        return sorted(entries, key=lambda e: (e.start_time, e.created_at))

    def list_for_speaker(self, speaker_id: str) -> list[ScheduleEntry]:
        with self._lock:
            return [
                self._materialize(self._entries[entry_id])
                for entry_id, by_speaker in self._assignments.items()
                if speaker_id in by_speaker
            ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(
        self, entry: ScheduleEntry, speaker_ids: Iterable[str] | None = None
    ) -> ScheduleEntry:
        """Persist a new entry together with its initial speaker assignments."""
        with self._lock:
            stamp = next_stamp(None, self._clock())
            stored = entry.model_copy(
                update={"created_at": stamp, "last_modified": stamp, "speakers": []}
            )
            self._entries[stored.id] = stored
            self._assignments[stored.id] = {}
            self._insert_assignments(stored.id, _unique(speaker_ids or []))
            return self._materialize(stored)

    def compare_and_swap(
        self,
        entry_id: str,
        expected_stamp: datetime,
        changes: dict[str, Any],
        speaker_ids: Iterable[str] | None = None,
    ) -> ScheduleEntry:
        """Apply *changes* only if the entry still carries *expected_stamp*.

        Raises ``ResourceNotFoundError`` for an unknown id and
        ``ConcurrencyError`` for a stale stamp; in both cases nothing is
        written. When *speaker_ids* is given the assignment set is reconciled
        to exactly those ids in the same step.
        """
        with self._lock:
            current = self._entries.get(entry_id)
            if current is None:
                raise ResourceNotFoundError("ScheduleEntry", entry_id)
            ensure_current(entry_id, expected_stamp, current.last_modified)

            updated = current.model_copy(
                update={
                    **changes,
                    "last_modified": next_stamp(current.last_modified, self._clock()),
                }
            )
            if speaker_ids is not None:
                self._reconcile_assignments(entry_id, _unique(speaker_ids))
            self._entries[entry_id] = updated
            return self._materialize(updated)

    def delete(self, entry_id: str) -> ScheduleEntry | None:
        """Remove an entry and cascade to its speaker assignments."""
        with self._lock:
            stored = self._entries.get(entry_id)
            if stored is None:
                return None
            removed = self._materialize(stored)
            del self._entries[entry_id]
            self._assignments.pop(entry_id, None)
            return removed

    def delete_for_event(self, event_id: str) -> list[str]:
        """Remove every entry owned by *event_id*; returns the removed ids."""
        with self._lock:
            to_remove = [
                eid for eid, e in self._entries.items() if e.event_id == event_id
            ]
            for eid in to_remove:
                del self._entries[eid]
                self._assignments.pop(eid, None)
        return to_remove

    def add_assignment(
        self,
        entry_id: str,
        speaker_id: str,
        role: SpeakerRole = SpeakerRole.SPEAKER,
    ) -> ScheduleEntry:
        with self._lock:
            stored = self._require(entry_id)
            if speaker_id in self._assignments[entry_id]:
                raise DuplicateAssignmentError(entry_id, speaker_id)
            self._insert_assignments(entry_id, [speaker_id], role)
            return self._touch(stored)

    def remove_assignment(self, entry_id: str, speaker_id: str) -> ScheduleEntry:
        with self._lock:
            stored = self._require(entry_id)
            if self._assignments[entry_id].pop(speaker_id, None) is None:
                raise ResourceNotFoundError(
                    "SpeakerAssignment", f"{entry_id}/{speaker_id}"
                )
            return self._touch(stored)

    def remove_speaker(self, speaker_id: str) -> list[str]:
        """Drop every assignment of *speaker_id*; returns the affected entry ids."""
        with self._lock:
            affected = [
                entry_id
                for entry_id, by_speaker in self._assignments.items()
                if by_speaker.pop(speaker_id, None) is not None
            ]
            for entry_id in affected:
                self._touch(self._entries[entry_id])
        return affected

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _require(self, entry_id: str) -> ScheduleEntry:
        stored = self._entries.get(entry_id)
        if stored is None:
            raise ResourceNotFoundError("ScheduleEntry", entry_id)
        return stored

    def _touch(self, stored: ScheduleEntry) -> ScheduleEntry:
        updated = stored.model_copy(
            update={"last_modified": next_stamp(stored.last_modified, self._clock())}
        )
        self._entries[stored.id] = updated
        return self._materialize(updated)

    def _insert_assignments(
        self,
        entry_id: str,
        speaker_ids: list[str],
        role: SpeakerRole = SpeakerRole.SPEAKER,
    ) -> None:
        by_speaker = self._assignments[entry_id]
        for speaker_id in speaker_ids:
            by_speaker[speaker_id] = SpeakerAssignment(
                schedule_entry_id=entry_id,
                speaker_id=speaker_id,
                role=role,
                created_at=self._clock(),
            )

    def _reconcile_assignments(self, entry_id: str, desired: list[str]) -> None:
        by_speaker = self._assignments[entry_id]
        removed = set(by_speaker) - set(desired)
        added = [sid for sid in desired if sid not in by_speaker]
        for speaker_id in removed:
            del by_speaker[speaker_id]
        self._insert_assignments(entry_id, added)
        logger.debug(
            f"Reconciled speakers on {entry_id}: -{len(removed)} +{len(added)}",
            extra={"entry_id": entry_id},
        )

    def _materialize(self, stored: ScheduleEntry) -> ScheduleEntry:
        speakers = [
            a.model_copy() for a in self._assignments.get(stored.id, {}).values()
        ]
        return stored.model_copy(update={"speakers": speakers}, deep=True)
