"""Tests for the event bus wiring: cascades and advisory overlap warnings."""

from __future__ import annotations

import logging

from app.domain.bus import EventBus
from app.domain.events import EventDeleted, ScheduleEntryCreated

EVENT_ID = "evt-1"


def test_bus_calls_handlers_in_registration_order():
    bus = EventBus()
    calls: list[str] = []
    bus.subscribe(EventDeleted, lambda e: calls.append(f"first:{e.event_id}"))
    bus.subscribe(EventDeleted, lambda e: calls.append(f"second:{e.event_id}"))

    bus.publish(EventDeleted(event_id="e1"))
    bus.publish(ScheduleEntryCreated(entry_id="x", event_id="e1"))

    assert calls == ["first:e1", "second:e1"]


# ---------------------------------------------------------------------------
# Cascades
# ---------------------------------------------------------------------------


def test_removing_event_cascades_to_entries_and_assignments(env):
    env.events.add("evt-2", timezone="UTC", organizer_id="org-2")
    kept = env.create(event_id="evt-2", title="Other event session")
    env.create(title="Session A", speaker_ids=["x"])
    env.create(title="Session B", speaker_ids=["y"])

    env.events.remove(EVENT_ID)

    assert env.repo.list_for_event(EVENT_ID) == []
    assert env.repo.list_for_speaker("x") == []
    assert env.repo.get(kept.id) is not None
    assert env.speakers.exists("x")


def test_removing_speaker_drops_only_their_assignments(env):
    entry = env.create(speaker_ids=["x", "y"])

    env.speakers.remove("x")

    stored = env.repo.get(entry.id)
    assert stored is not None
    assert stored.speaker_ids == ["y"]
    assert stored.last_modified > entry.last_modified


def test_removing_speaker_logs_each_affected_session(env, caplog):
    first = env.create(title="Session A", speaker_ids=["x"])
    env.create(title="Session B", speaker_ids=["y"])

    with caplog.at_level(logging.INFO, logger="app.domain.handlers"):
        env.speakers.remove("x")

    records = [r for r in caplog.records if r.name == "app.domain.handlers"]
    assert [r.entry_id for r in records] == [first.id]
    assert "'Session A'" in records[0].getMessage()
    assert env.repo.list_for_speaker("x") == []


def test_removing_unknown_event_is_a_no_op(env):
    env.create()
    env.events.remove("never-existed")
    assert len(env.repo.list_for_event(EVENT_ID)) == 1


# ---------------------------------------------------------------------------
# Advisory overlap
# ---------------------------------------------------------------------------


def test_clashing_create_logs_warning(env, caplog):
    env.create(title="Session A", start_time="09:00", end_time="10:00")
    with caplog.at_level(logging.WARNING, logger="app.domain.handlers"):
        env.create(title="Session B", start_time="09:30", end_time="10:30")

    warnings = [r for r in caplog.records if r.name == "app.domain.handlers"]
    assert len(warnings) == 1
    assert "Session A" in warnings[0].getMessage()
    assert warnings[0].conflict_count == 1


def test_sessions_without_location_never_warn(env, caplog):
    env.create(title="Lunch", location=None)
    with caplog.at_level(logging.WARNING, logger="app.domain.handlers"):
        env.create(title="Hallway track", location=None)

    assert [r for r in caplog.records if r.name == "app.domain.handlers"] == []


def test_blank_locations_never_warn(env, caplog):
    env.create(title="Coffee", location="")
    with caplog.at_level(logging.WARNING, logger="app.domain.handlers"):
        env.create(title="Networking", location=" ")

    assert [r for r in caplog.records if r.name == "app.domain.handlers"] == []


def test_back_to_back_create_does_not_warn(env, caplog):
    env.create(title="Session A", start_time="09:00", end_time="10:00")
    with caplog.at_level(logging.WARNING, logger="app.domain.handlers"):
        env.create(title="Session C", start_time="10:00", end_time="11:00")

    assert [r for r in caplog.records if r.name == "app.domain.handlers"] == []
