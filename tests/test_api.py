"""API tests for the schedule routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import (
    app,
    event_directory,
    schedule_repo,
    speaker_directory,
)

EVENT_ID = "api-event"
ORGANIZER = {"X-User-Id": "organizer-1"}


def _reset() -> None:
    schedule_repo._entries.clear()
    schedule_repo._assignments.clear()
    event_directory._events.clear()
    speaker_directory._speakers.clear()


@pytest.fixture(autouse=True)
def _clear_repos():
    _reset()
    event_directory.add(EVENT_ID, timezone="Europe/Berlin", organizer_id="organizer-1")
    for speaker_id in ("x", "y", "z"):
        speaker_directory.add(speaker_id)
    yield
    _reset()


@pytest.fixture()
def client():
    return TestClient(app)


def _create(client: TestClient, **overrides) -> dict:
    body = dict(
        event_id=EVENT_ID,
        title="Opening keynote",
        description="Welcome",
        date="2026-09-17",
        start_time="09:00",
        end_time="10:00",
        location="Main Hall",
    )
    body.update(overrides)
    resp = client.post("/schedule", json=body, headers=ORGANIZER)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_returns_utc_times_and_assignments(client: TestClient):
    entry = _create(client, speaker_ids=["x", "y"])

    assert entry["start_time"].startswith("2026-09-17T07:00:00")
    assert entry["end_time"].startswith("2026-09-17T08:00:00")
    assert [s["speaker_id"] for s in entry["speakers"]] == ["x", "y"]
    assert entry["speakers"][0]["role"] == "speaker"
    assert entry["last_modified"]


def test_create_requires_organizer(client: TestClient):
    body = dict(
        event_id=EVENT_ID,
        title="Sneaky session",
        description="",
        date="2026-09-17",
        start_time="09:00",
        end_time="10:00",
    )
    resp = client.post("/schedule", json=body, headers={"X-User-Id": "intruder"})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"

    resp = client.post("/schedule", json=body)
    assert resp.status_code == 403


def test_create_unknown_event_is_404(client: TestClient):
    resp = client.post(
        "/schedule",
        json=dict(
            event_id="missing",
            title="Nowhere",
            description="",
            date="2026-09-17",
            start_time="09:00",
            end_time="10:00",
        ),
        headers=ORGANIZER,
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["category"] == "resource_not_found"


def test_create_malformed_time_is_400(client: TestClient):
    resp = client.post(
        "/schedule",
        json=dict(
            event_id=EVENT_ID,
            title="Bad time",
            description="",
            date="2026-09-17",
            start_time="9am",
            end_time="10:00",
        ),
        headers=ORGANIZER,
    )
    assert resp.status_code == 400
    fields = [d["field"] for d in resp.json()["error"]["details"]]
    assert "body.start_time" in fields


def test_create_end_before_start_is_400(client: TestClient):
    resp = client.post(
        "/schedule",
        json=dict(
            event_id=EVENT_ID,
            title="Backwards",
            description="",
            date="2026-09-17",
            start_time="11:00",
            end_time="10:00",
        ),
        headers=ORGANIZER,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["field"] == "end_time"


def test_update_then_stale_update_is_409(client: TestClient):
    entry = _create(client)
    t1 = entry["last_modified"]

    second = client.patch(
        f"/schedule/{entry['id']}",
        json={"expected_stamp": t1, "title": "Second caller"},
        headers=ORGANIZER,
    )
    assert second.status_code == 200
    assert second.json()["last_modified"] != t1

    first = client.patch(
        f"/schedule/{entry['id']}",
        json={"expected_stamp": t1, "title": "First caller"},
        headers=ORGANIZER,
    )
    assert first.status_code == 409
    error = first.json()["error"]
    assert error["code"] == "CONCURRENCY_CONFLICT"
    assert error["details"]["current_stamp"]

    stored = client.get(f"/schedule/{entry['id']}").json()
    assert stored["title"] == "Second caller"


def test_update_replaces_speakers(client: TestClient):
    entry = _create(client, speaker_ids=["x", "y"])

    resp = client.patch(
        f"/schedule/{entry['id']}",
        json={"expected_stamp": entry["last_modified"], "speaker_ids": ["y", "z"]},
        headers=ORGANIZER,
    )

    assert resp.status_code == 200
    assert sorted(s["speaker_id"] for s in resp.json()["speakers"]) == ["y", "z"]


def test_delete_entry(client: TestClient):
    entry = _create(client, speaker_ids=["x"])

    resp = client.delete(f"/schedule/{entry['id']}", headers=ORGANIZER)
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    assert client.get(f"/schedule/{entry['id']}").status_code == 404
    assert client.delete(f"/schedule/{entry['id']}", headers=ORGANIZER).status_code == 404


def test_list_and_filters(client: TestClient):
    _create(client, title="Afternoon", start_time="14:00", end_time="15:00", track="Web")
    _create(client, title="Morning", start_time="09:00", end_time="10:00", track="Data")
    _create(client, title="Next day", date="2026-09-18")

    all_titles = [e["title"] for e in client.get(f"/events/{EVENT_ID}/schedule").json()]
    assert all_titles == ["Morning", "Afternoon", "Next day"]

    day = client.get(f"/events/{EVENT_ID}/schedule", params={"date": "2026-09-17"})
    assert [e["title"] for e in day.json()] == ["Morning", "Afternoon"]

    web = client.get(f"/events/{EVENT_ID}/schedule", params={"track": "Web"})
    assert [e["title"] for e in web.json()] == ["Afternoon"]


def test_day_view(client: TestClient):
    _create(client, title="Data talk", track="Data")
    resp = client.get(f"/events/{EVENT_ID}/schedule/days/2026-09-17")
    assert resp.status_code == 200
    body = resp.json()
    assert body["timezone"] == "Europe/Berlin"
    assert body["tracks"] == ["Data"]
    assert len(body["entries"]) == 1


def test_tracks(client: TestClient):
    _create(client, title="Data talk", track="Data", track_color="#16A34A")
    _create(client, title="Web talk", track="Web")

    resp = client.get(f"/events/{EVENT_ID}/tracks")

    assert resp.json() == [
        {"name": "Data", "color": "#16A34A"},
        {"name": "Web", "color": "#6B7280"},
    ]


def test_check_overlap_scenario(client: TestClient):
    a = _create(client, title="Session A", start_time="09:00", end_time="10:00")
    b = _create(client, title="Session B", start_time="09:30", end_time="10:30")
    c = _create(client, title="Session C", start_time="10:30", end_time="11:00")

    resp = client.post(
        f"/events/{EVENT_ID}/schedule/overlaps",
        json={
            "start_time": b["start_time"],
            "end_time": b["end_time"],
            "location": "Main Hall",
            "exclude_id": b["id"],
        },
    )

    body = resp.json()
    assert body["has_overlap"] is True
    assert body["count"] == 1
    assert body["conflicts"][0]["id"] == a["id"]
    assert c["id"] not in [e["id"] for e in body["conflicts"]]


def test_assign_and_unassign_speaker(client: TestClient):
    entry = _create(client)

    resp = client.post(
        f"/schedule/{entry['id']}/speakers",
        json={"speaker_id": "x", "role": "moderator"},
        headers=ORGANIZER,
    )
    assert resp.status_code == 201
    assert resp.json()["speakers"][0]["role"] == "moderator"

    dup = client.post(
        f"/schedule/{entry['id']}/speakers",
        json={"speaker_id": "x"},
        headers=ORGANIZER,
    )
    assert dup.status_code == 409
    assert dup.json()["error"]["code"] == "DUPLICATE_ASSIGNMENT"

    resp = client.delete(f"/schedule/{entry['id']}/speakers/x", headers=ORGANIZER)
    assert resp.status_code == 200
    assert resp.json()["speakers"] == []


def test_check_overlap_blank_location_matches_every_room(client: TestClient):
    hall = _create(client, title="Room A talk", location="Main Hall")
    blank = _create(client, title="Blank one", location="")
    assert blank["location"] is None

    resp = client.post(
        f"/events/{EVENT_ID}/schedule/overlaps",
        json={
            "start_time": hall["start_time"],
            "end_time": hall["end_time"],
            "location": "",
            "exclude_id": hall["id"],
        },
    )

    assert [e["title"] for e in resp.json()["conflicts"]] == ["Blank one"]


def test_check_overlap_inverted_range_is_empty(client: TestClient):
    entry = _create(client)

    resp = client.post(
        f"/events/{EVENT_ID}/schedule/overlaps",
        json={"start_time": entry["end_time"], "end_time": entry["start_time"]},
    )

    assert resp.status_code == 200
    assert resp.json() == {"has_overlap": False, "count": 0, "conflicts": []}
