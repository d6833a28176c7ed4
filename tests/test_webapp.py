from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import at
from ditl.webapp import create_app


@pytest.fixture
def client(store):
    return TestClient(create_app(store=store))


def test_today_starts_empty(client):
    payload = client.get("/api/today").json()
    assert payload["date"] == "2024-05-01"
    assert payload["state"] == "idle"
    assert payload["current"] is None
    assert payload["timeline"] == []
    assert payload["quick_starts"] == ["Homework", "Scroll", "Code", "Eat"]
    assert payload["quick_starts_disabled"] is False


def test_start_and_end_current_activity(client, clock):
    started = client.post("/api/current", json={"title": "Homework"}).json()
    assert started["started"] is True
    assert started["state"] == "running"
    assert started["timeline"][-1]["in_progress"] is True

    clock.advance(minutes=12, seconds=30)
    today = client.get("/api/today").json()
    assert today["current"]["elapsed_display"] == "12:30"

    ended = client.post("/api/current/end").json()
    assert ended["ended"] is True
    assert ended["activity"]["duration_minutes"] == 12
    assert ended["state"] == "idle"
    assert [item["title"] for item in ended["timeline"]] == ["Homework"]


def test_start_while_running_reports_not_started(client):
    client.post("/api/current", json={"title": "Code"})
    second = client.post("/api/current", json={"title": "Eat"}).json()
    assert second["started"] is False
    assert second["current"]["title"] == "Code"


def test_end_while_idle_reports_not_ended(client, store):
    payload = client.post("/api/current/end").json()
    assert payload["ended"] is False
    assert store.fetch_today_activities() == []


def test_empty_title_is_rejected(client):
    assert client.post("/api/current", json={"title": " "}).status_code == 400


def test_manual_entry_lifecycle(client):
    created = client.post(
        "/api/activities",
        json={
            "title": "Eat",
            "start_time": "2024-05-01T12:00:00",
            "end_time": "2024-05-01T12:02:59",
        },
    )
    assert created.status_code == 201
    entry = created.json()
    assert entry["duration_minutes"] == 2

    edited = client.patch(
        f"/api/activities/{entry['id']}",
        json={
            "title": "Lunch",
            "start_time": "2024-05-01T12:00:00",
            "end_time": "2024-05-01T12:45:00",
        },
    ).json()
    assert edited["title"] == "Lunch"
    assert edited["duration_minutes"] == 45

    assert client.delete(f"/api/activities/{entry['id']}").status_code == 200
    assert client.get("/api/today").json()["timeline"] == []


def test_invalid_and_missing_entries(client):
    body = {
        "title": "Eat",
        "start_time": "2024-05-01T13:00:00",
        "end_time": "2024-05-01T12:00:00",
    }
    assert client.post("/api/activities", json=body).status_code == 400
    body["end_time"] = "2024-05-01T14:00:00"
    assert client.patch("/api/activities/99", json=body).status_code == 404
    assert client.delete("/api/activities/99").status_code == 404


def test_entry_template_is_unsaved(client):
    template = client.get("/api/activities/template").json()
    assert template["id"] == -1
    assert template["title"] == ""
    assert template["duration_minutes"] == 0


def test_quick_starts_and_disabled_flag(client):
    payload = client.get("/api/quick-starts").json()
    assert payload == {
        "quick_starts": ["Homework", "Scroll", "Code", "Eat"],
        "disabled": False,
    }
    client.post("/api/current", json={"title": "Code"})
    assert client.get("/api/quick-starts").json()["disabled"] is True


def test_stats_endpoint(client, store):
    store.create_activity("Code", at(9), at(10), 60)
    store.create_activity("Eat", at(12), at(12, 20), 20)

    payload = client.get("/api/stats").json()
    assert payload["total_minutes"] == 80
    assert payload["total_display"] == "1h 20m"
    assert [row["minutes"] for row in payload["most_time_consuming"]] == [60, 20]

    assert client.get("/api/stats", params={"date": "2024-04-30"}).json()["total_minutes"] == 0
    assert client.get("/api/stats", params={"date": "yesterday"}).status_code == 400


def test_theme_preference_endpoints(client):
    assert client.get("/api/preferences/theme").json()["theme"] == "light"
    toggled = client.put("/api/preferences/theme", json={"toggle": True}).json()
    assert toggled["theme"] == "dark"
    assert toggled["palette"]["background"] == "#2A2A28"
    assert client.put("/api/preferences/theme", json={"theme": "light"}).json()["theme"] == "light"
    assert client.put("/api/preferences/theme", json={"theme": "neon"}).status_code == 400
    assert client.put("/api/preferences/theme", json={}).status_code == 400


def test_video_placeholder(client):
    assert client.get("/api/video").json()["available"] is False


def test_running_activity_disables_quick_starts_in_today(client):
    client.post("/api/current", json={"title": "Code"})
    assert client.get("/api/today").json()["quick_starts_disabled"] is True


def test_entry_mixing_offset_and_local_times(client):
    local_start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    body = {
        "title": "Eat",
        "start_time": "2024-05-01T12:00:00Z",
        "end_time": (local_start + timedelta(minutes=30)).isoformat(),
    }
    created = client.post("/api/activities", json=body)
    assert created.status_code == 201
    assert created.json()["start_time"] == local_start.isoformat()
    assert created.json()["duration_minutes"] == 30

    body["end_time"] = (local_start - timedelta(minutes=1)).isoformat()
    assert client.post("/api/activities", json=body).status_code == 400


def test_offset_entry_is_listed_in_local_time(store):
    aware = datetime(2024, 5, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    local = aware.astimezone().replace(tzinfo=None)
    store.clock.now = local
    client = TestClient(create_app(store=store))

    created = client.post(
        "/api/activities",
        json={
            "title": "Read",
            "start_time": aware.isoformat(),
            "end_time": (aware + timedelta(minutes=20)).isoformat(),
        },
    ).json()
    listed = client.get("/api/today").json()["timeline"]

    assert created["start_time"] == local.isoformat()
    assert [item["start_time"] for item in listed] == [local.isoformat()]


def test_lifespan_refreshes_and_warns_about_unsaved_activity(store, caplog):
    caplog.set_level(logging.WARNING, logger="ditl.webapp")
    store.create_activity("Code", at(8), at(9), 60)
    app = create_app(store=store)

    with TestClient(app) as client:
        assert [a.title for a in app.state.tracker.timeline] == ["Code"]
        client.post("/api/current", json={"title": "Eat"})

    assert "'Eat' still running" in caplog.text


def test_concurrent_theme_toggles_are_not_lost(client):
    def toggle(_):
        return client.put("/api/preferences/theme", json={"toggle": True}).status_code

    with ThreadPoolExecutor(max_workers=4) as pool:
        assert set(pool.map(toggle, range(8))) == {200}

    assert client.get("/api/preferences/theme").json()["theme"] == "light"
