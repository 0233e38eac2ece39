import json

import pytest
from fastapi.testclient import TestClient

from nurdaily.api.server import create_app


@pytest.fixture
def client(journal_app):
    return TestClient(create_app(journal_app))


def test_status(client):
    response = client.get("/api/status")

    assert response.status_code == 200
    body = response.json()
    assert body["today"] == "2024-03-11"
    assert body["timers"] == []


def test_entry_roundtrip(client):
    blank = client.get("/api/journal/entries/2024-03-11").json()
    assert blank["workout"] is None
    assert blank["customTasks"] == []

    blank["workout"] = "Yes"
    blank["prayers"]["fajr"] = True
    saved = client.put("/api/journal/entries", json=blank).json()
    assert saved["workout"] == "Yes"
    assert saved["hijriDate"] == ""

    listed = client.get("/api/journal/entries").json()
    assert [e["id"] for e in listed] == [saved["id"]]

    assert client.delete(f"/api/journal/entries/{saved['id']}").status_code == 200
    assert client.delete(f"/api/journal/entries/{saved['id']}").status_code == 404
    assert client.get("/api/journal/entries").json() == []


def test_invalid_day_is_rejected(client):
    assert client.get("/api/journal/entries/2024-13-40").status_code == 400
    assert client.get("/api/hijri/not-a-date").status_code == 400


def test_custom_tasks(client):
    assert client.post("/api/journal/entries/2024-03-11/tasks", json={"text": "  "}).status_code == 400

    entry = client.post("/api/journal/entries/2024-03-11/tasks", json={"text": "Call mom"}).json()
    task_id = entry["customTasks"][0]["id"]

    toggled = client.post(f"/api/journal/entries/2024-03-11/tasks/{task_id}/toggle").json()
    assert toggled["customTasks"][0]["done"] is True

    removed = client.delete(f"/api/journal/entries/2024-03-11/tasks/{task_id}").json()
    assert removed["customTasks"] == []
    assert client.post("/api/journal/entries/2024-03-11/tasks/nope/toggle").status_code == 404


def test_backup_and_restore(client):
    client.put("/api/journal/entries", json={"date": "2024-03-10T00:00:00", "diary": "kept"})
    backup = client.get("/api/journal/backup").json()

    bad = client.post("/api/journal/restore", content=b"{not json")
    assert bad.status_code == 400
    assert client.get("/api/journal/backup").json() == backup

    replacement = [
        {"date": "2024-03-01T00:00:00", "diary": "first"},
        {"date": "2024-03-01T08:00:00", "diary": "second"},
    ]
    restored = client.post("/api/journal/restore", content=json.dumps(replacement))
    assert restored.json() == {"restored": 1}
    entries = client.get("/api/journal/entries").json()
    assert [e["diary"] for e in entries] == ["second"]


def test_settings_patch_and_reset(client):
    patched = client.patch("/api/settings/", json={"theme": "dark", "alarms": {"fajr": {"time": "04:50"}}})
    assert patched.status_code == 200
    body = patched.json()
    assert body["theme"] == "dark"
    assert body["alarms"]["fajr"] == {"enabled": True, "time": "04:50"}
    assert body["alarms"]["zuhr"]["time"] == "13:15"

    assert client.patch("/api/settings/", json={"dailyReminderTime": "25:99"}).status_code == 400
    assert client.get("/api/settings/").json()["theme"] == "dark"

    counts = client.post("/api/settings/reset").json()
    assert set(counts) == {"entries", "hijri_cache", "tasbeeh_sessions"}
    assert client.get("/api/settings/").json()["theme"] == "light"


def test_hijri_offline_uses_local_conversion(client):
    body = client.get("/api/hijri/2024-03-11").json()

    assert body["source"] == "umm_al_qura"
    assert body["hijri"].endswith("1445 AH")
    assert client.get("/api/hijri/2024-03-11").json()["source"] == "cache"


def test_inspiration_offline_falls_back(client):
    body = client.get("/api/inspiration/today").json()

    assert body["date"] == "2024-03-11"
    assert body["source"] == "fallback+fallback"
    assert body["inspiration"]["ayah"]["ref"]


def test_tasbeeh_counter(client):
    catalogue = client.get("/api/tasbeeh/dhikr").json()
    assert catalogue["targets"] == [33, 100, 313, 1000, 0]

    selected = client.post("/api/tasbeeh/counter/select", json={"label": "Darood Pak", "target": 0}).json()
    assert selected["counter"]["label"] == "Darood Pak"
    for _ in range(3):
        client.post("/api/tasbeeh/counter/increment")
    reset = client.post("/api/tasbeeh/counter/reset").json()

    assert reset["logged"]["count"] == 3
    assert reset["counter"]["count"] == 0
    assert [s["label"] for s in client.get("/api/tasbeeh/history").json()] == ["Darood Pak"]
    assert client.post("/api/tasbeeh/counter/select", json={"target": 7}).status_code == 400
    assert client.post("/api/tasbeeh/sessions", json={"label": "x", "count": -1}).status_code == 422


def test_analytics_summary(client):
    client.put("/api/journal/entries", json={"date": "2024-03-11T00:00:00", "quran": "Yes"})
    client.post("/api/tasbeeh/sessions", json={"label": "Darood Pak", "count": 100})

    summary = client.get("/api/analytics/summary", params={"range": "30"}).json()

    assert summary["totalDays"] == 1
    assert summary["quranConsistency"] == 100
    assert client.get("/api/analytics/summary", params={"range": "90"}).status_code == 400
