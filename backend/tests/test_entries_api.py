from fastapi.testclient import TestClient


def create_manual(client, **overrides):
    payload = {
        "date": "2026-01-12",
        "start_time": "09:00",
        "end_time": "10:30",
        "project": "Internal",
        "description": "planning",
        "timezone": "Europe/Brussels",
    }
    payload.update(overrides)
    return client.post("/api/v1/entries", json=payload)


def test_create_manual_entry(client: TestClient):
    response = create_manual(client)
    assert response.status_code == 201
    data = response.json()
    assert data["source"] == "MANUAL"
    assert data["external_id"] is None
    assert data["duration_hours"] == 1.5
    assert data["date"].startswith("2026-01-12T08:00:00")
    assert (data["start_time"], data["end_time"]) == ("09:00", "10:30")


def test_manual_entries_never_merge(client: TestClient):
    create_manual(client)
    create_manual(client)
    assert len(client.get("/api/v1/entries").json()) == 2


def test_manual_entry_validation(client: TestClient):
    assert create_manual(client, end_time="08:00").status_code == 422
    assert create_manual(client, start_time="9am").status_code == 422
    assert create_manual(client, timezone="Mars/Olympus").status_code == 422


def test_list_sorted_newest_first_and_filtered(client: TestClient):
    client.post("/api/v1/sync")
    create_manual(client, date="2026-02-01")

    entries = client.get("/api/v1/entries").json()
    assert [e["source"] for e in entries][0] == "MANUAL"
    dates = [e["date"] for e in entries]
    assert dates == sorted(dates, reverse=True)

    toggl = client.get("/api/v1/entries", params={"source": "toggl"}).json()
    assert [e["external_id"] for e in toggl] == ["555"]

    january = client.get("/api/v1/entries", params={"start": "2026-01-01", "end": "2026-01-31"}).json()
    assert {e["source"] for e in january} == {"TOGGL", "TEMPO"}


def test_update_recomputes_duration(client: TestClient):
    entry_id = create_manual(client).json()["id"]
    response = client.put(f"/api/v1/entries/{entry_id}", json={
        "start_time": "13:00", "end_time": "17:00", "timezone": "UTC", "description": "workshop",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["duration_hours"] == 4.0
    assert data["date"].startswith("2026-01-12T13:00:00")
    assert data["description"] == "workshop"


def test_update_requires_both_times(client: TestClient):
    entry_id = create_manual(client).json()["id"]
    response = client.put(f"/api/v1/entries/{entry_id}", json={"start_time": "13:00"})
    assert response.status_code == 422


def test_delete_entry(client: TestClient):
    entry_id = create_manual(client).json()["id"]
    assert client.delete(f"/api/v1/entries/{entry_id}").status_code == 204
    assert client.get(f"/api/v1/entries/{entry_id}").status_code == 404
    assert client.delete(f"/api/v1/entries/{entry_id}").status_code == 404


def test_provider_status(client: TestClient, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "toggl_api_token", "t")
    monkeypatch.setattr(settings, "tempo_api_token", None)

    client.post("/api/v1/sync")
    create_manual(client)

    statuses = {s["name"]: s for s in client.get("/api/v1/providers/status").json()}
    assert statuses["TOGGL"]["configured"]
    assert not statuses["TEMPO"]["configured"]
    assert statuses["TOGGL"]["entry_count"] == 1
    assert statuses["TOGGL"]["cached_at"] is not None
    assert statuses["MANUAL"]["entry_count"] == 1
    assert statuses["MANUAL"]["last_sync"] is not None


def test_connection_test_for_unconfigured_provider(client: TestClient, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "tempo_api_token", None)
    response = client.post("/api/v1/providers/tempo/test")
    assert response.status_code == 200
    assert response.json() == {"provider": "TEMPO", "valid": False, "message": "TEMPO_API_TOKEN is not set"}
    assert client.post("/api/v1/providers/harvest/test").status_code == 404
