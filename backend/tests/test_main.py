from fastapi.testclient import TestClient

from app import __version__


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert data["version"] == __version__


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Time Entry Sync API"


def test_jira_config(client: TestClient, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "jira_base_url", "https://acme.atlassian.net/")
    response = client.get("/api/v1/config/jira")
    assert response.json() == {"base_url": "https://acme.atlassian.net", "configured": True}
