from datetime import datetime, timezone
from typing import Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.api.deps import get_response_cache, get_sync_service
from app.config import BatchPolicy
from app.database import Base, create_db_engine, get_db
from app.main import app
from app.providers.base import NormalizedEntry, ProviderConfig
from app.providers.tempo_provider import TempoProvider
from app.providers.toggl_provider import TogglProvider
from app.services.response_cache import ResponseCache
from app.services.sync_service import SyncService


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache(tmp_path) -> ResponseCache:
    return ResponseCache(str(tmp_path / "cache"))


class FakeVendor:
    """Records every request and answers from a per-path table."""

    def __init__(self, routes: Dict[str, Callable[[httpx.Request], httpx.Response]]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"message": "not found"})
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def json_route(payload, status_code: int = 200):
    return lambda request: httpx.Response(status_code, json=payload)


def toggl_record(entry_id=555, duration=3600, start="2026-01-10T09:00:00Z", **extra):
    record = {
        "id": entry_id,
        "workspace_id": 1,
        "project_id": None,
        "start": start,
        "duration": duration,
        "description": "standup",
    }
    record.update(extra)
    return record


def tempo_record(worklog_id=9001, seconds=5400, **extra):
    record = {
        "tempoWorklogId": worklog_id,
        "issue": {"id": 10001, "key": "ABC-27", "project": {"name": "Alpha"}},
        "timeSpentSeconds": seconds,
        "startDate": "2026-01-10",
        "startTime": "09:00:00",
        "description": "Working on issue ABC-27",
    }
    record.update(extra)
    return record


def make_toggl(vendor: FakeVendor, token="toggl-token") -> TogglProvider:
    config = ProviderConfig(base_url="https://toggl.test", api_token=token)
    return TogglProvider(config, client=vendor.client())


def make_tempo(vendor: FakeVendor, token="tempo-token") -> TempoProvider:
    config = ProviderConfig(base_url="https://tempo.test", api_token=token)
    return TempoProvider(config, client=vendor.client())


def candidate(external_id="555", hours=1.0, source="TOGGL", **extra) -> NormalizedEntry:
    fields = {
        "source": source,
        "external_id": external_id,
        "date": datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc),
        "duration_hours": hours,
        "project": "No Project",
        "description": "standup",
    }
    fields.update(extra)
    return NormalizedEntry(**fields)


@pytest.fixture
def vendors():
    return {
        "TOGGL": FakeVendor({TogglProvider.TIME_ENTRIES_PATH: json_route([toggl_record()])}),
        "TEMPO": FakeVendor({TempoProvider.WORKLOGS_PATH: json_route({"results": [tempo_record()], "metadata": {}})}),
    }


@pytest.fixture
def client(engine, cache, vendors) -> TestClient:
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    def override_get_sync_service():
        session = TestingSession()
        try:
            yield SyncService(
                providers=[make_toggl(vendors["TOGGL"]), make_tempo(vendors["TEMPO"])],
                cache=cache,
                db=session,
                batch_policy=BatchPolicy.ALL_OR_NOTHING,
            )
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sync_service] = override_get_sync_service
    app.dependency_overrides[get_response_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()
