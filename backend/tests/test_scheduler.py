import pytest
from sqlalchemy.orm import sessionmaker
from unittest.mock import patch

from app import scheduler
from app.config import Settings


def test_zero_interval_disables_scheduler():
    assert scheduler.start_scheduler(0) is False
    assert scheduler.scheduler.get_job(scheduler.JOB_ID) is None


@pytest.mark.asyncio
async def test_tick_is_skipped_while_a_run_is_active(monkeypatch):
    monkeypatch.setattr(scheduler, "_sync_running", True)
    with patch.object(scheduler, "SessionLocal") as session_factory:
        await scheduler.scheduled_sync_job()
    session_factory.assert_not_called()


@pytest.mark.asyncio
async def test_job_runs_default_window_sync(engine, tmp_path, caplog):
    app_settings = Settings(toggl_api_token=None, tempo_api_token=None, cache_dir=str(tmp_path))
    with patch.object(scheduler, "SessionLocal", sessionmaker(bind=engine)):
        with caplog.at_level("INFO", logger="app.scheduler"):
            await scheduler.scheduled_sync_job(app_settings)
    assert "Scheduled sync completed (failed)" in caplog.text
    assert scheduler._sync_running is False
