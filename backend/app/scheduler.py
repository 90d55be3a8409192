"""APScheduler integration for the periodic default-window sync."""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import Settings, settings
from app.database import SessionLocal
from app.providers.registry import get_all_providers
from app.services.response_cache import ResponseCache
from app.services.sync_service import SyncService

log = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()

JOB_ID = "periodic_sync_job"

_sync_running = False  # a tick that finds a run in progress is skipped


async def scheduled_sync_job(app_settings: Optional[Settings] = None):
    """Run one default-window sync unless the previous one is still active."""
    global _sync_running

    if _sync_running:
        log.warning("Scheduled sync skipped: previous run still active")
        return

    app_settings = app_settings or settings
    _sync_running = True
    db = SessionLocal()
    providers = get_all_providers(app_settings)
    try:
        log.info("Starting scheduled sync job")
        sync_service = SyncService(
            providers=providers,
            cache=ResponseCache(app_settings.cache_dir, app_settings.cache_ttl_seconds),
            db=db,
            batch_policy=app_settings.batch_policy,
            lookback_months=app_settings.sync_lookback_months,
        )
        result = await sync_service.sync_all()
        log.info(
            f"Scheduled sync completed ({result.status}): "
            f"imported={result.total_imported}, skipped={result.total_skipped}"
        )
    except Exception as e:
        # The job must survive to the next tick
        log.error(f"Scheduled sync failed: {e}", exc_info=True)
    finally:
        for provider in providers:
            await provider.close()
        db.close()
        _sync_running = False


def start_scheduler(interval_minutes: int) -> bool:
    """Schedule the sync job; returns False when the interval disables it."""
    if interval_minutes <= 0:
        log.info("Periodic sync disabled (SYNC_INTERVAL_MINUTES=0)")
        return False

    scheduler.add_job(
        scheduled_sync_job,
        IntervalTrigger(minutes=interval_minutes),
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    if not scheduler.running:
        scheduler.start()
    log.info(f"Scheduler started. Sync task scheduled every {interval_minutes} minutes.")
    return True


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        log.info("Scheduler shut down.")
