"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.providers.registry import get_all_providers
from app.services.response_cache import ResponseCache
from app.services.sync_service import SyncService


def get_response_cache() -> ResponseCache:
    return ResponseCache(settings.cache_dir, settings.cache_ttl_seconds)


def get_sync_service(
    db: Session = Depends(get_db),
    cache: ResponseCache = Depends(get_response_cache),
) -> SyncService:
    """A sync service wired from the process settings; tests override this."""
    return SyncService(
        providers=get_all_providers(settings),
        cache=cache,
        db=db,
        batch_policy=settings.batch_policy,
        lookback_months=settings.sync_lookback_months,
    )
