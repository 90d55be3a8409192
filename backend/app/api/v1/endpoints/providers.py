import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.deps import get_response_cache
from app.config import settings
from app.constants.sources import TimeSource
from app.database import get_db
from app.errors import ProviderError
from app.models.time_entry import TimeEntry
from app.providers.registry import PROVIDER_TYPES, UnknownProviderError, get_provider
from app.schemas.provider import ConnectionTestResult, ProviderStatus
from app.services.response_cache import ResponseCache

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/status", response_model=List[ProviderStatus])
async def provider_status(
    db: Session = Depends(get_db),
    cache: ResponseCache = Depends(get_response_cache),
):
    """Configuration, stored entry count and last import per source."""
    counts = dict(
        db.query(TimeEntry.source, func.count(TimeEntry.id)).group_by(TimeEntry.source).all()
    )
    latest = dict(
        db.query(TimeEntry.source, func.max(TimeEntry.created_at)).group_by(TimeEntry.source).all()
    )

    statuses = []
    for name in PROVIDER_TYPES:
        provider = get_provider(name, settings)
        snapshot = cache.read(provider.cache_key())
        statuses.append(ProviderStatus(
            name=name,
            configured=provider.is_configured,
            entry_count=counts.get(name, 0),
            last_sync=latest.get(name),
            cached_at=datetime.fromtimestamp(snapshot.fetched_at, tz=timezone.utc) if snapshot else None,
        ))

    manual = TimeSource.MANUAL.value
    statuses.append(ProviderStatus(
        name=manual,
        configured=True,
        entry_count=counts.get(manual, 0),
        last_sync=latest.get(manual),
    ))
    return statuses


@router.post("/{provider}/test", response_model=ConnectionTestResult)
async def test_provider_connection(provider: str):
    """Minimal authenticated request against the vendor."""
    try:
        instance = get_provider(provider, settings)
    except UnknownProviderError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown provider: {provider}")

    if not instance.is_configured:
        return ConnectionTestResult(provider=instance.name, valid=False, message=f"{instance.token_setting} is not set")

    try:
        valid = await instance.validate_connection()
    except ProviderError as e:
        log.warning(f"Connection test for {instance.name} failed: {e}")
        return ConnectionTestResult(provider=instance.name, valid=False, message=str(e))
    finally:
        await instance.close()

    message = "Connection successful" if valid else "Connection failed"
    return ConnectionTestResult(provider=instance.name, valid=valid, message=message)
