import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_sync_service
from app.providers.registry import PROVIDER_TYPES
from app.schemas.sync import SyncResponse
from app.services.sync_service import SyncService

log = logging.getLogger(__name__)
router = APIRouter()


async def _close_providers(sync_service: SyncService) -> None:
    for provider in sync_service.providers:
        await provider.close()


@router.post("", response_model=SyncResponse)
async def run_sync(
    force: bool = False,
    start: Optional[date] = None,
    end: Optional[date] = None,
    sync_service: SyncService = Depends(get_sync_service),
):
    """
    Sync every configured provider.

    With no dates the default window is used and fresh cached responses are
    reused; ``force`` or a custom ``start``/``end`` range always hits the vendors.
    """
    log.info(f"Sync request received (force={force}, start={start}, end={end})")
    try:
        return await sync_service.sync_all(force_refresh=force, custom_start=start, custom_end=end)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    finally:
        await _close_providers(sync_service)


@router.post("/{provider}", response_model=SyncResponse)
async def run_provider_sync(
    provider: str,
    force: bool = False,
    start: Optional[date] = None,
    end: Optional[date] = None,
    sync_service: SyncService = Depends(get_sync_service),
):
    """Sync a single provider through the same pipeline."""
    key = provider.upper()
    if key not in PROVIDER_TYPES:
        await _close_providers(sync_service)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown provider: {provider}")

    selected = [p for p in sync_service.providers if p.name == key]
    others = [p for p in sync_service.providers if p.name != key]
    for p in others:
        await p.close()
    sync_service.providers = selected

    try:
        return await sync_service.sync_all(force_refresh=force, custom_start=start, custom_end=end)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    finally:
        await _close_providers(sync_service)
