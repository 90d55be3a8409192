from fastapi import APIRouter

from app.api.v1.endpoints import config, entries, providers, sync

api_router = APIRouter()
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
