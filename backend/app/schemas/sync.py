from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ProviderSyncResult(BaseModel):
    provider: str
    success: bool = True
    cached: bool = False
    attempted: int = 0   # raw records received from the vendor or the cache
    imported: int = 0    # records committed (created + updated + unchanged)
    created: int = 0
    updated: int = 0
    skipped: int = 0     # records dropped by normalization or rejected row by row
    fallbacks: int = 0   # records whose project label came from a fallback
    error: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class SyncResponse(BaseModel):
    status: str = "success"  # "success", "partial", "failed"
    start_date: date
    end_date: date
    custom_range: bool = False
    total_imported: int = 0
    total_skipped: int = 0
    providers: Dict[str, ProviderSyncResult] = Field(default_factory=dict)
