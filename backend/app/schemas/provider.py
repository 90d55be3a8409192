from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProviderStatus(BaseModel):
    name: str
    configured: bool
    entry_count: int = 0
    last_sync: Optional[datetime] = None  # newest created_at for the source
    cached_at: Optional[datetime] = None  # when the cached snapshot was fetched, if any


class ConnectionTestResult(BaseModel):
    provider: str
    valid: bool
    message: str


class JiraConfig(BaseModel):
    base_url: Optional[str] = None
    configured: bool = False
