import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from app.constants.error_reasons import ErrorCode
from app.errors import MissingCredentialError, ProviderError
from app.services.sync_window import SyncWindow

log = logging.getLogger(__name__)


class NormalizedEntry(BaseModel):
    """Canonical entry candidate produced from one vendor record, before persistence."""
    source: str = Field(..., description="Origin of the entry (e.g., 'TOGGL', 'TEMPO', 'MANUAL')")
    external_id: Optional[str] = Field(None, description="Vendor's stable id; None when the source has none")
    date: datetime = Field(..., description="Timezone-aware occurrence time")
    duration_hours: float = Field(..., ge=0, description="Settled duration in hours")
    project: Optional[str] = Field(None, description="Human-readable project / issue label")
    description: str = Field("", description="Free text; never None")
    start_time: Optional[str] = Field(None, description="HH:MM, manual entries only")
    end_time: Optional[str] = Field(None, description="HH:MM, manual entries only")
    used_fallback: bool = Field(False, description="A documented fallback filled the project label")

    def content(self) -> tuple:
        """The mutable fields a re-sync is allowed to change."""
        return (self.date, self.duration_hours, self.project, self.description)


class ProviderConfig(BaseModel):
    """Explicit construction-time configuration for one provider."""
    base_url: str
    api_token: Optional[str] = None
    timeout: float = 30.0
    settings: Dict[str, Any] = Field(default_factory=dict)


class BaseProvider(ABC):
    """
    Capability interface every time-tracking vendor implements.

    A provider performs exactly one HTTP fetch per sync pass, maps raw records
    to canonical candidates, and names its cache slot. It never touches
    storage or the cache itself.
    """

    name: str = ""
    auth_method: str = ""
    window_params: tuple = ()
    page_limit: Optional[int] = None
    token_setting: str = ""

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.api_token = config.api_token
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token)

    def cache_key(self) -> str:
        return self.name.lower()

    @abstractmethod
    async def fetch(self, window: SyncWindow) -> List[Dict[str, Any]]:
        """Fetches raw vendor records for the window (single page)."""
        pass

    @abstractmethod
    def normalize(self, raw: Dict[str, Any]) -> Optional[NormalizedEntry]:
        """Maps one raw record to a candidate, or None when the record must be skipped."""
        pass

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Performs a minimal authenticated request against the vendor."""
        pass

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, timeout=self.config.timeout)
        return self._client

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _auth(self) -> Optional[httpx.Auth]:
        return None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Helper to make one authenticated request to the vendor API.

        Non-2xx responses and transport failures become ProviderError carrying
        the vendor name, HTTP status and vendor error body. No retries.
        """
        if not self.api_token:
            raise MissingCredentialError(self.name, self.token_setting)

        if not path.startswith("/"):
            path = f"/{path}"
        url = f"{self.base_url}{path}"

        try:
            log.trace(f"{self.name} API {method} {url} params={kwargs.get('params', 'none')}")
            response = await self._get_client().request(
                method, url, headers=self._headers(), auth=self._auth(), **kwargs
            )
            log.trace(f"{self.name} API response: {response.status_code}")
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = _error_body(e.response)
            log.error(f"{self.name} API error for {e.request.url}: {status} - {body}")
            raise ProviderError(self.name, status_code=status, body=body) from e
        except httpx.RequestError as e:
            log.error(f"{self.name} request error for {url}: {e}")
            raise ProviderError(self.name, detail=str(e) or e.__class__.__name__) from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                self.name,
                detail=f"response body is not JSON ({e})",
                code=ErrorCode.VENDOR_BAD_PAYLOAD,
            ) from e


def _error_body(response: httpx.Response) -> str:
    """Vendor error body as compact text, JSON re-serialized when possible."""
    try:
        return json.dumps(response.json(), separators=(",", ":"))
    except ValueError:
        return response.text
