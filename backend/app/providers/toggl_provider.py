import logging
from typing import Any, Dict, List, Optional

import httpx

from app.constants.error_reasons import ErrorCode
from app.constants.sources import TimeSource
from app.errors import ProviderError
from app.providers.base import BaseProvider, NormalizedEntry, ProviderConfig
from app.services.normalizer import NormalizerService
from app.services.sync_window import SyncWindow

log = logging.getLogger(__name__)


class TogglProvider(BaseProvider):
    """
    Provider for Toggl Track (API v9).

    - Auth: HTTP Basic, the API token as username and the literal "api_token" as password
    - Window: start_date / end_date (YYYY-MM-DD)
    - Page limit: none sent; Toggl answers with a single unpaginated list
    - Duration: seconds -> hours; negative duration marks a running timer
    """

    name = TimeSource.TOGGL.value
    auth_method = "basic"
    window_params = ("start_date", "end_date")
    page_limit = None
    token_setting = "TOGGL_API_TOKEN"

    TIME_ENTRIES_PATH = "/api/v9/me/time_entries"
    ME_PATH = "/api/v9/me"

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[httpx.AsyncClient] = None,
        normalizer: Optional[NormalizerService] = None,
    ):
        super().__init__(config, client)
        self.normalizer = normalizer or NormalizerService()
        log.info(f"Toggl provider initialized with base URL: {self.base_url}")

    def _auth(self) -> Optional[httpx.Auth]:
        return httpx.BasicAuth(self.api_token, "api_token")

    async def fetch(self, window: SyncWindow) -> List[Dict[str, Any]]:
        params = {
            "start_date": window.start.isoformat(),
            "end_date": window.end.isoformat(),
        }
        data = await self._request("GET", self.TIME_ENTRIES_PATH, params=params)
        if data is None:
            data = []
        if not isinstance(data, list):
            raise ProviderError(
                self.name,
                detail=f"expected a list of time entries, got {type(data).__name__}",
                code=ErrorCode.VENDOR_BAD_PAYLOAD,
            )
        log.info(f"Received {len(data)} raw time entries from Toggl ({params['start_date']} to {params['end_date']})")
        return data

    def normalize(self, raw: Dict[str, Any]) -> Optional[NormalizedEntry]:
        return self.normalizer.normalize_toggl_entry(raw)

    async def validate_connection(self) -> bool:
        try:
            await self._request("GET", self.ME_PATH)
            return True
        except ProviderError as e:
            log.warning(f"Toggl connection check failed: {e}")
            return False
