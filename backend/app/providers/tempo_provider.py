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


class TempoProvider(BaseProvider):
    """
    Provider for Tempo worklogs (API v4).

    - Auth: Bearer token
    - Window: from / to (YYYY-MM-DD)
    - Page limit: 1000, first page only. Later pages are never requested, so a
      window holding more worklogs is truncated.
    - Duration: timeSpentSeconds -> hours
    """

    name = TimeSource.TEMPO.value
    auth_method = "bearer"
    window_params = ("from", "to")
    page_limit = 1000
    token_setting = "TEMPO_API_TOKEN"

    WORKLOGS_PATH = "/4/worklogs"

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[httpx.AsyncClient] = None,
        normalizer: Optional[NormalizerService] = None,
    ):
        super().__init__(config, client)
        self.normalizer = normalizer or NormalizerService()
        log.info(f"Tempo provider initialized with base URL: {self.base_url}")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

    async def fetch(self, window: SyncWindow) -> List[Dict[str, Any]]:
        params = {
            "from": window.start.isoformat(),
            "to": window.end.isoformat(),
            "limit": self.page_limit,
        }
        data = await self._request("GET", self.WORKLOGS_PATH, params=params)
        if not isinstance(data, dict) or not isinstance(data.get("results", []), list):
            raise ProviderError(
                self.name,
                detail="expected an object with a 'results' list",
                code=ErrorCode.VENDOR_BAD_PAYLOAD,
            )
        results = data.get("results") or []
        if (data.get("metadata") or {}).get("next"):
            log.warning(
                f"Tempo returned more than {self.page_limit} worklogs for {params['from']} to {params['to']}; "
                f"only the first page is imported"
            )
        log.info(f"Received {len(results)} raw worklogs from Tempo ({params['from']} to {params['to']})")
        return results

    def normalize(self, raw: Dict[str, Any]) -> Optional[NormalizedEntry]:
        return self.normalizer.normalize_tempo_entry(raw)

    async def validate_connection(self) -> bool:
        try:
            await self._request("GET", self.WORKLOGS_PATH, params={"limit": 1})
            return True
        except ProviderError as e:
            log.warning(f"Tempo connection check failed: {e}")
            return False
