import logging
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import BatchPolicy
from app.errors import ProviderError
from app.providers.base import BaseProvider, NormalizedEntry
from app.schemas.sync import ProviderSyncResult, SyncResponse
from app.services.entry_writer import EntryWriter
from app.services.response_cache import ResponseCache
from app.services.sync_window import SyncWindow, resolve_window

log = logging.getLogger(__name__)


class SyncService:
    """
    Orchestrates one sync invocation across every configured provider.

    Per provider: cache check, vendor fetch on a miss, cache store for the
    default window, normalization, idempotent write. Providers run one after
    another and each one's failure is confined to its own result.
    """

    def __init__(
        self,
        providers: List[BaseProvider],
        cache: ResponseCache,
        db: Session,
        batch_policy: BatchPolicy = BatchPolicy.ALL_OR_NOTHING,
        lookback_months: int = 3,
    ):
        self.providers = providers
        self.cache = cache
        self.db = db
        self.batch_policy = batch_policy
        self.lookback_months = lookback_months
        self.writer = EntryWriter(db)

    async def _load_raw(self, provider: BaseProvider, window: SyncWindow, force_refresh: bool, result: ProviderSyncResult) -> List[Any]:
        cache_key = provider.cache_key()
        cached = self.cache.get_fresh(cache_key, window.is_custom, force_refresh)
        if cached is not None:
            log.info(f"[{provider.name}] Using cached data ({len(cached.payload)} records)")
            result.cached = True
            return cached.payload

        log.info(f"[{provider.name}] Fetching fresh data from API ({window.start} to {window.end})")
        raw = await provider.fetch(window)

        # Only the default window is cached, so a custom range never answers another query
        if not window.is_custom:
            try:
                self.cache.write(cache_key, raw)
            except OSError as e:
                log.warning(f"[{provider.name}] Could not write response cache: {e}")
        return raw

    def _normalize(self, provider: BaseProvider, raw: List[Any], result: ProviderSyncResult) -> List[NormalizedEntry]:
        candidates = []
        for record in raw:
            if not isinstance(record, dict):
                log.warning(f"[{provider.name}] Ignoring non-object record: {record!r}")
                result.skipped += 1
                continue
            try:
                candidate = provider.normalize(record)
            except ValidationError as e:
                log.warning(f"[{provider.name}] Record failed normalization, skipping: {e}")
                candidate = None
            if candidate is None:
                result.skipped += 1
                continue
            if candidate.used_fallback:
                result.fallbacks += 1
            candidates.append(candidate)
        return candidates

    async def sync_provider(self, provider: BaseProvider, window: SyncWindow, force_refresh: bool = False) -> ProviderSyncResult:
        """Run the full pipeline for one provider and report what landed."""
        result = ProviderSyncResult(provider=provider.name)
        try:
            raw = await self._load_raw(provider, window, force_refresh, result)
        except ProviderError as e:
            log.error(f"[{provider.name}] Sync failed: {e}")
            result.success = False
            result.error = str(e)
            return result

        result.attempted = len(raw)
        try:
            candidates = self._normalize(provider, raw, result)
            batch = self.writer.write_batch(candidates, self.batch_policy)
        except Exception as e:
            # Anything unexpected stays inside this provider's outcome
            self.db.rollback()
            log.exception(f"[{provider.name}] Unexpected error during sync: {e}")
            result.success = False
            result.error = f"Unexpected error: {e}"
            return result

        result.imported = batch.imported
        result.created = batch.created
        result.updated = batch.updated
        result.errors = batch.errors
        if batch.aborted:
            result.success = False
            result.error = batch.errors[0] if batch.errors else "Batch aborted"
        elif batch.failed:
            result.skipped += batch.failed
            result.success = False
            result.error = f"{batch.failed} of {len(candidates)} records failed to write; first error: {batch.errors[0]}"

        log.info(
            f"[{provider.name}] Sync {'completed' if result.success else 'failed'}: "
            f"attempted={result.attempted}, imported={result.imported} "
            f"(created={result.created}, updated={result.updated}), skipped={result.skipped}, "
            f"fallbacks={result.fallbacks}, cached={result.cached}"
        )
        return result

    async def sync_all(
        self,
        force_refresh: bool = False,
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
    ) -> SyncResponse:
        """
        Sync every provider and return per-provider outcomes plus totals.

        Raises ValueError for an invalid custom range (before any vendor call).
        """
        window = resolve_window(custom_start, custom_end, self.lookback_months)
        log.info(
            f"Starting sync: {window.start} to {window.end} "
            f"(custom={window.is_custom}, force={force_refresh}, policy={self.batch_policy.value})"
        )

        outcomes: Dict[str, ProviderSyncResult] = {}
        for provider in self.providers:
            outcomes[provider.name] = await self.sync_provider(provider, window, force_refresh)

        succeeded = sum(1 for r in outcomes.values() if r.success)
        if succeeded == len(outcomes):
            status = "success"
        elif succeeded:
            status = "partial"
        else:
            status = "failed"

        response = SyncResponse(
            status=status,
            start_date=window.start,
            end_date=window.end,
            custom_range=window.is_custom,
            total_imported=sum(r.imported for r in outcomes.values()),
            total_skipped=sum(r.skipped for r in outcomes.values()),
            providers=outcomes,
        )
        log.info(f"Sync finished ({status}): imported={response.total_imported}, skipped={response.total_skipped}")
        return response
