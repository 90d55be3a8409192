import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    payload: List[Any]
    fetched_at: float  # epoch seconds


class ResponseCache:
    """
    File-backed cache of the last raw vendor fetch, one JSON document per provider.

    Each file holds ``{"fetched_at": ..., "payload": [...]}``. Writes go to a
    temporary file that is renamed over the old one, and reads take the
    freshness clock from the same document as the payload, so a reader sees
    either the old snapshot or the new one, never a mix. A missing, unreadable
    or corrupt file is a cache miss.
    """
    TTL = 600  # 10 minutes in seconds

    def __init__(self, cache_dir: str, ttl_seconds: int = TTL, clock: Callable[[], float] = time.time):
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def path_for(self, cache_key: str) -> Path:
        return self.cache_dir / f"{cache_key}_cache.json"

    def read(self, cache_key: str) -> Optional[CacheEntry]:
        """Return the stored snapshot regardless of age, or None on miss/corruption."""
        path = self.path_for(cache_key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning(f"Cache file {path} unreadable, treating as miss: {e}")
            return None
        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            log.warning(f"Cache file {path} is corrupt, treating as miss: {e}")
            return None

    def is_fresh(self, entry: CacheEntry) -> bool:
        age = self._clock() - entry.fetched_at
        return 0 <= age < self.ttl_seconds

    def get_fresh(self, cache_key: str, is_custom_range: bool, force_refresh: bool) -> Optional[CacheEntry]:
        """
        The cached snapshot if it may answer this sync, else None.

        Custom ranges and forced refreshes always miss.
        """
        if force_refresh or is_custom_range:
            return None
        entry = self.read(cache_key)
        if entry is None:
            return None
        if not self.is_fresh(entry):
            log.debug(f"Cache for {cache_key} is stale ({self._clock() - entry.fetched_at:.0f}s old)")
            return None
        return entry

    def should_use_cache(self, cache_key: str, is_custom_range: bool, force_refresh: bool) -> bool:
        return self.get_fresh(cache_key, is_custom_range, force_refresh) is not None

    def write(self, cache_key: str, payload: List[Any]) -> CacheEntry:
        """Replace the provider's snapshot atomically."""
        entry = CacheEntry(payload=payload, fetched_at=self._clock())
        path = self.path_for(cache_key)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        # Each writer gets its own temp file; os.replace makes the swap atomic
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{cache_key}_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entry.model_dump(), fh, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        log.info(f"Wrote {len(payload)} raw records to cache: {path}")
        return entry
