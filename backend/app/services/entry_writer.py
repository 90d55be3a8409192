import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import BatchPolicy
from app.constants.error_reasons import ErrorCode, explain_error
from app.errors import CollisionError
from app.models.time_entry import TimeEntry
from app.providers.base import NormalizedEntry

log = logging.getLogger(__name__)


class WriteStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class BatchResult(BaseModel):
    """What a batch actually left committed in storage."""
    imported: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
    aborted: bool = False

    def record(self, status: WriteStatus) -> None:
        self.imported += 1
        if status == WriteStatus.CREATED:
            self.created += 1
        elif status == WriteStatus.UPDATED:
            self.updated += 1
        else:
            self.unchanged += 1


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EntryWriter:
    """
    Writes canonical entry candidates so that repeating a sync is a no-op in effect.

    Keyed on ``(source, external_id)``: a new key is inserted, a known key has
    its mutable fields (date, duration, project, description) updated in place.
    Candidates without an external id are always inserted. Anything the
    storage layer rejects as a duplicate key after that lookup is a collision
    and is raised, never skipped or overwritten.
    """

    def __init__(self, db: Session):
        self.db = db
        self._batch_keys: Dict[Tuple[str, str], tuple] = {}
        self._collided_keys: Set[Tuple[str, str]] = set()

    def _find_existing(self, source: str, external_id: str) -> Optional[TimeEntry]:
        return self.db.query(TimeEntry).filter(
            TimeEntry.source == source,
            TimeEntry.external_id == external_id
        ).first()

    def _same_content(self, existing: TimeEntry, candidate: NormalizedEntry) -> bool:
        return (
            as_utc(existing.date) == as_utc(candidate.date)
            and existing.duration_hours == candidate.duration_hours
            and existing.project == candidate.project
            and (existing.description or "") == candidate.description
        )

    def write(self, candidate: NormalizedEntry) -> Tuple[TimeEntry, WriteStatus]:
        """Persist one candidate inside the current transaction (flushed, not committed)."""
        key = None
        if candidate.external_id is not None:
            key = (candidate.source, candidate.external_id)
            if key in self._collided_keys:
                # The concurrent winner owns this key now; a later repeat must not overwrite it
                raise CollisionError(candidate.source, candidate.external_id, candidate.date)
            seen = self._batch_keys.get(key)
            if seen is not None and seen != candidate.content():
                raise CollisionError(
                    candidate.source, candidate.external_id, candidate.date,
                    code=ErrorCode.DUPLICATE_IN_BATCH,
                )

            existing = self._find_existing(candidate.source, candidate.external_id)
            if existing is not None:
                if self._same_content(existing, candidate):
                    log.trace(f"{candidate.source} entry {candidate.external_id} unchanged")
                    self._batch_keys[key] = candidate.content()
                    return existing, WriteStatus.UNCHANGED
                existing.date = as_utc(candidate.date)
                existing.duration_hours = candidate.duration_hours
                existing.project = candidate.project
                existing.description = candidate.description
                self.db.flush()
                self._batch_keys[key] = candidate.content()
                log.debug(f"Updated {candidate.source} entry {candidate.external_id} (row {existing.id})")
                return existing, WriteStatus.UPDATED

        entry = TimeEntry(
            source=candidate.source,
            external_id=candidate.external_id,
            date=as_utc(candidate.date),
            duration_hours=candidate.duration_hours,
            project=candidate.project,
            description=candidate.description,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
        )
        try:
            with self.db.begin_nested():
                self.db.add(entry)
        except IntegrityError as e:
            # Another writer committed this key between our lookup and the insert.
            log.error(f"Unique key violation inserting {candidate.source} entry {candidate.external_id}: {e.orig}")
            if key is not None:
                self._collided_keys.add(key)
            raise CollisionError(candidate.source, candidate.external_id, candidate.date) from e
        if key is not None:
            self._batch_keys[key] = candidate.content()
        log.debug(f"Created {candidate.source} entry {candidate.external_id} (row {entry.id})")
        return entry, WriteStatus.CREATED

    def write_batch(self, candidates: Iterable[NormalizedEntry], policy: BatchPolicy) -> BatchResult:
        """
        Write one provider's candidates under the given policy.

        ALL_OR_NOTHING: one transaction; the first failure rolls the whole
        batch back and nothing from it stays committed.
        BEST_EFFORT: every row commits on its own; failing rows are rolled
        back, counted and reported while the rest of the batch continues.
        """
        self._batch_keys = {}
        self._collided_keys = set()
        result = BatchResult()

        if policy == BatchPolicy.ALL_OR_NOTHING:
            source = "unknown"
            try:
                for candidate in candidates:
                    source = candidate.source
                    _, status = self.write(candidate)
                    result.record(status)
                self.db.commit()
            except CollisionError as e:
                self.db.rollback()
                log.error(f"Batch rolled back: {e}")
                return BatchResult(failed=1, errors=[str(e)], aborted=True)
            except SQLAlchemyError as e:
                self.db.rollback()
                message = explain_error(ErrorCode.STORAGE_ERROR, {"source": source, "detail": str(e)})
                log.error(f"Batch rolled back: {message}")
                return BatchResult(failed=1, errors=[message], aborted=True)
            return result

        for candidate in candidates:
            try:
                _, status = self.write(candidate)
                self.db.commit()
                result.record(status)
            except CollisionError as e:
                self.db.rollback()
                result.failed += 1
                result.errors.append(str(e))
                log.warning(f"Skipping row after collision: {e}")
            except SQLAlchemyError as e:
                self.db.rollback()
                result.failed += 1
                result.errors.append(explain_error(ErrorCode.STORAGE_ERROR, {"source": candidate.source, "detail": str(e)}))
                log.warning(f"Skipping {candidate.source} row {candidate.external_id} after storage error: {e}")
        return result
