import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.constants.sources import TimeSource
from app.database import get_db
from app.errors import CollisionError
from app.models.time_entry import TimeEntry
from app.providers.base import NormalizedEntry
from app.schemas.time_entry import (
    ManualEntryCreate,
    TimeEntryInDB,
    TimeEntryUpdate,
    calculate_duration,
    local_to_utc,
)
from app.services.entry_writer import EntryWriter, as_utc

log = logging.getLogger(__name__)
router = APIRouter()


def _get_entry_or_404(db: Session, entry_id: str) -> TimeEntry:
    entry = db.query(TimeEntry).filter(TimeEntry.id == entry_id).first()
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time entry not found")
    return entry


@router.get("", response_model=List[TimeEntryInDB])
async def read_entries(
    source: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
):
    """All entries, newest first. ``start``/``end`` are inclusive UTC dates."""
    q = db.query(TimeEntry)
    if source:
        q = q.filter(TimeEntry.source == source.upper())
    if start:
        q = q.filter(TimeEntry.date >= datetime.combine(start, time(0, 0), tzinfo=timezone.utc))
    if end:
        q = q.filter(TimeEntry.date < datetime.combine(end + timedelta(days=1), time(0, 0), tzinfo=timezone.utc))
    return q.order_by(TimeEntry.date.desc()).offset(skip).limit(limit).all()


@router.get("/{entry_id}", response_model=TimeEntryInDB)
async def read_entry(entry_id: str, db: Session = Depends(get_db)):
    return _get_entry_or_404(db, entry_id)


@router.post("", response_model=TimeEntryInDB, status_code=status.HTTP_201_CREATED)
async def create_manual_entry(entry: ManualEntryCreate, db: Session = Depends(get_db)):
    """Record a hand-entered block of work. Manual entries have no external id."""
    candidate = NormalizedEntry(
        source=TimeSource.MANUAL.value,
        external_id=None,
        date=local_to_utc(entry.date, entry.start_time, entry.timezone),
        duration_hours=calculate_duration(entry.start_time, entry.end_time),
        project=entry.project,
        description=entry.description,
        start_time=entry.start_time,
        end_time=entry.end_time,
    )
    try:
        db_entry, _ = EntryWriter(db).write(candidate)
        db.commit()
    except CollisionError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    db.refresh(db_entry)
    log.info(f"Created manual entry {db_entry.id}: {db_entry.duration_hours}h on {entry.date}")
    return db_entry


@router.put("/{entry_id}", response_model=TimeEntryInDB)
async def update_entry(entry_id: str, update: TimeEntryUpdate, db: Session = Depends(get_db)):
    """
    Edit an entry's display fields.

    When both times are given the duration and start instant are recomputed
    in ``timezone``; otherwise ``date`` only moves the day and keeps the time.
    """
    entry = _get_entry_or_404(db, entry_id)
    current = as_utc(entry.date)

    if update.start_time and update.end_time:
        day = update.date or current.date()
        entry.date = local_to_utc(day, update.start_time, update.timezone)
        entry.duration_hours = calculate_duration(update.start_time, update.end_time)
        entry.start_time = update.start_time
        entry.end_time = update.end_time
    else:
        if update.date:
            entry.date = current.replace(year=update.date.year, month=update.date.month, day=update.date.day)
        if update.duration_hours is not None:
            entry.duration_hours = update.duration_hours

    if update.project is not None:
        entry.project = update.project
    if update.description is not None:
        entry.description = update.description

    db.commit()
    db.refresh(entry)
    log.info(f"Updated entry {entry.id}")
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(entry_id: str, db: Session = Depends(get_db)):
    """Explicit user deletion; syncs never delete rows."""
    entry = _get_entry_or_404(db, entry_id)
    db.delete(entry)
    db.commit()
    log.info(f"Deleted {entry.source} entry {entry_id}")
