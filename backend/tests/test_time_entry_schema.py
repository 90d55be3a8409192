from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from app.models.time_entry import TimeEntry
from app.schemas.time_entry import ManualEntryCreate, TimeEntryInDB, calculate_duration, local_to_utc


def test_read_model_loads_from_orm_row(db):
    row = TimeEntry(
        source="TOGGL",
        external_id="555",
        date=datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc),
        duration_hours=1.0,
        project="No Project",
        description="standup",
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    assert TimeEntryInDB.model_config["from_attributes"] is True
    loaded = TimeEntryInDB.model_validate(row)
    assert (loaded.source, loaded.external_id, loaded.duration_hours) == ("TOGGL", "555", 1.0)
    assert loaded.id == row.id


def test_calculate_duration_and_local_time():
    assert calculate_duration("09:00", "10:45") == 1.75
    assert local_to_utc(date(2026, 7, 1), "09:00", "Europe/Brussels") == datetime(2026, 7, 1, 7, 0, tzinfo=timezone.utc)


def test_manual_entry_rejects_reversed_times():
    with pytest.raises(ValidationError):
        ManualEntryCreate(date=date(2026, 1, 12), start_time="10:00", end_time="10:00")
