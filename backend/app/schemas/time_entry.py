import re
from datetime import date as date_type, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def calculate_duration(start_time: str, end_time: str) -> float:
    """Hours between two HH:MM wall-clock times on the same day."""
    start, end = parse_hhmm(start_time), parse_hhmm(end_time)
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    return round(minutes / 60, 4)


def local_to_utc(day: date_type, hhmm: str, tz_name: str) -> datetime:
    """Combine a local date and HH:MM in ``tz_name`` into an aware UTC datetime."""
    local = datetime.combine(day, parse_hhmm(hhmm), tzinfo=ZoneInfo(tz_name))
    return local.astimezone(timezone.utc)


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is not None and not HHMM_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def _check_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}")
    return value


class ManualEntryCreate(BaseModel):
    """A hand-entered work block; duration is derived from the two times."""
    date: date_type
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")
    project: Optional[str] = None
    description: str = ""
    timezone: str = "UTC"

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_hhmm(cls, v):
        return _check_hhmm(v)

    @field_validator("timezone")
    @classmethod
    def valid_timezone(cls, v):
        return _check_timezone(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if parse_hhmm(self.end_time) <= parse_hhmm(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class TimeEntryUpdate(BaseModel):
    date: Optional[date_type] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_hours: Optional[float] = Field(None, ge=0)
    project: Optional[str] = None
    description: Optional[str] = None
    timezone: str = "UTC"

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_hhmm(cls, v):
        return _check_hhmm(v)

    @field_validator("timezone")
    @classmethod
    def valid_timezone(cls, v):
        return _check_timezone(v)

    @model_validator(mode="after")
    def times_come_in_pairs(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time and parse_hhmm(self.end_time) <= parse_hhmm(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class TimeEntryInDB(BaseModel):
    id: str
    source: str
    external_id: Optional[str] = None
    date: datetime
    duration_hours: float
    project: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
