"""Database models."""

from app.models.time_entry import TimeEntry

__all__ = [
    "TimeEntry",
]
