"""Canonical time entry model shared by every source."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Float, Index, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class TimeEntry(Base):
    """One canonical time record, whatever system it came from."""

    __tablename__ = "time_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Source information
    source = Column(String(50), nullable=False, index=True)  # see app.constants.sources.TimeSource
    external_id = Column(String(255), nullable=True)  # vendor id; NULL for hand-entered or id-less CSV rows

    # Temporal information
    date = Column(DateTime(timezone=True), nullable=False)
    duration_hours = Column(Float, nullable=False)

    # Display fields
    project = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    # Manual entries only (HH:MM, wall clock in the user's timezone)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('source', 'external_id', name='uq_time_entries_source_external_id'),
        CheckConstraint('duration_hours >= 0', name='ck_time_entries_duration_non_negative'),
        Index('idx_time_entries_date', 'date'),
    )

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, source='{self.source}', external_id='{self.external_id}', hours={self.duration_hours})>"
