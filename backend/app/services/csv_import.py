"""CSV export adapters feeding the canonical write path."""

import csv
import io
import logging
from datetime import date, datetime, time
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.config import BatchPolicy
from app.constants.sources import TimeSource
from app.providers.base import NormalizedEntry
from app.services.entry_writer import EntryWriter

log = logging.getLogger(__name__)


class ParseResult(BaseModel):
    entries: List[NormalizedEntry] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class ImportResult(BaseModel):
    adapter: str
    parsed: int = 0
    imported: int = 0
    created: int = 0
    updated: int = 0
    errors: List[str] = Field(default_factory=list)


def parse_duration_hours(value: str) -> Optional[float]:
    """Decimal hours ("1.25") or a clock duration ("01:15:00")."""
    value = (value or "").strip()
    if not value:
        return None
    if ":" in value:
        parts = value.split(":")
        try:
            numbers = [int(p) for p in parts]
        except ValueError:
            return None
        while len(numbers) < 3:
            numbers.append(0)
        hours, minutes, seconds = numbers[:3]
        return hours + minutes / 60 + seconds / 3600
    try:
        return float(value)
    except ValueError:
        return None


class TogglCsvAdapter:
    """
    Toggl "Detailed report" export.

    Expected columns: Description, Duration, Project, Start date, Start time.
    The export carries no entry ids, so every row is inserted as new.
    """
    name = "toggl"

    def __init__(self, tz: str = "UTC"):
        self.tz = ZoneInfo(tz)

    def parse(self, content: str) -> ParseResult:
        result = ParseResult()
        content = content.lstrip("\ufeff").strip()
        reader = csv.DictReader(io.StringIO(content), skipinitialspace=True)
        rows = list(reader)
        log.info(f"[Toggl CSV] {len(rows)} rows found")

        for line_no, row in enumerate(rows, start=2):
            row = {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            date_str = row.get("Start date")
            if not date_str:
                continue
            try:
                day = date.fromisoformat(date_str)
                start = time.fromisoformat(row.get("Start time") or "00:00:00")
            except ValueError as e:
                result.errors.append(f"Line {line_no}: invalid start date/time ({e})")
                continue

            duration = parse_duration_hours(row.get("Duration", ""))
            if not duration:
                continue

            result.entries.append(NormalizedEntry(
                source=TimeSource.TOGGL.value,
                external_id=None,
                date=datetime.combine(day, start, tzinfo=self.tz),
                duration_hours=duration,
                project=row.get("Project") or "No Project",
                description=row.get("Description") or "",
            ))
        return result


class TempoCsvAdapter:
    """
    Tempo timesheet matrix export.

    Header row: ``,Issue,Key,Logged,01/Dec/25,02/Dec/25,...`` with one column
    per day; each non-empty cell is the hours logged on that issue that day.
    A cell is identified as ``<issue key>:<ISO date>``.
    """
    name = "tempo"
    DATE_HEADER_FORMAT = "%d/%b/%y"

    def __init__(self, tz: str = "UTC"):
        self.tz = ZoneInfo(tz)

    def _date_columns(self, header: List[str]) -> Dict[int, date]:
        columns = {}
        for index, name in enumerate(header):
            if "/" not in name:
                continue
            try:
                columns[index] = datetime.strptime(name.strip(), self.DATE_HEADER_FORMAT).date()
            except ValueError:
                continue
        return columns

    def parse(self, content: str) -> ParseResult:
        result = ParseResult()
        rows = [row for row in csv.reader(io.StringIO(content.lstrip("\ufeff"))) if any(cell.strip() for cell in row)]
        if len(rows) < 2:
            result.errors.append("Tempo CSV is too short")
            return result

        date_columns = self._date_columns(rows[0])
        if not date_columns:
            result.errors.append("Tempo CSV header has no date columns")
            return result

        for row in rows[1:]:
            row = [cell.strip() for cell in row]
            if "Total" in row[:2] or len(row) < 3:
                continue
            issue, key = row[1], row[2]
            if not key:
                continue
            for index, day in date_columns.items():
                if index >= len(row) or not row[index]:
                    continue
                try:
                    hours = float(row[index])
                except ValueError:
                    result.errors.append(f"{key} on {day}: invalid hours {row[index]!r}")
                    continue
                if hours <= 0:
                    continue
                result.entries.append(NormalizedEntry(
                    source=TimeSource.TEMPO.value,
                    external_id=f"{key}:{day.isoformat()}",
                    date=datetime.combine(day, time(0, 0), tzinfo=self.tz),
                    duration_hours=hours,
                    project=key,
                    description=issue,
                ))
        return result


def detect_adapter(filename: str, content: str, tz: str = "UTC"):
    """Pick an adapter from the file name, falling back to the Tempo header signature."""
    lowered = filename.lower()
    if "toggl" in lowered:
        return TogglCsvAdapter(tz)
    if "tempo" in lowered or "Issue,Key" in content[:2048]:
        return TempoCsvAdapter(tz)
    raise ValueError(
        'Unknown CSV format. Rename the file to include "toggl" or "tempo", '
        'or provide a Tempo export with an "Issue,Key" header.'
    )


class CsvImportService:
    """Parses an export and writes it through the same writer the sync engine uses."""

    def __init__(self, db: Session, batch_policy: BatchPolicy = BatchPolicy.BEST_EFFORT):
        self.writer = EntryWriter(db)
        self.batch_policy = batch_policy

    def import_content(self, content: str, filename: str, tz: str = "UTC") -> ImportResult:
        adapter = detect_adapter(filename, content, tz)
        parsed = adapter.parse(content)
        for error in parsed.errors:
            log.warning(f"[{adapter.name} CSV] {error}")

        batch = self.writer.write_batch(parsed.entries, self.batch_policy)
        log.info(f"[{adapter.name} CSV] Imported {batch.imported} of {len(parsed.entries)} parsed entries")
        return ImportResult(
            adapter=adapter.name,
            parsed=len(parsed.entries),
            imported=batch.imported,
            created=batch.created,
            updated=batch.updated,
            errors=parsed.errors + batch.errors,
        )
