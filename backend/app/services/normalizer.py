import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional

from app.constants.sources import TimeSource
from app.providers.base import NormalizedEntry

log = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


def parse_vendor_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 vendor timestamp into an aware datetime.
    Naive values are taken as UTC. Returns None if the input is falsy/invalid.
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def seconds_to_hours(seconds: Any) -> Optional[float]:
    """Vendor seconds to hours; None for missing, non-numeric or negative values."""
    if seconds is None or isinstance(seconds, bool):
        return None
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return None
    if value < 0:
        return None
    return value / SECONDS_PER_HOUR


class NormalizerService:
    """
    Service responsible for normalizing raw vendor records into the canonical
    `NormalizedEntry` shape.

    Every method is a pure function of its input: the same record always
    yields the same candidate, which is what makes re-running a sync safe.
    A return value of None means "skip this record".
    """

    def normalize_toggl_entry(self, toggl_data: Dict[str, Any]) -> Optional[NormalizedEntry]:
        """
        Normalizes a Toggl Track v9 time entry.
        """
        # {
        #   "id": 555, "workspace_id": 1, "project_id": 42, "start": "2026-01-10T09:00:00Z",
        #   "stop": "2026-01-10T10:00:00Z", "duration": 3600, "description": "standup", ...
        # }
        # A running timer reports a negative duration (-start epoch) and has no stop.
        entry_id = toggl_data.get("id")
        if entry_id is None:
            log.warning(f"Toggl entry without id, skipping: {toggl_data}")
            return None

        duration_hours = seconds_to_hours(toggl_data.get("duration"))
        if duration_hours is None:
            log.debug(f"Skipping running or unsettled Toggl entry {entry_id}")
            return None

        start = parse_vendor_datetime(toggl_data.get("start"))
        if start is None:
            log.warning(f"Toggl entry {entry_id} has no usable start time, skipping")
            return None

        used_fallback = False
        project_id = toggl_data.get("project_id")
        if toggl_data.get("project_name"):
            project = toggl_data["project_name"]
        elif project_id:
            project = f"Proj-{project_id}"
            used_fallback = True
        else:
            project = "No Project"

        return NormalizedEntry(
            source=TimeSource.TOGGL.value,
            external_id=str(entry_id),
            date=start,
            duration_hours=duration_hours,
            project=project,
            description=toggl_data.get("description") or "",
            used_fallback=used_fallback,
        )

    def normalize_tempo_entry(self, tempo_data: Dict[str, Any]) -> Optional[NormalizedEntry]:
        """
        Normalizes a Tempo v4 worklog.

        The project label is "<issue key> - <project name>", "<issue key>",
        or, when Tempo did not expand the issue, "Issue #<issue id>".
        """
        # {
        #   "tempoWorklogId": 9001, "issue": {"id": 10001, "key": "ABC-27", "project": {"name": "Alpha"}},
        #   "timeSpentSeconds": 5400, "startDate": "2026-01-10", "startTime": "09:00:00",
        #   "description": "Working on issue ABC-27", ...
        # }
        worklog_id = tempo_data.get("tempoWorklogId")
        if worklog_id is None:
            log.warning(f"Tempo worklog without tempoWorklogId, skipping: {tempo_data}")
            return None

        duration_hours = seconds_to_hours(tempo_data.get("timeSpentSeconds"))
        if duration_hours is None:
            log.debug(f"Skipping Tempo worklog {worklog_id} without a settled duration")
            return None

        occurred_at = self._tempo_start(tempo_data)
        if occurred_at is None:
            log.warning(f"Tempo worklog {worklog_id} has no usable startDate, skipping")
            return None

        issue = tempo_data.get("issue")
        if not isinstance(issue, dict):
            issue = {}
        used_fallback = False
        if issue.get("key"):
            issue_label = issue["key"]
            issue_project = issue.get("project")
            project_name = issue_project.get("name") if isinstance(issue_project, dict) else None
            project = f"{issue_label} - {project_name}" if project_name else issue_label
        elif issue.get("id") is not None:
            project = f"Issue #{issue['id']}"
            used_fallback = True
            log.trace(f"Tempo worklog {worklog_id}: no issue key, using id {issue['id']}")
        else:
            project = "Unknown Issue"
            used_fallback = True

        description = tempo_data.get("description") or tempo_data.get("comment") or ""

        return NormalizedEntry(
            source=TimeSource.TEMPO.value,
            external_id=str(worklog_id),
            date=occurred_at,
            duration_hours=duration_hours,
            project=project,
            description=description,
            used_fallback=used_fallback,
        )

    @staticmethod
    def _tempo_start(tempo_data: Dict[str, Any]) -> Optional[datetime]:
        """startDate (+ startTime when present) as UTC."""
        try:
            day = date.fromisoformat(str(tempo_data.get("startDate") or ""))
        except ValueError:
            return None
        start_time = time(0, 0)
        if tempo_data.get("startTime"):
            try:
                start_time = time.fromisoformat(tempo_data["startTime"])
            except (TypeError, ValueError):
                log.debug(f"Ignoring unparseable Tempo startTime {tempo_data['startTime']!r}")
        return datetime.combine(day, start_time.replace(tzinfo=None), tzinfo=timezone.utc)
