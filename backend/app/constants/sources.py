from enum import Enum


class TimeSource(str, Enum):
    """Origin of a canonical time entry. Stored as plain text, so new members need no migration."""
    TOGGL = "TOGGL"
    TEMPO = "TEMPO"
    MANUAL = "MANUAL"
