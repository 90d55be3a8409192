"""Date window resolution for a sync pass."""

import calendar
from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel


class SyncWindow(BaseModel):
    """Inclusive date range handed to a provider fetch."""
    start: date
    end: date
    is_custom: bool = False


def subtract_months(day: date, months: int) -> date:
    """Shift ``day`` back by whole months, clamping to the last day of the target month."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def default_window(lookback_months: int = 3, today: Optional[date] = None) -> SyncWindow:
    """Last ``lookback_months`` months through tomorrow."""
    today = today or date.today()
    return SyncWindow(
        start=subtract_months(today, lookback_months),
        end=today + timedelta(days=1),
        is_custom=False,
    )


def resolve_window(
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
    lookback_months: int = 3,
    today: Optional[date] = None,
) -> SyncWindow:
    """
    Return the caller's custom range, or the default window when neither bound is given.

    Raises ValueError when only one bound is supplied or the range is inverted.
    """
    if custom_start is None and custom_end is None:
        return default_window(lookback_months, today)
    if custom_start is None or custom_end is None:
        raise ValueError("A custom sync range needs both a start and an end date")
    if custom_start > custom_end:
        raise ValueError(f"Sync range start {custom_start} is after end {custom_end}")
    return SyncWindow(start=custom_start, end=custom_end, is_custom=True)
