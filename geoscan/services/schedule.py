"""Tracking schedule — when the next scheduled scan for a brand is due."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

RUN_HOUR = 9


class TrackingFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def next_run_time(frequency: TrackingFrequency | str, now: datetime | None = None) -> datetime:
    """Next run at 09:00 UTC.

      daily   → tomorrow
      weekly  → next Monday (a week ahead when today is Monday)
      monthly → first day of next month
    """
    frequency = TrackingFrequency(frequency)
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    base = now.replace(hour=RUN_HOUR, minute=0, second=0, microsecond=0)

    if frequency == TrackingFrequency.DAILY:
        return base + timedelta(days=1)

    if frequency == TrackingFrequency.WEEKLY:
        days_ahead = 7 - now.weekday()  # Monday == 0
        return base + timedelta(days=days_ahead)

    if now.month == 12:
        return base.replace(year=now.year + 1, month=1, day=1)
    return base.replace(month=now.month + 1, day=1)
