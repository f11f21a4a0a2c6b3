"""Consecutive-day logging streaks."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from nutritrack.domain.log import LogEntry
from nutritrack.services.aggregation import entry_day


def logging_streak(entries: Iterable[LogEntry], now: datetime) -> int:
    """Count consecutive logged days ending today, or yesterday as a grace day."""
    tz = now.tzinfo
    if tz is None:
        raise ValueError("now must be timezone-aware")
    logged_days = {entry_day(entry, tz) for entry in entries}
    current = now.date()
    if current not in logged_days:
        current -= timedelta(days=1)
        if current not in logged_days:
            return 0

    streak = 0
    while current in logged_days:
        streak += 1
        current -= timedelta(days=1)
    return streak
