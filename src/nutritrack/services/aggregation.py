"""Calendar-day aggregation over a user's food log."""

from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo

from nutritrack.domain.log import LogEntry
from nutritrack.domain.stats import (
    DailyCalories,
    NutrientSeries,
    NutrientTotals,
    RegressionDataPoint,
)

WEEK_DAYS = 7


def entry_datetime(entry: LogEntry, tz: tzinfo) -> datetime:
    """Return the entry's timestamp in the given zone."""
    return datetime.fromtimestamp(entry.logged_at_ms / 1000, tz=tz)


def entry_day(entry: LogEntry, tz: tzinfo) -> date:
    """Return the local calendar day an entry belongs to."""
    return entry_datetime(entry, tz).date()


def daily_total(entries: Iterable[LogEntry], day: date, tz: tzinfo) -> NutrientTotals:
    """Sum all entries logged on a local calendar day."""
    total = NutrientTotals()
    for entry in entries:
        if entry_day(entry, tz) == day:
            total = total.plus(entry)
    return total


def today_total(entries: Iterable[LogEntry], now: datetime) -> NutrientTotals:
    """Sum all entries logged today."""
    return daily_total(entries, now.date(), _zone(now))


def trailing_days(now: datetime, n_days: int) -> list[date]:
    """Return the last n_days calendar days ending today, oldest first."""
    today = now.date()
    return [today - timedelta(days=n_days - 1 - offset) for offset in range(n_days)]


def weekly_series(entries: Iterable[LogEntry], now: datetime) -> list[DailyCalories]:
    """Return calories for the trailing seven days, oldest first."""
    tz = _zone(now)
    totals = _totals_by_day(entries, tz)
    return [
        DailyCalories(
            day=day,
            day_label=day.strftime("%a"),
            calories=totals.get(day, NutrientTotals()).calories,
        )
        for day in trailing_days(now, WEEK_DAYS)
    ]


def historical_series(
    entries: Iterable[LogEntry], now: datetime, n_days: int
) -> NutrientSeries:
    """Return one zero-filled point per day for each nutrient.

    x runs 0..n_days-1 in chronological order and the last point is today.
    """
    tz = _zone(now)
    totals = _totals_by_day(entries, tz)
    series = NutrientSeries()
    for index, day in enumerate(trailing_days(now, n_days)):
        day_total = totals.get(day, NutrientTotals())
        series.calories.append(RegressionDataPoint(x=index, y=day_total.calories))
        series.protein.append(RegressionDataPoint(x=index, y=day_total.protein_g))
        series.carbs.append(RegressionDataPoint(x=index, y=day_total.carbs_g))
        series.fat.append(RegressionDataPoint(x=index, y=day_total.fat_g))
    return series


def distinct_food_names(
    entries: Iterable[LogEntry], now: datetime, n_days: int
) -> set[str]:
    """Return normalized food names logged since now minus n_days."""
    cutoff_ms = int((now - timedelta(days=n_days)).timestamp() * 1000)
    return {
        _normalize_name(entry.name)
        for entry in entries
        if entry.logged_at_ms >= cutoff_ms
    }


def distinct_food_names_on(
    entries: Iterable[LogEntry], day: date, tz: tzinfo
) -> set[str]:
    """Return lowercased food names logged on a local calendar day."""
    return {entry.name.lower() for entry in entries if entry_day(entry, tz) == day}


def detailed_weekly_log(
    entries: Iterable[LogEntry], now: datetime
) -> dict[str, list[LogEntry]]:
    """Group the trailing week's entries by ISO date, oldest day first."""
    tz = _zone(now)
    days = trailing_days(now, WEEK_DAYS)
    grouped: dict[str, list[LogEntry]] = {day.isoformat(): [] for day in days}
    for entry in sorted(entries, key=lambda item: item.logged_at_ms):
        key = entry_day(entry, tz).isoformat()
        if key in grouped:
            grouped[key].append(entry)
    return grouped


def intake_percentage(consumed: float, goal: float) -> float:
    """Return consumed calories as a percentage of the goal."""
    if goal <= 0:
        return 0.0
    return consumed * 100 / goal


def _totals_by_day(entries: Iterable[LogEntry], tz: tzinfo) -> dict[date, NutrientTotals]:
    totals: dict[date, NutrientTotals] = {}
    for entry in entries:
        day = entry_day(entry, tz)
        totals[day] = totals.get(day, NutrientTotals()).plus(entry)
    return totals


def _normalize_name(name: str) -> str:
    return name.strip().lower()


def _zone(now: datetime) -> tzinfo:
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return now.tzinfo
