"""Tests for calendar-day aggregation."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from nutritrack.services.aggregation import (
    daily_total,
    detailed_weekly_log,
    distinct_food_names,
    distinct_food_names_on,
    historical_series,
    intake_percentage,
    today_total,
    weekly_series,
)
from tests.conftest import NOW, make_entry

NEW_YORK = ZoneInfo("America/New_York")


def test_entries_around_local_midnight_fall_into_separate_days() -> None:
    late = make_entry("Tea", 10.0, datetime(2024, 1, 1, 23, 59, tzinfo=NEW_YORK))
    early = make_entry("Toast", 90.0, datetime(2024, 1, 2, 0, 1, tzinfo=NEW_YORK))
    entries = [late, early]

    assert daily_total(entries, date(2024, 1, 1), NEW_YORK).calories == 10.0
    assert daily_total(entries, date(2024, 1, 2), NEW_YORK).calories == 90.0


def test_today_total_uses_zone_of_now() -> None:
    # 03:30 UTC on the 15th is still the evening of the 14th in New York.
    entry = make_entry("Pizza", 800.0, datetime(2024, 5, 15, 3, 30, tzinfo=UTC))
    now = NOW.astimezone(NEW_YORK)

    assert today_total([entry], now).calories == 0.0
    assert today_total([entry], NOW).calories == 800.0


def test_today_total_sums_macros() -> None:
    entries = [
        make_entry("Eggs", 150.0, NOW, protein=12.0, carbs=1.0, fat=10.0),
        make_entry(
            "Oats", 300.0, NOW - timedelta(hours=2), protein=10.0, carbs=54.0, fat=5.0
        ),
        make_entry("Steak", 600.0, NOW - timedelta(days=1), protein=50.0),
    ]

    total = today_total(entries, NOW)

    assert total.calories == 450.0
    assert total.protein_g == 22.0
    assert total.carbs_g == 55.0
    assert total.fat_g == 15.0


def test_today_total_rejects_naive_now() -> None:
    with pytest.raises(ValueError):
        today_total([], NOW.replace(tzinfo=None))


def test_weekly_series_zero_fills_oldest_first() -> None:
    entries = [make_entry("Rice", 400.0, NOW - timedelta(days=3))]

    series = weekly_series(entries, NOW)

    assert [point.day for point in series] == [
        date(2024, 5, 9) + timedelta(days=offset) for offset in range(7)
    ]
    assert [point.calories for point in series] == [0, 0, 0, 400.0, 0, 0, 0]
    assert series[-1].day_label == "Wed"


def test_historical_series_on_empty_log_is_zero_filled() -> None:
    series = historical_series([], NOW, 30)

    for nutrient in ("calories", "protein", "carbs", "fat"):
        points = series.for_nutrient(nutrient)
        assert [point.x for point in points] == list(range(30))
        assert all(point.y == 0 for point in points)


def test_historical_series_places_today_last() -> None:
    entries = [
        make_entry("Soup", 250.0, NOW, protein=8.0),
        make_entry("Bread", 200.0, NOW - timedelta(days=29), carbs=40.0),
        make_entry("Ancient", 999.0, NOW - timedelta(days=30)),
    ]

    series = historical_series(entries, NOW, 30)

    assert series.calories[-1].y == 250.0
    assert series.protein[-1].y == 8.0
    assert series.calories[0].y == 200.0
    assert series.carbs[0].y == 40.0
    assert sum(point.y for point in series.calories) == 450.0


def test_distinct_food_names_normalizes_and_applies_cutoff() -> None:
    entries = [
        make_entry(" Apple ", 50.0, NOW),
        make_entry("apple", 50.0, NOW - timedelta(days=1)),
        make_entry("BANANA", 90.0, NOW - timedelta(days=2)),
        make_entry("Kiwi", 40.0, NOW - timedelta(days=9)),
    ]

    assert distinct_food_names(entries, NOW, 7) == {"apple", "banana"}


def test_distinct_food_names_on_day_is_case_insensitive() -> None:
    entries = [
        make_entry("Apple", 50.0, NOW),
        make_entry("apple", 50.0, NOW),
        make_entry("Pear", 60.0, NOW - timedelta(days=1)),
    ]

    assert distinct_food_names_on(entries, NOW.date(), NOW.tzinfo) == {"apple"}


def test_detailed_weekly_log_groups_by_day() -> None:
    breakfast = make_entry("Yogurt", 120.0, NOW - timedelta(hours=4))
    lunch = make_entry("Salad", 350.0, NOW)
    old = make_entry("Pasta", 700.0, NOW - timedelta(days=8))

    grouped = detailed_weekly_log([lunch, old, breakfast], NOW)

    assert list(grouped) == [
        (date(2024, 5, 9) + timedelta(days=offset)).isoformat() for offset in range(7)
    ]
    assert grouped["2024-05-15"] == [breakfast, lunch]
    assert all(not grouped[key] for key in list(grouped)[:-1])


def test_intake_percentage() -> None:
    assert intake_percentage(700.0, 2000.0) == pytest.approx(35.0)
    assert intake_percentage(700.0, 0.0) == 0.0
