"""Tests for the tracker service."""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest

from nutritrack.domain.goals import FitnessMode
from nutritrack.domain.log import NutritionFact
from nutritrack.domain.models import UserProfile
from nutritrack.services.achievements import ChallengeRule
from nutritrack.services.state import (
    MILESTONES_KEY,
    TIMEZONE_KEY,
    UserState,
    save_state,
)
from nutritrack.services.tracker import LOCK_STRIPES
from tests.conftest import NOW, make_entry


def _fact(
    name: str = "Oatmeal", calories: float = 300.0, serving_size_g: float | None = None
) -> NutritionFact:
    return NutritionFact(
        name=name,
        calories=calories,
        protein=10.0,
        carbs=50.0,
        fat=6.0,
        serving_size_g=serving_size_g,
    )


def test_dashboard_reports_today_against_goal(tracker_service, clock, user_id) -> None:
    clock.now = NOW - timedelta(days=1)
    tracker_service.add_food(user_id, _fact("Pasta", 500.0))
    clock.advance(days=1)
    tracker_service.add_food(user_id, _fact("Curry", 700.0))

    dashboard = tracker_service.get_dashboard(user_id)

    assert dashboard.today.calories == 700.0
    assert dashboard.goal.effective_calories == 2000.0
    assert dashboard.intake_percentage == pytest.approx(35.0)
    assert [day.calories for day in dashboard.weekly][-2:] == [500.0, 700.0]
    assert [entry.name for entry in dashboard.weekly_log["2024-05-15"]] == ["Curry"]
    assert dashboard.streak == 2


def test_add_food_derives_quantity_label(tracker_service, user_id) -> None:
    sized = tracker_service.add_food(user_id, _fact(serving_size_g=150.0))
    labelled = tracker_service.add_food(user_id, _fact(), quantity_label="2 cups")
    plain = tracker_service.add_food(user_id, _fact())

    assert sized.quantity_label == "150g"
    assert labelled.quantity_label == "2 cups"
    assert plain.quantity_label == "1 serving"
    assert sized.logged_at_ms == int(NOW.timestamp() * 1000)
    assert [entry.id for entry in tracker_service.get_log(user_id)] == [
        sized.id,
        labelled.id,
        plain.id,
    ]


def test_remove_food(tracker_service, user_id) -> None:
    entry = tracker_service.add_food(user_id, _fact())

    assert tracker_service.remove_food(user_id, "log-missing") is False
    assert tracker_service.remove_food(user_id, entry.id) is True
    assert tracker_service.get_log(user_id) == []


def test_first_log_is_awarded_on_mutation(
    tracker_service, state_repository, user_id
) -> None:
    tracker_service.add_food(user_id, _fact())

    progress = tracker_service.get_progress(user_id)

    assert [m.definition_id for m in progress.milestones] == ["firstLog"]
    assert progress.streak == 1
    assert MILESTONES_KEY in state_repository.saved_keys


def test_milestone_survives_removing_entries(tracker_service, user_id) -> None:
    entry = tracker_service.add_food(user_id, _fact())
    tracker_service.remove_food(user_id, entry.id)

    progress = tracker_service.get_progress(user_id)

    assert [m.definition_id for m in progress.milestones] == ["firstLog"]
    assert progress.streak == 0


def test_fitness_mode_adjusts_goal(tracker_service, user_id) -> None:
    summary = tracker_service.set_fitness_mode(user_id, "weightLoss")

    assert summary.fitness_mode == FitnessMode.WEIGHT_LOSS
    assert summary.effective_calories == 1700.0
    assert summary.targets.protein_g == pytest.approx(127.5)
    progress = tracker_service.get_progress(user_id)
    assert [m.definition_id for m in progress.milestones] == ["goalSetter"]


def test_set_base_calorie_goal(tracker_service, user_id) -> None:
    tracker_service.set_fitness_mode(user_id, FitnessMode.MUSCLE_GAIN)

    summary = tracker_service.set_base_calorie_goal(user_id, 2500.0)

    assert summary.base_calories == 2500.0
    assert summary.effective_calories == 2800.0
    assert tracker_service.get_goal_summary(user_id) == summary
    with pytest.raises(ValueError):
        tracker_service.set_base_calorie_goal(user_id, 0)


def test_timezone_controls_day_bucketing(tracker_service, clock, user_id) -> None:
    assert tracker_service.get_timezone(user_id) == "UTC"
    tracker_service.set_timezone(user_id, "America/New_York")
    clock.now = datetime(2024, 5, 15, 3, 0, tzinfo=UTC)
    tracker_service.add_food(user_id, _fact(calories=450.0))

    clock.now = NOW
    dashboard = tracker_service.get_dashboard(user_id)

    assert tracker_service.get_timezone(user_id) == "America/New_York"
    assert dashboard.today.calories == 0.0
    assert dashboard.weekly[-2].calories == 450.0
    assert dashboard.streak == 1


def test_invalid_timezone_is_rejected(tracker_service, user_id) -> None:
    with pytest.raises(ValueError):
        tracker_service.set_timezone(user_id, "Mars/Olympus_Mons")
    with pytest.raises(ValueError):
        tracker_service.set_timezone(user_id, "  ")


def test_water_intake_totals_and_hydration_challenge(tracker_service, user_id) -> None:
    tracker_service.add_water_intake(user_id, 50.0, "oz")
    assert tracker_service.get_progress(user_id).points == 0

    tracker_service.add_water_intake(user_id, 600.0, "ml")
    summary = tracker_service.get_water_intake(user_id)

    assert summary.date == "2024-05-15"
    assert summary.total_ml == pytest.approx(2078.675)
    assert len(summary.records) == 2
    progress = tracker_service.get_progress(user_id)
    assert [c.definition_id for c in progress.completed_challenges] == [
        "hydrationHeroToday"
    ]
    assert progress.points == 20
    assert tracker_service.get_water_intake(user_id, date(2024, 5, 14)).total_ml == 0


def test_water_intake_validation(tracker_service, user_id) -> None:
    with pytest.raises(ValueError):
        tracker_service.add_water_intake(user_id, 0.0, "ml")
    with pytest.raises(ValueError):
        tracker_service.add_water_intake(user_id, 250.0, "cups")


def test_remove_water_intake(tracker_service, user_id) -> None:
    record = tracker_service.add_water_intake(user_id, 250.0, "ml")

    assert tracker_service.remove_water_intake(user_id, record.id) is True
    assert tracker_service.remove_water_intake(user_id, record.id) is False
    assert tracker_service.get_water_intake(user_id).total_ml == 0


def test_sleep_record_replaces_same_date(tracker_service, user_id) -> None:
    tracker_service.add_sleep_record(user_id, 6.0, quality="poor")
    record = tracker_service.add_sleep_record(user_id, 8.5, quality="good", notes="ok")
    tracker_service.add_sleep_record(user_id, 7.0, day=date(2024, 5, 14))

    today = tracker_service.get_sleep_record(user_id)

    assert today == record
    earlier = tracker_service.get_sleep_record(user_id, date(2024, 5, 14))
    assert earlier.duration_hours == 7.0
    progress = tracker_service.get_progress(user_id)
    assert [c.definition_id for c in progress.completed_challenges] == [
        "sleepChampionToday"
    ]
    assert tracker_service.remove_sleep_record(user_id, record.id) is True
    assert tracker_service.get_sleep_record(user_id) is None


def test_negative_sleep_is_rejected(tracker_service, user_id) -> None:
    with pytest.raises(ValueError):
        tracker_service.add_sleep_record(user_id, -1.0)


def test_planned_meals_filter_and_planner_milestone(tracker_service, user_id) -> None:
    start = date(2024, 5, 20)
    for offset in range(5):
        tracker_service.add_planned_meal(
            user_id, _fact(f"Dish {offset}"), start + timedelta(days=offset), "dinner"
        )
    lunch = tracker_service.add_planned_meal(user_id, _fact("Wrap"), start, "lunch")

    assert len(tracker_service.get_planned_meals(user_id)) == 6
    assert tracker_service.get_planned_meals(user_id, start, "lunch") == [lunch]
    assert len(tracker_service.get_planned_meals(user_id, start)) == 2
    progress = tracker_service.get_progress(user_id)
    assert "plannerPro" in [m.definition_id for m in progress.milestones]
    assert tracker_service.remove_planned_meal(user_id, lunch.id) is True
    assert tracker_service.remove_planned_meal(user_id, lunch.id) is False


def test_planned_meal_rejects_unknown_meal_type(tracker_service, user_id) -> None:
    with pytest.raises(ValueError):
        tracker_service.add_planned_meal(user_id, _fact(), date(2024, 5, 20), "brunch")


def test_share_meal_feed(tracker_service, clock, user_id) -> None:
    first = tracker_service.add_food(user_id, _fact("Tacos"))
    second = tracker_service.add_food(user_id, _fact("Sushi"))
    profile = UserProfile(uid=str(user_id), email="cook@example.com")

    assert tracker_service.share_meal(user_id, "log-missing", profile) is None
    tracker_service.share_meal(user_id, first.id, profile)
    clock.advance(minutes=5)
    shared = tracker_service.share_meal(
        user_id, second.id, UserProfile(uid=str(user_id), email="", display_name="Sam")
    )

    feed = tracker_service.get_shared_feed(user_id)
    assert [item.entry.name for item in feed] == ["Sushi", "Tacos"]
    assert feed[0] == shared
    assert feed[0].shared_by_display_name == "Sam"
    assert feed[1].shared_by_display_name == "cook@example.com"
    assert tracker_service.remove_shared_meal(user_id, first.id) is True
    assert tracker_service.remove_shared_meal(user_id, first.id) is False
    assert tracker_service.get_shared_feed(user_id) == [shared]


def test_refresh_progress_awards_streak_rewards(
    tracker_service, state_repository, user_id
) -> None:
    entries = [
        make_entry("Soup", 300.0, NOW - timedelta(days=days)) for days in range(5)
    ]
    save_state(state_repository, user_id, UserState(entries=entries))

    before = tracker_service.get_progress(user_id)
    refreshed = tracker_service.refresh_progress(user_id)
    again = tracker_service.refresh_progress(user_id)

    assert before.streak == 5
    assert before.points == 0
    assert {m.definition_id for m in refreshed.milestones} == {"firstLog", "streak3"}
    assert [c.definition_id for c in refreshed.completed_challenges] == ["logStreak5"]
    assert refreshed.points == 50
    assert again.points == 50


def test_forecasts_need_entries(tracker_service, user_id) -> None:
    assert tracker_service.get_forecasts(user_id).weekly is None

    for _ in range(5):
        tracker_service.add_food(user_id, _fact(calories=2000.0))
        tracker_service.clock.advance(days=1)

    forecasts = tracker_service.get_forecasts(user_id)

    assert forecasts.weekly is not None
    assert forecasts.weekly.calories.status.value != "moreDataNeeded"
    assert forecasts.monthly.calories.status.value == "moreDataNeeded"


def test_concurrent_mutations_are_serialized(tracker_service, user_id) -> None:
    with ThreadPoolExecutor(max_workers=8) as executor:
        list(
            executor.map(
                lambda index: tracker_service.add_food(
                    user_id, _fact(f"Snack {index}")
                ),
                range(20),
            )
        )

    assert len(tracker_service.get_log(user_id)) == 20


def test_unknown_stored_timezone_falls_back_to_default(
    tracker_service, state_repository, user_id
) -> None:
    entry = tracker_service.add_food(user_id, _fact())
    state_repository.values[(user_id, TIMEZONE_KEY)] = "Mars/Olympus"

    assert tracker_service.get_timezone(user_id) == "UTC"
    assert tracker_service.get_progress(user_id).streak == 1
    assert tracker_service.remove_food(user_id, entry.id) is True


def test_lock_pool_does_not_grow_with_users(tracker_service) -> None:
    for _ in range(1000):
        tracker_service.get_progress(uuid4())

    assert len(tracker_service._locks) == LOCK_STRIPES
    same_user = uuid4()
    assert tracker_service._lock_for(same_user) is tracker_service._lock_for(same_user)


def test_refresh_progress_passes_profile_to_challenges(
    tracker_service, user_id
) -> None:
    tracker_service.challenge_rules = (
        ChallengeRule(
            "completeProfile",
            lambda ctx: ctx.profile is not None and ctx.profile.age is not None,
            25,
        ),
    )
    tracker_service.add_food(user_id, _fact())
    assert tracker_service.get_progress(user_id).points == 0

    progress = tracker_service.refresh_progress(
        user_id, UserProfile(uid=str(user_id), email="a@example.com", age=31)
    )

    assert [c.definition_id for c in progress.completed_challenges] == [
        "completeProfile"
    ]
    assert progress.points == 25
