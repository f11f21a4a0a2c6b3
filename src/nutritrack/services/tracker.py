"""Tracker service: log mutations with event-driven progress evaluation."""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from nutritrack.domain.forecast import GoalForecasts
from nutritrack.domain.goals import FitnessMode, GoalSummary, UserGoal, summarize_goal
from nutritrack.domain.log import LogEntry, NutritionFact
from nutritrack.domain.models import UserProfile
from nutritrack.domain.planner import MealType, PlannedMeal, SharedMeal
from nutritrack.domain.progress import ProgressSummary
from nutritrack.domain.stats import DashboardSummary
from nutritrack.domain.wellness import (
    SleepQuality,
    SleepRecord,
    WaterIntakeRecord,
    WaterIntakeSummary,
    WaterUnit,
)
from nutritrack.services.achievements import (
    CHALLENGE_RULES,
    MILESTONE_RULES,
    ChallengeContext,
    ChallengeRule,
    MilestoneContext,
    MilestoneRule,
    evaluate_challenges,
    evaluate_milestones,
)
from nutritrack.services.aggregation import (
    detailed_weekly_log,
    intake_percentage,
    today_total,
    weekly_series,
)
from nutritrack.services.forecast import forecast
from nutritrack.services.state import (
    COMPLETED_CHALLENGES_KEY,
    FITNESS_MODE_KEY,
    GOAL_KEY,
    LOG_KEY,
    MEAL_TYPES,
    MILESTONES_KEY,
    PLANNED_MEALS_KEY,
    POINTS_KEY,
    SHARED_FEED_KEY,
    SLEEP_KEY,
    TIMEZONE_KEY,
    WATER_KEY,
    WATER_UNITS,
    StateRepository,
    UserState,
    is_known_timezone,
    load_state,
    save_state,
)
from nutritrack.services.streaks import logging_streak
from nutritrack.services.wellness import sleep_record_on, water_total_ml

LOCK_STRIPES = 64


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex}"


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass
class TrackerService:
    """Service that owns a user's log, goals and progress state.

    Every call loads a consistent snapshot, applies at most one mutation,
    re-evaluates streak, milestones and challenges, and saves only the
    collections that changed. Calls for the same user are serialized by a
    fixed pool of striped locks, so lock memory does not grow with users.
    """

    repository: StateRepository
    default_timezone: str = "UTC"
    clock: Callable[[], datetime] = _utc_now
    milestone_rules: tuple[MilestoneRule, ...] = MILESTONE_RULES
    challenge_rules: tuple[ChallengeRule, ...] = CHALLENGE_RULES
    _locks: tuple[threading.Lock, ...] = field(
        default_factory=lambda: tuple(threading.Lock() for _ in range(LOCK_STRIPES)),
        init=False,
        repr=False,
    )

    # Food log

    def add_food(
        self, user_id: UUID, fact: NutritionFact, quantity_label: str | None = None
    ) -> LogEntry:
        """Log a nutrition lookup result as a new entry."""
        with self._user_state(user_id) as state:
            now = self._now(state)
            entry = LogEntry(
                id=_new_id("log"),
                name=fact.name.strip(),
                calories=fact.calories,
                protein_g=fact.protein,
                carbs_g=fact.carbs,
                fat_g=fact.fat,
                quantity_label=quantity_label or fact.quantity_label(),
                logged_at_ms=_to_ms(now),
            )
            state.entries.append(entry)
            self._commit(user_id, state, now, {LOG_KEY})
        return entry

    def remove_food(self, user_id: UUID, entry_id: str) -> bool:
        """Remove a log entry; returns False when it does not exist."""
        with self._user_state(user_id) as state:
            remaining = [entry for entry in state.entries if entry.id != entry_id]
            if len(remaining) == len(state.entries):
                return False
            state.entries = remaining
            self._commit(user_id, state, self._now(state), {LOG_KEY})
        return True

    def get_log(self, user_id: UUID) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        with self._user_state(user_id) as state:
            return sorted(state.entries, key=lambda entry: entry.logged_at_ms)

    # Goals and settings

    def set_base_calorie_goal(self, user_id: UUID, calories: float) -> GoalSummary:
        """Set the base daily calorie goal."""
        if calories <= 0:
            raise ValueError("Calorie goal must be positive")
        with self._user_state(user_id) as state:
            state.goal = UserGoal(base_calories=calories)
            self._commit(user_id, state, self._now(state), {GOAL_KEY})
            return summarize_goal(state.goal, state.fitness_mode)

    def set_fitness_mode(self, user_id: UUID, mode: FitnessMode | str) -> GoalSummary:
        """Switch the fitness mode that adjusts the calorie goal."""
        resolved = FitnessMode(mode)
        with self._user_state(user_id) as state:
            state.fitness_mode = resolved
            self._commit(user_id, state, self._now(state), {FITNESS_MODE_KEY})
            return summarize_goal(state.goal, state.fitness_mode)

    def get_goal_summary(self, user_id: UUID) -> GoalSummary:
        """Return goal settings with derived macro targets."""
        with self._user_state(user_id) as state:
            return summarize_goal(state.goal, state.fitness_mode)

    def set_timezone(self, user_id: UUID, timezone_name: str) -> None:
        """Set the zone used to bucket entries into calendar days."""
        cleaned = timezone_name.strip()
        if not is_known_timezone(cleaned):
            raise ValueError(f"Unknown timezone: {timezone_name}")
        with self._user_state(user_id) as state:
            state.timezone = cleaned
            self._commit(user_id, state, self._now(state), {TIMEZONE_KEY})

    def get_timezone(self, user_id: UUID) -> str:
        """Return the user's timezone or the default when unset."""
        with self._user_state(user_id) as state:
            return state.timezone or self.default_timezone

    # Planner

    def add_planned_meal(  # noqa: PLR0913
        self,
        user_id: UUID,
        fact: NutritionFact,
        planned_date: date,
        meal_type: MealType,
        quantity_label: str | None = None,
    ) -> PlannedMeal:
        """Plan a food for a date and meal slot."""
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")
        meal = PlannedMeal(
            id=_new_id("plan"),
            name=fact.name.strip(),
            calories=fact.calories,
            protein_g=fact.protein,
            carbs_g=fact.carbs,
            fat_g=fact.fat,
            quantity_label=quantity_label or fact.quantity_label(),
            planned_date=planned_date.isoformat(),
            meal_type=meal_type,
        )
        with self._user_state(user_id) as state:
            state.planned_meals.append(meal)
            self._commit(user_id, state, self._now(state), {PLANNED_MEALS_KEY})
        return meal

    def remove_planned_meal(self, user_id: UUID, meal_id: str) -> bool:
        """Remove a planned meal; returns False when it does not exist."""
        with self._user_state(user_id) as state:
            remaining = [meal for meal in state.planned_meals if meal.id != meal_id]
            if len(remaining) == len(state.planned_meals):
                return False
            state.planned_meals = remaining
            self._commit(user_id, state, self._now(state), {PLANNED_MEALS_KEY})
        return True

    def get_planned_meals(
        self,
        user_id: UUID,
        planned_date: date | None = None,
        meal_type: MealType | None = None,
    ) -> list[PlannedMeal]:
        """Return planned meals, optionally filtered by date and meal type."""
        with self._user_state(user_id) as state:
            meals = state.planned_meals
        if planned_date is not None:
            meals = [m for m in meals if m.planned_date == planned_date.isoformat()]
        if meal_type is not None:
            meals = [m for m in meals if m.meal_type == meal_type]
        return meals

    # Water and sleep

    def add_water_intake(
        self, user_id: UUID, amount: float, unit: WaterUnit
    ) -> WaterIntakeRecord:
        """Record water consumed today."""
        if unit not in WATER_UNITS:
            raise ValueError(f"Unknown water unit: {unit}")
        if amount <= 0:
            raise ValueError("Water amount must be positive")
        with self._user_state(user_id) as state:
            now = self._now(state)
            record = WaterIntakeRecord(
                id=_new_id("water"),
                date=now.date().isoformat(),
                amount=amount,
                unit=unit,
                logged_at_ms=_to_ms(now),
            )
            state.water_records.append(record)
            self._commit(user_id, state, now, {WATER_KEY})
        return record

    def remove_water_intake(self, user_id: UUID, record_id: str) -> bool:
        """Remove a water record; returns False when it does not exist."""
        with self._user_state(user_id) as state:
            remaining = [r for r in state.water_records if r.id != record_id]
            if len(remaining) == len(state.water_records):
                return False
            state.water_records = remaining
            self._commit(user_id, state, self._now(state), {WATER_KEY})
        return True

    def get_water_intake(
        self, user_id: UUID, day: date | None = None
    ) -> WaterIntakeSummary:
        """Return water records and their millilitre total for a date."""
        with self._user_state(user_id) as state:
            key = (day or self._now(state).date()).isoformat()
            records = [r for r in state.water_records if r.date == key]
        return WaterIntakeSummary(
            date=key, records=records, total_ml=water_total_ml(records, key)
        )

    def add_sleep_record(
        self,
        user_id: UUID,
        duration_hours: float,
        day: date | None = None,
        quality: SleepQuality | None = None,
        notes: str | None = None,
    ) -> SleepRecord:
        """Record sleep for a date, replacing any earlier record for it."""
        if duration_hours < 0:
            raise ValueError("Sleep duration cannot be negative")
        with self._user_state(user_id) as state:
            now = self._now(state)
            key = (day or now.date()).isoformat()
            record = SleepRecord(
                id=_new_id("sleep"),
                date=key,
                duration_hours=duration_hours,
                quality=quality,
                notes=notes,
                logged_at_ms=_to_ms(now),
            )
            records = [r for r in state.sleep_records if r.date != key]
            records.append(record)
            state.sleep_records = sorted(records, key=lambda r: r.date, reverse=True)
            self._commit(user_id, state, now, {SLEEP_KEY})
        return record

    def remove_sleep_record(self, user_id: UUID, record_id: str) -> bool:
        """Remove a sleep record; returns False when it does not exist."""
        with self._user_state(user_id) as state:
            remaining = [r for r in state.sleep_records if r.id != record_id]
            if len(remaining) == len(state.sleep_records):
                return False
            state.sleep_records = remaining
            self._commit(user_id, state, self._now(state), {SLEEP_KEY})
        return True

    def get_sleep_record(
        self, user_id: UUID, day: date | None = None
    ) -> SleepRecord | None:
        """Return the sleep record for a date, if any."""
        with self._user_state(user_id) as state:
            key = (day or self._now(state).date()).isoformat()
            return sleep_record_on(state.sleep_records, key)

    # Meal feed

    def share_meal(
        self, user_id: UUID, entry_id: str, profile: UserProfile
    ) -> SharedMeal | None:
        """Share a logged entry to the feed; None when the entry is unknown."""
        with self._user_state(user_id) as state:
            entry = next((e for e in state.entries if e.id == entry_id), None)
            if entry is None:
                return None
            now = self._now(state)
            shared = SharedMeal(
                entry=entry,
                shared_by_display_name=profile.feed_name(),
                shared_by_uid=profile.uid,
                shared_at_ms=_to_ms(now),
            )
            state.shared_feed = _newest_first([shared, *state.shared_feed])
            save_state(self.repository, user_id, state, {SHARED_FEED_KEY})
        return shared

    def remove_shared_meal(self, user_id: UUID, entry_id: str) -> bool:
        """Remove a shared meal; returns False when it is not in the feed."""
        with self._user_state(user_id) as state:
            remaining = [s for s in state.shared_feed if s.entry.id != entry_id]
            if len(remaining) == len(state.shared_feed):
                return False
            state.shared_feed = remaining
            save_state(self.repository, user_id, state, {SHARED_FEED_KEY})
        return True

    def get_shared_feed(self, user_id: UUID) -> list[SharedMeal]:
        """Return shared meals, newest first."""
        with self._user_state(user_id) as state:
            return _newest_first(state.shared_feed)

    # Analytics

    def get_dashboard(self, user_id: UUID) -> DashboardSummary:
        """Return today's totals, goal progress and the trailing week."""
        with self._user_state(user_id) as state:
            now = self._now(state)
            goal = summarize_goal(state.goal, state.fitness_mode)
            today = today_total(state.entries, now)
            return DashboardSummary(
                today=today,
                goal=goal,
                intake_percentage=intake_percentage(
                    today.calories, goal.effective_calories
                ),
                weekly=weekly_series(state.entries, now),
                weekly_log=detailed_weekly_log(state.entries, now),
                streak=logging_streak(state.entries, now),
            )

    def get_forecasts(self, user_id: UUID) -> GoalForecasts:
        """Return weekly and monthly goal forecasts."""
        with self._user_state(user_id) as state:
            now = self._now(state)
            goal = summarize_goal(state.goal, state.fitness_mode)
            return forecast(state.entries, goal.effective_calories, now)

    def get_progress(self, user_id: UUID) -> ProgressSummary:
        """Return streak, achievements and points without re-evaluating."""
        with self._user_state(user_id) as state:
            return ProgressSummary(
                streak=logging_streak(state.entries, self._now(state)),
                milestones=state.milestones,
                completed_challenges=state.completed_challenges,
                points=state.points,
            )

    def refresh_progress(
        self, user_id: UUID, profile: UserProfile | None = None
    ) -> ProgressSummary:
        """Re-evaluate every rule against current state and persist awards.

        This is the only path that hands a profile to challenge rules;
        evaluation after a mutation runs without one.
        """
        with self._user_state(user_id) as state:
            now = self._now(state)
            streak = self._commit(user_id, state, now, set(), profile)
            return ProgressSummary(
                streak=streak,
                milestones=state.milestones,
                completed_challenges=state.completed_challenges,
                points=state.points,
            )

    # Internals

    @contextmanager
    def _user_state(self, user_id: UUID) -> Iterator[UserState]:
        with self._lock_for(user_id):
            yield load_state(self.repository, user_id)

    def _lock_for(self, user_id: UUID) -> threading.Lock:
        # Users sharing a stripe are serialized together.
        return self._locks[hash(user_id) % len(self._locks)]

    def _now(self, state: UserState) -> datetime:
        zone = ZoneInfo(state.timezone or self.default_timezone)
        return self.clock().astimezone(zone)

    def _commit(
        self,
        user_id: UUID,
        state: UserState,
        now: datetime,
        changed: set[str],
        profile: UserProfile | None = None,
    ) -> int:
        """Evaluate rules against the mutated snapshot and save what changed."""
        streak = logging_streak(state.entries, now)
        now_ms = _to_ms(now)
        milestone_outcome = evaluate_milestones(
            self.milestone_rules,
            state.milestones,
            MilestoneContext(
                entries=state.entries,
                streak=streak,
                today=now.date(),
                tz=now.tzinfo,
                planned_meals=state.planned_meals,
                goal=state.goal,
                fitness_mode=state.fitness_mode,
            ),
            now_ms,
        )
        challenge_outcome = evaluate_challenges(
            self.challenge_rules,
            state.completed_challenges,
            state.points,
            ChallengeContext(
                entries=state.entries,
                streak=streak,
                today=now.date(),
                tz=now.tzinfo,
                planned_meals=state.planned_meals,
                goal=state.goal,
                fitness_mode=state.fitness_mode,
                water_records=state.water_records,
                sleep_records=state.sleep_records,
                completed=state.completed_challenges,
                profile=profile,
            ),
            now_ms,
        )
        keys = set(changed)
        if milestone_outcome.newly_achieved:
            state.milestones = milestone_outcome.achieved
            keys.add(MILESTONES_KEY)
        if challenge_outcome.newly_completed:
            state.completed_challenges = challenge_outcome.completed
            state.points = challenge_outcome.points
            keys.update({COMPLETED_CHALLENGES_KEY, POINTS_KEY})
        save_state(self.repository, user_id, state, keys)
        return streak


def _newest_first(feed: list[SharedMeal]) -> list[SharedMeal]:
    return sorted(feed, key=lambda item: item.shared_at_ms, reverse=True)
