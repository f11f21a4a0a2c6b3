"""Per-user state snapshot and its key-value persistence."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol, TypeVar, get_args
from uuid import UUID
from zoneinfo import ZoneInfo

from nutritrack.domain.goals import FitnessMode, UserGoal
from nutritrack.domain.log import LogEntry
from nutritrack.domain.planner import MealType, PlannedMeal, SharedMeal
from nutritrack.domain.progress import CompletedChallenge, Milestone
from nutritrack.domain.wellness import (
    SleepQuality,
    SleepRecord,
    WaterIntakeRecord,
    WaterUnit,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOG_KEY = "log"
GOAL_KEY = "goal"
FITNESS_MODE_KEY = "fitnessMode"
PLANNED_MEALS_KEY = "plannedMeals"
MILESTONES_KEY = "milestones"
WATER_KEY = "water"
SLEEP_KEY = "sleep"
SHARED_FEED_KEY = "sharedFeed"
COMPLETED_CHALLENGES_KEY = "completedChallenges"
POINTS_KEY = "points"
TIMEZONE_KEY = "timezone"

MEAL_TYPES = frozenset(get_args(MealType))
SLEEP_QUALITIES = frozenset(get_args(SleepQuality))
WATER_UNITS = frozenset(get_args(WaterUnit))

ALL_KEYS = (
    LOG_KEY,
    GOAL_KEY,
    FITNESS_MODE_KEY,
    PLANNED_MEALS_KEY,
    MILESTONES_KEY,
    WATER_KEY,
    SLEEP_KEY,
    SHARED_FEED_KEY,
    COMPLETED_CHALLENGES_KEY,
    POINTS_KEY,
    TIMEZONE_KEY,
)


class StateRepository(Protocol):
    """Key-value persistence for JSON-compatible per-user collections."""

    def load(self, user_id: UUID, key: str) -> object | None:
        """Return the stored value for a key, or None when absent."""

    def save(self, user_id: UUID, key: str, value: object) -> None:
        """Store a value under a key, replacing any previous value."""

    def remove(self, user_id: UUID, key: str) -> None:
        """Delete the value stored under a key."""


@dataclass
class UserState:
    """A fully materialized snapshot of one user's records."""

    entries: list[LogEntry] = field(default_factory=list)
    goal: UserGoal = field(default_factory=UserGoal)
    fitness_mode: FitnessMode = FitnessMode.MAINTENANCE
    planned_meals: list[PlannedMeal] = field(default_factory=list)
    milestones: list[Milestone] = field(default_factory=list)
    water_records: list[WaterIntakeRecord] = field(default_factory=list)
    sleep_records: list[SleepRecord] = field(default_factory=list)
    shared_feed: list[SharedMeal] = field(default_factory=list)
    completed_challenges: list[CompletedChallenge] = field(default_factory=list)
    points: int = 0
    timezone: str | None = None


def load_state(repository: StateRepository, user_id: UUID) -> UserState:
    """Load every collection for a user, falling back to defaults."""
    state = UserState()
    state.entries = _load_list(repository, user_id, LOG_KEY, parse_log_entry)
    goal = repository.load(user_id, GOAL_KEY)
    if goal is not None:
        try:
            state.goal = parse_goal(goal)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed goal", extra={"user_id": user_id})
    mode = repository.load(user_id, FITNESS_MODE_KEY)
    if mode is not None:
        try:
            state.fitness_mode = FitnessMode(mode)
        except ValueError:
            logger.warning("Ignoring unknown fitness mode", extra={"user_id": user_id})
    state.planned_meals = _load_list(
        repository, user_id, PLANNED_MEALS_KEY, parse_planned_meal
    )
    state.milestones = _load_list(
        repository, user_id, MILESTONES_KEY, parse_milestone
    )
    state.water_records = _load_list(repository, user_id, WATER_KEY, parse_water)
    state.sleep_records = _load_list(repository, user_id, SLEEP_KEY, parse_sleep)
    state.shared_feed = _load_list(
        repository, user_id, SHARED_FEED_KEY, parse_shared_meal
    )
    state.completed_challenges = _load_list(
        repository, user_id, COMPLETED_CHALLENGES_KEY, parse_challenge
    )
    points = repository.load(user_id, POINTS_KEY)
    if isinstance(points, int | float):
        state.points = int(points)
    timezone = repository.load(user_id, TIMEZONE_KEY)
    if timezone is not None:
        if isinstance(timezone, str) and is_known_timezone(timezone):
            state.timezone = timezone
        else:
            logger.warning("Ignoring unknown timezone", extra={"user_id": user_id})
    return state


def is_known_timezone(value: str) -> bool:
    """Return whether value names an IANA zone available to zoneinfo."""
    if not value:
        return False
    try:
        ZoneInfo(value)
    except Exception:
        return False
    return True


def save_state(
    repository: StateRepository,
    user_id: UUID,
    state: UserState,
    keys: Iterable[str] = ALL_KEYS,
) -> None:
    """Persist the given collections of a user's state."""
    for key in sorted(set(keys), key=ALL_KEYS.index):
        repository.save(user_id, key, dump_key(state, key))


def dump_key(state: UserState, key: str) -> object:  # noqa: PLR0911
    """Return the JSON-compatible value stored under a key."""
    if key == LOG_KEY:
        return [dump_log_entry(entry) for entry in state.entries]
    if key == GOAL_KEY:
        return {"baseCalories": state.goal.base_calories}
    if key == FITNESS_MODE_KEY:
        return state.fitness_mode.value
    if key == PLANNED_MEALS_KEY:
        return [dump_planned_meal(meal) for meal in state.planned_meals]
    if key == MILESTONES_KEY:
        return [
            {"id": milestone.definition_id, "achievedDate": milestone.achieved_at_ms}
            for milestone in state.milestones
        ]
    if key == WATER_KEY:
        return [dump_water(record) for record in state.water_records]
    if key == SLEEP_KEY:
        return [dump_sleep(record) for record in state.sleep_records]
    if key == SHARED_FEED_KEY:
        return [dump_shared_meal(item) for item in state.shared_feed]
    if key == COMPLETED_CHALLENGES_KEY:
        return [
            {
                "id": challenge.definition_id,
                "completedDate": challenge.completed_at_ms,
                "pointsAwarded": challenge.points_awarded,
            }
            for challenge in state.completed_challenges
        ]
    if key == POINTS_KEY:
        return state.points
    if key == TIMEZONE_KEY:
        return state.timezone
    raise ValueError(f"Unknown state key: {key}")


def dump_log_entry(entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "name": entry.name,
        "calories": entry.calories,
        "protein": entry.protein_g,
        "carbs": entry.carbs_g,
        "fat": entry.fat_g,
        "quantity": entry.quantity_label,
        "timestamp": entry.logged_at_ms,
    }


def parse_log_entry(row: dict[str, object]) -> LogEntry:
    return LogEntry(
        id=str(row["id"]),
        name=str(row["name"]),
        calories=float(row.get("calories", 0.0)),
        protein_g=float(row.get("protein", 0.0)),
        carbs_g=float(row.get("carbs", 0.0)),
        fat_g=float(row.get("fat", 0.0)),
        quantity_label=str(row.get("quantity", "")),
        logged_at_ms=int(row["timestamp"]),
    )


def parse_goal(row: dict[str, object]) -> UserGoal:
    return UserGoal(base_calories=float(row["baseCalories"]))


def dump_planned_meal(meal: PlannedMeal) -> dict[str, object]:
    return {
        "id": meal.id,
        "name": meal.name,
        "calories": meal.calories,
        "protein": meal.protein_g,
        "carbs": meal.carbs_g,
        "fat": meal.fat_g,
        "quantity": meal.quantity_label,
        "plannedDate": meal.planned_date,
        "mealType": meal.meal_type,
    }


def parse_planned_meal(row: dict[str, object]) -> PlannedMeal:
    meal_type = row["mealType"]
    if meal_type not in MEAL_TYPES:
        raise ValueError(f"Unknown meal type: {meal_type}")
    return PlannedMeal(
        id=str(row["id"]),
        name=str(row["name"]),
        calories=float(row.get("calories", 0.0)),
        protein_g=float(row.get("protein", 0.0)),
        carbs_g=float(row.get("carbs", 0.0)),
        fat_g=float(row.get("fat", 0.0)),
        quantity_label=str(row.get("quantity", "")),
        planned_date=str(row["plannedDate"]),
        meal_type=meal_type,
    )


def parse_milestone(row: dict[str, object]) -> Milestone:
    return Milestone(
        definition_id=str(row["id"]), achieved_at_ms=int(row["achievedDate"])
    )


def parse_challenge(row: dict[str, object]) -> CompletedChallenge:
    return CompletedChallenge(
        definition_id=str(row["id"]),
        completed_at_ms=int(row["completedDate"]),
        points_awarded=int(row["pointsAwarded"]),
    )


def dump_water(record: WaterIntakeRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "date": record.date,
        "amount": record.amount,
        "unit": record.unit,
        "timestamp": record.logged_at_ms,
    }


def parse_water(row: dict[str, object]) -> WaterIntakeRecord:
    unit = row.get("unit", "ml")
    if unit not in WATER_UNITS:
        raise ValueError(f"Unknown water unit: {unit}")
    return WaterIntakeRecord(
        id=str(row["id"]),
        date=str(row["date"]),
        amount=float(row["amount"]),
        unit=unit,
        logged_at_ms=int(row["timestamp"]),
    )


def dump_sleep(record: SleepRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "date": record.date,
        "durationHours": record.duration_hours,
        "quality": record.quality,
        "notes": record.notes,
        "timestamp": record.logged_at_ms,
    }


def parse_sleep(row: dict[str, object]) -> SleepRecord:
    quality = row.get("quality")
    if quality is not None and quality not in SLEEP_QUALITIES:
        raise ValueError(f"Unknown sleep quality: {quality}")
    return SleepRecord(
        id=str(row["id"]),
        date=str(row["date"]),
        duration_hours=float(row["durationHours"]),
        quality=quality,
        notes=row.get("notes"),
        logged_at_ms=int(row["timestamp"]),
    )


def dump_shared_meal(item: SharedMeal) -> dict[str, object]:
    return {
        **dump_log_entry(item.entry),
        "sharedByDisplayName": item.shared_by_display_name,
        "sharedByUid": item.shared_by_uid,
        "sharedAt": item.shared_at_ms,
    }


def parse_shared_meal(row: dict[str, object]) -> SharedMeal:
    return SharedMeal(
        entry=parse_log_entry(row),
        shared_by_display_name=str(row.get("sharedByDisplayName", "")),
        shared_by_uid=str(row.get("sharedByUid", "")),
        shared_at_ms=int(row["sharedAt"]),
    )


def _load_list(
    repository: StateRepository,
    user_id: UUID,
    key: str,
    parser: Callable[[dict[str, object]], T],
) -> list[T]:
    raw = repository.load(user_id, key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(
            "Ignoring malformed collection", extra={"user_id": user_id, "key": key}
        )
        return []
    items: list[T] = []
    for row in raw:
        try:
            items.append(parser(row))
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning(
                "Skipping malformed record", extra={"user_id": user_id, "key": key}
            )
    return items
