"""Milestone and challenge rules with monotonic evaluation."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, tzinfo

from nutritrack.domain.goals import DEFAULT_BASE_CALORIES, FitnessMode, UserGoal
from nutritrack.domain.log import LogEntry
from nutritrack.domain.models import UserProfile
from nutritrack.domain.planner import PlannedMeal
from nutritrack.domain.progress import CompletedChallenge, Milestone
from nutritrack.domain.wellness import SleepRecord, WaterIntakeRecord
from nutritrack.services.aggregation import distinct_food_names_on
from nutritrack.services.wellness import sleep_hours_on, water_total_ml

logger = logging.getLogger(__name__)

DEFAULT_WATER_GOAL_ML = 2000.0
DEFAULT_SLEEP_GOAL_HOURS = 8.0


@dataclass(frozen=True)
class MilestoneContext:
    """State visible to milestone predicates."""

    entries: Sequence[LogEntry]
    streak: int
    today: date
    tz: tzinfo
    planned_meals: Sequence[PlannedMeal]
    goal: UserGoal
    fitness_mode: FitnessMode


@dataclass(frozen=True)
class ChallengeContext:
    """State visible to challenge predicates."""

    entries: Sequence[LogEntry]
    streak: int
    today: date
    tz: tzinfo
    planned_meals: Sequence[PlannedMeal]
    goal: UserGoal
    fitness_mode: FitnessMode
    water_records: Sequence[WaterIntakeRecord]
    sleep_records: Sequence[SleepRecord]
    completed: Sequence[CompletedChallenge] = ()
    # Only set by an explicit progress refresh that supplies a profile.
    profile: UserProfile | None = None


@dataclass(frozen=True)
class MilestoneRule:
    """A milestone awarded the first time its predicate holds."""

    id: str
    predicate: Callable[[MilestoneContext], bool]


@dataclass(frozen=True)
class ChallengeRule:
    """A challenge that awards points the first time its predicate holds."""

    id: str
    predicate: Callable[[ChallengeContext], bool]
    reward_points: int


@dataclass(frozen=True)
class MilestoneOutcome:
    """Result of a milestone evaluation pass."""

    achieved: list[Milestone]
    newly_achieved: list[Milestone] = field(default_factory=list)


@dataclass(frozen=True)
class ChallengeOutcome:
    """Result of a challenge evaluation pass."""

    completed: list[CompletedChallenge]
    points: int
    newly_completed: list[CompletedChallenge] = field(default_factory=list)


def _foods_today(context: MilestoneContext | ChallengeContext) -> int:
    return len(distinct_food_names_on(context.entries, context.today, context.tz))


def _custom_goal(context: MilestoneContext) -> bool:
    return (
        context.goal.base_calories != DEFAULT_BASE_CALORIES
        or context.fitness_mode != FitnessMode.MAINTENANCE
    )


def _planned_days(context: ChallengeContext) -> int:
    return len({meal.planned_date for meal in context.planned_meals})


def _water_today_ml(context: ChallengeContext) -> float:
    return water_total_ml(context.water_records, context.today.isoformat())


def _sleep_today_hours(context: ChallengeContext) -> float:
    hours = sleep_hours_on(context.sleep_records, context.today.isoformat())
    return hours if hours is not None else 0.0


MILESTONE_RULES: tuple[MilestoneRule, ...] = (
    MilestoneRule("firstLog", lambda ctx: len(ctx.entries) > 0),
    MilestoneRule("streak3", lambda ctx: ctx.streak >= 3),
    MilestoneRule("streak7", lambda ctx: ctx.streak >= 7),
    MilestoneRule("logged10ItemsToday", lambda ctx: _foods_today(ctx) >= 10),
    MilestoneRule("logged50ItemsTotal", lambda ctx: len(ctx.entries) >= 50),
    MilestoneRule("plannerPro", lambda ctx: len(ctx.planned_meals) >= 5),
    MilestoneRule("goalSetter", _custom_goal),
)

CHALLENGE_RULES: tuple[ChallengeRule, ...] = (
    ChallengeRule("logStreak5", lambda ctx: ctx.streak >= 5, 50),
    ChallengeRule("logStreak14", lambda ctx: ctx.streak >= 14, 150),
    ChallengeRule("try3NewFoodsToday", lambda ctx: _foods_today(ctx) >= 3, 30),
    ChallengeRule("planFullWeek", lambda ctx: _planned_days(ctx) >= 7, 75),
    ChallengeRule(
        "hydrationHeroToday",
        lambda ctx: _water_today_ml(ctx) >= DEFAULT_WATER_GOAL_ML,
        20,
    ),
    ChallengeRule(
        "sleepChampionToday",
        lambda ctx: _sleep_today_hours(ctx) >= DEFAULT_SLEEP_GOAL_HOURS,
        20,
    ),
)


def evaluate_milestones(
    rules: Sequence[MilestoneRule],
    achieved: Sequence[Milestone],
    context: MilestoneContext,
    now_ms: int,
) -> MilestoneOutcome:
    """Award milestones whose predicates hold; existing ones are always kept."""
    achieved_ids = {milestone.definition_id for milestone in achieved}
    newly_achieved = [
        Milestone(definition_id=rule.id, achieved_at_ms=now_ms)
        for rule in rules
        if rule.id not in achieved_ids and _holds(rule.id, rule.predicate, context)
    ]
    for milestone in newly_achieved:
        logger.info("Milestone achieved", extra={"rule_id": milestone.definition_id})
    merged = sorted(
        [*achieved, *newly_achieved], key=lambda milestone: milestone.achieved_at_ms
    )
    return MilestoneOutcome(achieved=merged, newly_achieved=newly_achieved)


def evaluate_challenges(
    rules: Sequence[ChallengeRule],
    completed: Sequence[CompletedChallenge],
    points: int,
    context: ChallengeContext,
    now_ms: int,
) -> ChallengeOutcome:
    """Complete challenges whose predicates hold and add their points once."""
    completed_ids = {challenge.definition_id for challenge in completed}
    newly_completed = [
        CompletedChallenge(
            definition_id=rule.id,
            completed_at_ms=now_ms,
            points_awarded=rule.reward_points,
        )
        for rule in rules
        if rule.id not in completed_ids and _holds(rule.id, rule.predicate, context)
    ]
    earned = 0
    for challenge in newly_completed:
        earned += challenge.points_awarded
        logger.info(
            "Challenge completed",
            extra={
                "rule_id": challenge.definition_id,
                "points": challenge.points_awarded,
            },
        )
    merged = sorted(
        [*completed, *newly_completed],
        key=lambda challenge: challenge.completed_at_ms,
    )
    return ChallengeOutcome(
        completed=merged, points=points + earned, newly_completed=newly_completed
    )


def _holds(rule_id: str, predicate: Callable[..., bool], context: object) -> bool:
    try:
        return bool(predicate(context))
    except Exception:
        logger.exception("Achievement rule failed", extra={"rule_id": rule_id})
        return False
