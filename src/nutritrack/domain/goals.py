"""Domain models for calorie goals."""

from dataclasses import dataclass
from enum import Enum

DEFAULT_BASE_CALORIES = 2000.0

PROTEIN_SHARE = 0.30
CARBS_SHARE = 0.40
FAT_SHARE = 0.30
KCAL_PER_G_PROTEIN = 4.0
KCAL_PER_G_CARBS = 4.0
KCAL_PER_G_FAT = 9.0


class FitnessMode(str, Enum):
    """Fitness mode with a fixed daily calorie adjustment."""

    MAINTENANCE = "maintenance"
    WEIGHT_LOSS = "weightLoss"
    MUSCLE_GAIN = "muscleGain"

    @property
    def calorie_adjustment(self) -> float:
        return _ADJUSTMENTS[self]


_ADJUSTMENTS = {
    FitnessMode.MAINTENANCE: 0.0,
    FitnessMode.WEIGHT_LOSS: -300.0,
    FitnessMode.MUSCLE_GAIN: 300.0,
}


@dataclass(frozen=True)
class UserGoal:
    """User-defined base daily calorie goal."""

    base_calories: float = DEFAULT_BASE_CALORIES


@dataclass(frozen=True)
class MacroTargets:
    """Daily nutrient targets derived from a calorie goal."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float

    def for_nutrient(self, nutrient: str) -> float:
        """Return the target for a forecast nutrient key."""
        return {
            "calories": self.calories,
            "protein": self.protein_g,
            "carbs": self.carbs_g,
            "fat": self.fat_g,
        }[nutrient]


@dataclass(frozen=True)
class GoalSummary:
    """Goal settings together with their derived targets."""

    base_calories: float
    fitness_mode: FitnessMode
    effective_calories: float
    targets: MacroTargets


def effective_goal(goal: UserGoal, mode: FitnessMode) -> float:
    """Return the mode-adjusted daily calorie goal, never below zero."""
    return max(0.0, goal.base_calories + mode.calorie_adjustment)


def macro_targets(calories: float) -> MacroTargets:
    """Split a calorie goal into fixed protein/carbs/fat gram targets."""
    return MacroTargets(
        calories=calories,
        protein_g=calories * PROTEIN_SHARE / KCAL_PER_G_PROTEIN,
        carbs_g=calories * CARBS_SHARE / KCAL_PER_G_CARBS,
        fat_g=calories * FAT_SHARE / KCAL_PER_G_FAT,
    )


def summarize_goal(goal: UserGoal, mode: FitnessMode) -> GoalSummary:
    """Build a goal summary for the given settings."""
    effective = effective_goal(goal, mode)
    return GoalSummary(
        base_calories=goal.base_calories,
        fitness_mode=mode,
        effective_calories=effective,
        targets=macro_targets(effective),
    )
