"""Domain models for aggregated statistics."""

from dataclasses import dataclass, field
from datetime import date

from nutritrack.domain.goals import GoalSummary
from nutritrack.domain.log import LogEntry


@dataclass(frozen=True)
class NutrientTotals:
    """Summed macros for a set of log entries."""

    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0

    def plus(self, entry: LogEntry) -> "NutrientTotals":
        """Return new totals with the entry added."""
        return NutrientTotals(
            calories=self.calories + entry.calories,
            protein_g=self.protein_g + entry.protein_g,
            carbs_g=self.carbs_g + entry.carbs_g,
            fat_g=self.fat_g + entry.fat_g,
        )


@dataclass(frozen=True)
class DailyCalories:
    """Calorie total for one day of the weekly chart."""

    day: date
    day_label: str
    calories: float


@dataclass(frozen=True)
class RegressionDataPoint:
    """A day-indexed value fed into the regression engine."""

    x: int
    y: float


@dataclass(frozen=True)
class NutrientSeries:
    """Per-nutrient daily series, oldest day first."""

    calories: list[RegressionDataPoint] = field(default_factory=list)
    protein: list[RegressionDataPoint] = field(default_factory=list)
    carbs: list[RegressionDataPoint] = field(default_factory=list)
    fat: list[RegressionDataPoint] = field(default_factory=list)

    def for_nutrient(self, nutrient: str) -> list[RegressionDataPoint]:
        """Return the series for a nutrient key."""
        return getattr(self, nutrient)


@dataclass(frozen=True)
class DashboardSummary:
    """Everything the dashboard shows for the current day and week."""

    today: NutrientTotals
    goal: GoalSummary
    intake_percentage: float
    weekly: list[DailyCalories]
    weekly_log: dict[str, list[LogEntry]]
    streak: int
