"""Domain models for goal forecasts."""

from dataclasses import dataclass
from enum import Enum


class ForecastStatus(str, Enum):
    """Classification of a projected value against its goal."""

    ON_TRACK = "onTrack"
    SLIGHTLY_OVER = "slightlyOver"
    SIGNIFICANTLY_OVER = "significantlyOver"
    SLIGHTLY_UNDER = "slightlyUnder"
    SIGNIFICANTLY_UNDER = "significantlyUnder"
    MORE_DATA_NEEDED = "moreDataNeeded"
    TREND_NOT_RELIABLE = "trendNotReliable"


@dataclass(frozen=True)
class ForecastValue:
    """Projection for one nutrient over one period."""

    value: float
    status: ForecastStatus
    goal: float
    message: str


@dataclass(frozen=True)
class NutrientForecasts:
    """Forecasts for every tracked nutrient."""

    calories: ForecastValue
    protein: ForecastValue
    carbs: ForecastValue
    fat: ForecastValue


@dataclass(frozen=True)
class GoalForecasts:
    """Weekly and monthly forecasts; both are absent without data or goal."""

    weekly: NutrientForecasts | None
    monthly: NutrientForecasts | None
