"""Domain models for meal planning and the shared meal feed."""

from dataclasses import dataclass
from typing import Literal

from nutritrack.domain.log import LogEntry

MealType = Literal["breakfast", "lunch", "dinner", "snack"]


@dataclass(frozen=True)
class PlannedMeal:
    """A food planned for a date and meal slot."""

    id: str
    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    quantity_label: str
    planned_date: str
    meal_type: MealType


@dataclass(frozen=True)
class SharedMeal:
    """A logged entry shared to the meal feed."""

    entry: LogEntry
    shared_by_display_name: str
    shared_by_uid: str
    shared_at_ms: int
