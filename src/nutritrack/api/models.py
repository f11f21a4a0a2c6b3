"""Request models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from nutritrack.domain.goals import FitnessMode
from nutritrack.domain.log import NutritionFact
from nutritrack.domain.planner import MealType
from nutritrack.domain.wellness import SleepQuality, WaterUnit


class LogFoodRequest(NutritionFact):
    """Nutrition fact to log, with an optional portion label."""

    quantity: str | None = None


class PlannedMealRequest(NutritionFact):
    """Nutrition fact to plan for a date and meal slot."""

    planned_date: date
    meal_type: MealType
    quantity: str | None = None


class GoalRequest(BaseModel):
    base_calories: float = Field(gt=0)


class FitnessModeRequest(BaseModel):
    mode: FitnessMode


class TimezoneRequest(BaseModel):
    timezone: str = Field(min_length=1)


class WaterRequest(BaseModel):
    amount: float = Field(gt=0)
    unit: WaterUnit = "ml"


class SleepRequest(BaseModel):
    duration_hours: float = Field(ge=0, le=24)
    day: date | None = None
    quality: SleepQuality | None = None
    notes: str | None = None


class ShareMealRequest(BaseModel):
    """Log entry to share, with the sharer's display details."""

    entry_id: str
    display_name: str | None = None
    email: str = ""


class ProfileRequest(BaseModel):
    """Profile attributes offered to challenge rules on a progress refresh."""

    email: str = ""
    display_name: str | None = None
    age: int | None = Field(default=None, ge=0)
    weight_kg: float | None = Field(default=None, gt=0)
    height_cm: float | None = Field(default=None, gt=0)
    dietary_preferences: list[str] = Field(default_factory=list)
    activity_level: str | None = None
