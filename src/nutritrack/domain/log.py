"""Domain models for the food log."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

DEFAULT_QUANTITY_LABEL = "1 serving"


class NutritionFact(BaseModel):
    """Structured nutrition result from a lookup or recognition collaborator."""

    name: str = Field(min_length=1)
    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    serving_size_g: float | None = Field(default=None, gt=0.0)

    def quantity_label(self) -> str:
        """Return a display label for the portion this fact describes."""
        if self.serving_size_g is None:
            return DEFAULT_QUANTITY_LABEL
        return f"{self.serving_size_g:g}g"


@dataclass(frozen=True)
class LogEntry:
    """A timestamped food log entry."""

    id: str
    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    quantity_label: str
    logged_at_ms: int
