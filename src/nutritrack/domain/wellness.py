"""Domain models for water and sleep tracking."""

from dataclasses import dataclass
from typing import Literal

WaterUnit = Literal["ml", "oz"]
SleepQuality = Literal["poor", "fair", "good"]


@dataclass(frozen=True)
class WaterIntakeRecord:
    """Water consumed on a calendar date."""

    id: str
    date: str
    amount: float
    unit: WaterUnit
    logged_at_ms: int


@dataclass(frozen=True)
class SleepRecord:
    """Sleep for the night ending on a calendar date."""

    id: str
    date: str
    duration_hours: float
    quality: SleepQuality | None
    notes: str | None
    logged_at_ms: int


@dataclass(frozen=True)
class WaterIntakeSummary:
    """Water records for a date with their total in millilitres."""

    date: str
    records: list[WaterIntakeRecord]
    total_ml: float
