"""Domain models for milestones and challenges."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Milestone:
    """An achieved milestone; never revoked once recorded."""

    definition_id: str
    achieved_at_ms: int


@dataclass(frozen=True)
class CompletedChallenge:
    """A completed challenge with the points it awarded."""

    definition_id: str
    completed_at_ms: int
    points_awarded: int


@dataclass(frozen=True)
class ProgressSummary:
    """Streak, achievements and points for a user."""

    streak: int
    milestones: list[Milestone]
    completed_challenges: list[CompletedChallenge]
    points: int
