"""Domain models for user identity."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class UserProfile:
    """Profile attributes supplied by the authentication collaborator."""

    uid: str
    email: str
    display_name: str | None = None
    age: int | None = None
    weight_kg: float | None = None
    height_cm: float | None = None
    dietary_preferences: list[str] = field(default_factory=list)
    activity_level: str | None = None

    def feed_name(self) -> str:
        """Return the name shown on shared meals."""
        return self.display_name or self.email or "Anonymous"
