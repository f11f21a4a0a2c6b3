"""Shared test fixtures."""

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutritrack.config import Settings
from nutritrack.containers import AppContainer
from nutritrack.domain.log import LogEntry
from nutritrack.services.state import StateRepository
from nutritrack.services.tracker import TrackerService

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryStateRepository(StateRepository):
    """In-memory state repository for tests."""

    values: dict[tuple[UUID, str], object] = field(default_factory=dict)
    saved_keys: list[str] = field(default_factory=list)

    def load(self, user_id: UUID, key: str) -> object | None:
        return copy.deepcopy(self.values.get((user_id, key)))

    def save(self, user_id: UUID, key: str, value: object) -> None:
        self.values[(user_id, key)] = copy.deepcopy(value)
        self.saved_keys.append(key)

    def remove(self, user_id: UUID, key: str) -> None:
        self.values.pop((user_id, key), None)


@dataclass
class FakeClock:
    """Clock returning a controllable UTC instant."""

    now: datetime = NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_entry(
    name: str,
    calories: float,
    logged_at: datetime,
    protein: float = 0.0,
    carbs: float = 0.0,
    fat: float = 0.0,
) -> LogEntry:
    return LogEntry(
        id=f"log-{uuid4().hex}",
        name=name,
        calories=calories,
        protein_g=protein,
        carbs_g=carbs,
        fat_g=fat,
        quantity_label="1 serving",
        logged_at_ms=int(logged_at.timestamp() * 1000),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def state_repository() -> InMemoryStateRepository:
    return InMemoryStateRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker_service(
    state_repository: InMemoryStateRepository, clock: FakeClock
) -> TrackerService:
    return TrackerService(repository=state_repository, clock=clock)


@pytest.fixture
def container(settings: Settings, tracker_service: TrackerService) -> AppContainer:
    return AppContainer(settings=settings, tracker_service=tracker_service)
