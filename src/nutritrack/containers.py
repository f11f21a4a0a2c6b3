"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from nutritrack.adapters.supabase_state_repository import SupabaseStateRepository
from nutritrack.config import Settings
from nutritrack.services.tracker import TrackerService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    tracker_service: TrackerService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    state_repository = SupabaseStateRepository(
        supabase_client, table=resolved_settings.state_table
    )
    tracker_service = TrackerService(
        repository=state_repository,
        default_timezone=resolved_settings.default_timezone,
    )
    return AppContainer(settings=resolved_settings, tracker_service=tracker_service)
