"""Supabase repository for per-user state collections."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutritrack.services.state import StateRepository


@dataclass
class SupabaseStateRepository(StateRepository):
    """Supabase implementation storing one JSON value per user and key."""

    client: Client
    table: str = "user_state"

    def load(self, user_id: UUID, key: str) -> object | None:
        """Return the stored value for a key."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("user_id", str(user_id))
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def save(self, user_id: UUID, key: str, value: object) -> None:
        """Insert or replace the value for a key."""
        self.client.table(self.table).upsert(
            {
                "user_id": str(user_id),
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id,key",
        ).execute()

    def remove(self, user_id: UUID, key: str) -> None:
        """Delete the value for a key."""
        self.client.table(self.table).delete().eq("user_id", str(user_id)).eq(
            "key", key
        ).execute()
