"""Profiles table endpoints (PostgREST)."""

from typing import Any

from bettertasks.services.api.client import SINGLE_OBJECT, BackendClient

PROFILES_PATH = "/rest/v1/profiles"


class ProfilesAPI:
    """Profiles API client."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_profile(self, user_id: str) -> dict:
        """Get the profile row of a user."""
        response = await self.client.get(
            PROFILES_PATH,
            params={"select": "*", "user_id": f"eq.{user_id}"},
            headers={"Accept": SINGLE_OBJECT},
        )
        return self.client.json_body(response)

    async def upsert_profile(self, data: dict[str, Any]) -> dict:
        """Insert or update the profile row keyed by ``user_id``."""
        response = await self.client.post(
            PROFILES_PATH,
            json=data,
            params={"on_conflict": "user_id", "select": "*"},
            headers={
                "Prefer": "resolution=merge-duplicates,return=representation",
                "Accept": SINGLE_OBJECT,
            },
        )
        return self.client.json_body(response)
