"""Auth provider endpoints (GoTrue)."""

from bettertasks.services.api.client import BackendClient


class AuthAPI:
    """Auth API client. Sign-in itself happens outside this client."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_user(self) -> dict:
        """Return the user the current bearer token belongs to."""
        response = await self.client.get("/auth/v1/user")
        return self.client.json_body(response)

    async def logout(self) -> None:
        """Revoke the current session on this device only."""
        await self.client.post("/auth/v1/logout", params={"scope": "local"})
