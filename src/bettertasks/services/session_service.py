"""Session accessor - the client's view of the auth provider.

Sign-in happens elsewhere; this service reads the stored session, verifies
it with the provider and signs out.
"""

from __future__ import annotations

import logging

from bettertasks.errors import AppError, NotAuthenticatedError, UnauthorizedError
from bettertasks.models import Session, User
from bettertasks.services.api.auth import AuthAPI
from bettertasks.services.api.client import BackendClient
from bettertasks.services.config_service import ConfigService

logger = logging.getLogger(__name__)


def is_already_signed_out(error: AppError) -> bool:
    """Whether a sign-out failure means the session was already gone."""
    if isinstance(error, (NotAuthenticatedError, UnauthorizedError)):
        return True
    return "session" in error.message.lower()


class SessionService:
    """Service for reading the current session and user."""

    def __init__(self, client: BackendClient, config_service: ConfigService):
        self.client = client
        self.config_service = config_service
        self.auth_api = AuthAPI(client)

    def get_session(self) -> Session | None:
        """Return the stored session, or None when signed out."""
        return self.config_service.load_session()

    async def get_user(self) -> User | None:
        """Verify the session token with the provider and return its user.

        Any failure (no session, rejected token, unreachable provider) is
        logged and reported as None.
        """
        if not self.client.access_token:
            return None
        try:
            data = await self.auth_api.get_user()
        except AppError as e:
            logger.warning("Could not verify session: %s", e.message)
            return None
        return User(id=data["id"], email=data.get("email"))

    async def require_user_id(self) -> str:
        """Return the current user's id.

        Raises:
            NotAuthenticatedError: If there is no valid session
        """
        user = await self.get_user()
        if user is None:
            raise NotAuthenticatedError(
                "Not logged in. Run 'bettertasks auth login --token <token>'."
            )
        return user.id

    async def store_session(
        self, access_token: str, refresh_token: str | None = None
    ) -> Session:
        """Verify an externally issued token and store it as the session.

        Raises:
            NotAuthenticatedError: If the provider rejects the token
        """
        self.client.access_token = access_token
        user = await self.get_user()
        if user is None:
            self.client.access_token = None
            raise NotAuthenticatedError("The provider rejected this token")

        session = Session(
            access_token=access_token, refresh_token=refresh_token, user=user
        )
        self.config_service.save_session(session)
        logger.info("Stored session for user %s", user.id)
        return session

    async def sign_out(self) -> None:
        """Sign out of this device.

        Errors meaning the session is already gone count as success. Other
        errors propagate and leave the stored session in place.
        """
        if self.get_session() is None:
            logger.info("Sign out requested without a session")
            return

        try:
            await self.auth_api.logout()
        except AppError as e:
            if not is_already_signed_out(e):
                raise
            logger.warning("Session already invalid on sign out: %s", e.message)

        self.config_service.clear_session()
        self.client.access_token = None
        logger.info("Signed out")
