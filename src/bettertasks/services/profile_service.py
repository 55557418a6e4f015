"""Profile service - Business logic for the one-per-user profile."""

from __future__ import annotations

import logging

from bettertasks.errors import AppError, NotFoundError, ValidationError
from bettertasks.models import Profile
from bettertasks.repositories import ProfileRepository
from bettertasks.services.session_service import SessionService

logger = logging.getLogger(__name__)

AVATAR_COUNT = 12

# Row absent (single-object request matched nothing)
ROW_NOT_FOUND_CODES = {"PGRST116"}
# Profiles table not provisioned yet
TABLE_MISSING_CODES = {"42P01", "PGRST205"}


def is_missing_profile(error: AppError) -> bool:
    """Whether a lookup failure just means "no profile yet"."""
    if error.code in ROW_NOT_FOUND_CODES | TABLE_MISSING_CODES:
        return True
    if isinstance(error, NotFoundError) and error.code is None:
        return True
    return "does not exist" in error.message.lower()


class ProfileService:
    """Service for profile business logic."""

    def __init__(self, repository: ProfileRepository, sessions: SessionService):
        self.repository = repository
        self.sessions = sessions

    async def get_profile(self) -> Profile | None:
        """Get the current user's profile, or None when there is none.

        Raises:
            NotAuthenticatedError: If there is no valid session
        """
        user_id = await self.sessions.require_user_id()
        try:
            return await self.repository.get(user_id)
        except AppError as e:
            if is_missing_profile(e):
                logger.info("No profile for user %s (%s)", user_id, e.code)
                return None
            raise

    async def upsert_profile(
        self, full_name: str, avatar_id: int | None = None
    ) -> Profile:
        """Create or update the current user's profile."""
        name = full_name.strip()
        if not name:
            raise ValidationError("Name is required")
        if avatar_id is None:
            avatar_id = 1
        if not 1 <= avatar_id <= AVATAR_COUNT:
            raise ValidationError(f"Avatar must be between 1 and {AVATAR_COUNT}")

        user_id = await self.sessions.require_user_id()
        profile = await self.repository.upsert(user_id, name, avatar_id)
        logger.info("Saved profile for user %s", user_id)
        return profile

    async def has_profile(self) -> bool:
        """Whether the current user has a profile. Errors count as no."""
        try:
            return await self.get_profile() is not None
        except AppError as e:
            logger.warning("Profile check failed: %s", e.message)
            return False
