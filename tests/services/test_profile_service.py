"""Tests for ProfileService."""

import pytest

from bettertasks.errors import (
    NotAuthenticatedError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from bettertasks.services.profile_service import AVATAR_COUNT, ProfileService
from tests.fakes import FakeSessionService


@pytest.fixture()
def service(profile_repo, sessions):
    return ProfileService(profile_repo, sessions)


class TestGetProfile:
    @pytest.mark.asyncio
    async def test_missing_row_is_none(self, service):
        assert await service.get_profile() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            NotFoundError("relation \"profiles\" does not exist", code="42P01"),
            NotFoundError("Could not find the table", code="PGRST205"),
            StoreUnavailableError('relation "public.profiles" does not exist'),
        ],
    )
    async def test_missing_table_is_none(self, service, profile_repo, error):
        profile_repo.errors["get"] = error
        assert await service.get_profile() is None

    @pytest.mark.asyncio
    async def test_other_errors_raise(self, service, profile_repo):
        profile_repo.errors["get"] = StoreUnavailableError("timeout")
        with pytest.raises(StoreUnavailableError):
            await service.get_profile()

    @pytest.mark.asyncio
    async def test_requires_a_user(self, profile_repo):
        service = ProfileService(profile_repo, FakeSessionService(user_id=None))
        with pytest.raises(NotAuthenticatedError):
            await service.get_profile()


class TestUpsertProfile:
    @pytest.mark.asyncio
    async def test_trims_name_and_defaults_avatar(self, service):
        profile = await service.upsert_profile("  Ada Lovelace  ")
        assert profile.full_name == "Ada Lovelace"
        assert profile.avatar_id == 1
        assert (await service.get_profile()) == profile

    @pytest.mark.asyncio
    async def test_second_upsert_updates_the_same_row(self, service, profile_repo):
        await service.upsert_profile("Ada")
        await service.upsert_profile("Ada L.", 5)
        assert len(profile_repo.rows) == 1
        assert profile_repo.rows["user-1"].avatar_id == 5

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, service):
        with pytest.raises(ValidationError):
            await service.upsert_profile("   ")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("avatar", [0, AVATAR_COUNT + 1])
    async def test_avatar_outside_the_set_is_rejected(self, service, avatar):
        with pytest.raises(ValidationError):
            await service.upsert_profile("Ada", avatar)


class TestHasProfile:
    @pytest.mark.asyncio
    async def test_false_then_true(self, service):
        assert await service.has_profile() is False
        await service.upsert_profile("Ada")
        assert await service.has_profile() is True

    @pytest.mark.asyncio
    async def test_errors_count_as_no_profile(self, service, profile_repo):
        profile_repo.errors["get"] = StoreUnavailableError("down")
        assert await service.has_profile() is False
