"""Fixtures for CLI command tests.

Commands open their services through ``open_app_context``; these fixtures
swap it for a context backed by the in-memory fakes.
"""

from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest

from bettertasks.services.context import AppContext
from bettertasks.services.profile_service import ProfileService
from bettertasks.services.task_service import TaskService


@pytest.fixture()
def app_context(tmp_config, task_repo, profile_repo, sessions) -> AppContext:
    return AppContext(
        config_service=tmp_config,
        client=SimpleNamespace(access_token="token-1"),
        sessions=sessions,
        tasks=TaskService(task_repo, sessions),
        profiles=ProfileService(profile_repo, sessions),
    )


@pytest.fixture()
def use_context(mocker, app_context):
    """Patch ``open_app_context`` in a command module; returns the context."""

    @asynccontextmanager
    async def fake_open(*args, **kwargs):
        yield app_context

    def install(module: str) -> AppContext:
        mocker.patch(f"bettertasks.commands.{module}.open_app_context", fake_open)
        return app_context

    return install
