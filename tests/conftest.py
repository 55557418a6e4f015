"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem, environment
and backend state.
"""

from __future__ import annotations

import pytest

import bettertasks.utils.logger as logger_module
from bettertasks.models import Session, User
from bettertasks.services.config_service import ConfigService, get_config_service

from tests.fakes import (
    ANON_KEY,
    BACKEND_URL,
    FakeSessionService,
    InMemoryProfileRepository,
    InMemoryTaskRepository,
)

ENV_VARS = (
    "BETTERTASKS_SUPABASE_URL",
    "SUPABASE_URL",
    "BETTERTASKS_SUPABASE_ANON_KEY",
    "SUPABASE_ANON_KEY",
    "BETTERTASKS_ASSISTANT_URL",
    "OPENAI_API_KEY",
)


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep config, session and log files under *tmp_path*.

    Also clears the lru_cache so each test gets a fresh config service.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("COLUMNS", "200")

    config_dir = str(tmp_path / "config")
    log_dir = str(tmp_path / "logs")
    monkeypatch.setattr(
        "bettertasks.services.config_service.user_config_dir", lambda *_: config_dir
    )
    monkeypatch.setattr("bettertasks.utils.logger.user_log_dir", lambda *_: log_dir)
    monkeypatch.setattr(logger_module, "_logger", None)

    get_config_service.cache_clear()
    yield
    get_config_service.cache_clear()


@pytest.fixture()
def tmp_config() -> ConfigService:
    """A real ConfigService pointed at a test backend."""
    svc = get_config_service()
    svc.set("backend.url", BACKEND_URL)
    svc.set("backend.anon_key", ANON_KEY)
    return svc


@pytest.fixture()
def logged_in(tmp_config) -> Session:
    """Store a session for user-1."""
    session = Session(
        access_token="token-1",
        refresh_token="refresh-1",
        user=User(id="user-1", email="ada@example.com"),
    )
    tmp_config.save_session(session)
    return session


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


@pytest.fixture()
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture()
def profile_repo() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture()
def sessions() -> FakeSessionService:
    return FakeSessionService(user_id="user-1")
