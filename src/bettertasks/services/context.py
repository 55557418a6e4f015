"""Per-command wiring of the backend client, repositories and services.

Every command opens one context: a single BackendClient carrying the stored
session's token, shared by all services for the duration of the command and
closed when the command ends.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from bettertasks.adapters import RestApiProfileRepository, RestApiTaskRepository
from bettertasks.services.api.client import BackendClient
from bettertasks.services.config_service import ConfigService, get_config_service
from bettertasks.services.profile_service import ProfileService
from bettertasks.services.session_service import SessionService
from bettertasks.services.task_service import TaskService


@dataclass
class AppContext:
    config_service: ConfigService
    client: BackendClient
    sessions: SessionService
    tasks: TaskService
    profiles: ProfileService


@asynccontextmanager
async def open_app_context(
    config_service: ConfigService | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[AppContext]:
    """Build the services for one command and close the client afterwards."""
    config_service = config_service or get_config_service()
    async with BackendClient.from_config(config_service, transport=transport) as client:
        sessions = SessionService(client, config_service)
        yield AppContext(
            config_service=config_service,
            client=client,
            sessions=sessions,
            tasks=TaskService(RestApiTaskRepository(client), sessions),
            profiles=ProfileService(RestApiProfileRepository(client), sessions),
        )
