"""REST API adapters - Repository implementations over the backend's PostgREST API.

These adapters wrap the API wrappers to implement the repository interfaces.
They own the translation between filters and PostgREST query parameters.
"""

from __future__ import annotations

from typing import Any

from bettertasks.errors import NotFoundError
from bettertasks.models import Profile, Task, TaskFilters
from bettertasks.repositories.repository import ProfileRepository, TaskRepository
from bettertasks.services.api.client import BackendClient
from bettertasks.services.api.profiles import ProfilesAPI
from bettertasks.services.api.tasks import TasksAPI

# PostgREST order clauses per list filter
ORDER_INCOMPLETE = "date.asc,created_at.asc"
ORDER_COMPLETED = "completed_at.desc"
ORDER_ALL = "created_at.desc"
ORDER_BY_DATE = "created_at.asc"


def build_task_query(filters: TaskFilters) -> tuple[dict[str, str], str]:
    """Translate filters into PostgREST column filters and an order clause."""
    if filters.on_date is not None:
        return {"date": f"eq.{filters.on_date.isoformat()}"}, ORDER_BY_DATE
    if filters.status == "completed":
        return {"completed": "eq.true"}, ORDER_COMPLETED
    if filters.status == "all":
        return {}, ORDER_ALL
    return {"completed": "eq.false"}, ORDER_INCOMPLETE


class RestApiTaskRepository(TaskRepository):
    """Task repository implementation using the REST API."""

    def __init__(self, client: BackendClient):
        """Initialize REST API task repository.

        Args:
            client: BackendClient carrying the caller's token
        """
        self._client = client
        self._tasks_api: TasksAPI | None = None

    @property
    def tasks_api(self) -> TasksAPI:
        """Get or create TasksAPI instance."""
        if self._tasks_api is None:
            self._tasks_api = TasksAPI(self._client)
        return self._tasks_api

    async def list_all(self, filters: TaskFilters) -> list[Task]:
        """List tasks with filtering."""
        column_filters, order = build_task_query(filters)
        rows = await self.tasks_api.list_tasks(
            filters=column_filters, order=order, limit=filters.limit
        )
        return [Task(**row) for row in rows]

    async def get(self, task_id: str) -> Task:
        """Get a specific task by ID."""
        return Task(**await self.tasks_api.get_task(task_id))

    async def add(self, data: dict[str, Any]) -> Task:
        """Create a new task."""
        return Task(**await self.tasks_api.create_task(data))

    async def update(self, task_id: str, changes: dict[str, Any]) -> Task:
        """Update an existing task."""
        return Task(**await self.tasks_api.update_task(task_id, changes))

    async def delete(self, task_id: str) -> None:
        """Delete a task."""
        deleted = await self.tasks_api.delete_task(task_id)
        if not deleted:
            raise NotFoundError(f"Task not found: {task_id}", code="PGRST116")


class RestApiProfileRepository(ProfileRepository):
    """Profile repository implementation using the REST API."""

    def __init__(self, client: BackendClient):
        self._client = client
        self._profiles_api: ProfilesAPI | None = None

    @property
    def profiles_api(self) -> ProfilesAPI:
        """Get or create ProfilesAPI instance."""
        if self._profiles_api is None:
            self._profiles_api = ProfilesAPI(self._client)
        return self._profiles_api

    async def get(self, user_id: str) -> Profile:
        row = await self.profiles_api.get_profile(user_id)
        return _profile_from_row(row)

    async def upsert(self, user_id: str, full_name: str, avatar_id: int) -> Profile:
        row = await self.profiles_api.upsert_profile(
            {"user_id": user_id, "full_name": full_name, "avatar_id": avatar_id}
        )
        return _profile_from_row(row)


def _profile_from_row(row: dict[str, Any]) -> Profile:
    # Rows created before avatars existed carry a null avatar_id
    return Profile(**{**row, "avatar_id": row.get("avatar_id") or 1})
