"""Tasks table endpoints (PostgREST)."""

from typing import Any

from bettertasks.services.api.client import SINGLE_OBJECT, BackendClient

TASKS_PATH = "/rest/v1/tasks"
RETURN_ROW = {"Prefer": "return=representation"}


class TasksAPI:
    """Tasks API client."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def list_tasks(
        self,
        *,
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """List tasks.

        ``filters`` are PostgREST column filters such as ``{"completed": "eq.false"}``;
        ``order`` is a PostgREST order clause such as ``"date.asc,created_at.asc"``.
        """
        params: dict[str, Any] = {"select": "*"}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        response = await self.client.get(TASKS_PATH, params=params)
        return self.client.json_body(response)

    async def get_task(self, task_id: str) -> dict:
        """Get a specific task by ID."""
        response = await self.client.get(
            TASKS_PATH,
            params={"select": "*", "id": f"eq.{task_id}"},
            headers={"Accept": SINGLE_OBJECT},
        )
        return self.client.json_body(response)

    async def create_task(self, data: dict[str, Any]) -> dict:
        """Insert a task and return the stored row."""
        response = await self.client.post(
            TASKS_PATH,
            json=data,
            params={"select": "*"},
            headers={**RETURN_ROW, "Accept": SINGLE_OBJECT},
        )
        return self.client.json_body(response)

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> dict:
        """Update a task and return the stored row."""
        response = await self.client.patch(
            TASKS_PATH,
            json=updates,
            params={"select": "*", "id": f"eq.{task_id}"},
            headers={**RETURN_ROW, "Accept": SINGLE_OBJECT},
        )
        return self.client.json_body(response)

    async def delete_task(self, task_id: str) -> list[dict]:
        """Delete a task, returning the deleted rows (empty when none matched)."""
        response = await self.client.delete(
            TASKS_PATH,
            params={"id": f"eq.{task_id}"},
            headers=RETURN_ROW,
        )
        return self.client.json_body(response)
