"""Task service - Business logic for task operations.

This service layer sits between the commands / task list controller and the
task repository. It owns the rules the backend does not enforce: the owning
user is stamped from the session, a missing date means today, and
``completed_at`` always follows ``completed``.
"""

from __future__ import annotations

import datetime as dt
import logging

from pydantic import BaseModel, Field

from bettertasks.errors import AppError, ValidationError
from bettertasks.models import Priority, Task, TaskCreate, TaskFilters, TaskUpdate
from bettertasks.repositories import TaskRepository
from bettertasks.services.session_service import SessionService

logger = logging.getLogger(__name__)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ConnectionCheck(BaseModel):
    """Outcome of a read/insert/update/delete round against the tasks table."""

    success: bool
    message: str
    passed: list[str] = Field(default_factory=list)


class TaskService:
    """Service for task business logic."""

    def __init__(self, task_repository: TaskRepository, sessions: SessionService):
        """Initialize the task service.

        Args:
            task_repository: TaskRepository implementation for data access
            sessions: Session accessor used to stamp the owning user
        """
        self.repository = task_repository
        self.sessions = sessions

    async def list_tasks(
        self,
        *,
        status: str = "incomplete",
        on_date: dt.date | None = None,
        limit: int | None = None,
    ) -> list[Task]:
        """List tasks.

        Args:
            status: "incomplete" (date, then creation order), "completed"
                (most recently completed first) or "all" (newest first)
            on_date: Only tasks scheduled on this date, in creation order.
                Takes precedence over ``status``.
            limit: Maximum number of results
        """
        filters = TaskFilters(status=status, on_date=on_date, limit=limit)
        tasks = await self.repository.list_all(filters)
        logger.debug("Listed %d tasks (%s)", len(tasks), filters.model_dump())
        return tasks

    async def completed_tasks(self, *, limit: int | None = None) -> list[Task]:
        """Completion history, most recent first."""
        return await self.list_tasks(status="completed", limit=limit)

    async def tasks_on(self, day: dt.date) -> list[Task]:
        """Tasks scheduled on one calendar date."""
        return await self.list_tasks(on_date=day)

    async def get_task(self, task_id: str) -> Task:
        return await self.repository.get(task_id)

    async def add_task(
        self,
        title: str,
        *,
        description: str | None = None,
        priority: Priority | str = Priority.MEDIUM,
        date: dt.date | None = None,
    ) -> Task:
        """Create a new task for the current user.

        Args:
            title: Task title (required)
            description: Detailed description
            priority: High, Medium or Low
            date: Scheduled date, today when omitted

        Returns:
            The stored Task

        Raises:
            ValidationError: If the title is empty or the priority unknown
            NotAuthenticatedError: If there is no valid session
        """
        if not title or not title.strip():
            raise ValidationError("Title is required")
        try:
            task_data = TaskCreate(
                title=title,
                description=description or None,
                priority=Priority(priority),
                date=date or dt.date.today(),
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        user_id = await self.sessions.require_user_id()
        row = task_data.model_dump(mode="json")
        row.update(user_id=user_id, completed=False)

        task = await self.repository.add(row)
        logger.info("Created task %s", task.id)
        return task

    async def update_task(self, task_id: str, changes: TaskUpdate) -> Task:
        """Apply a partial update.

        Only the fields set on ``changes`` are written. Setting ``completed``
        also sets ``completed_at`` (now, or cleared); ``updated_at`` is always
        stamped.

        Raises:
            ValidationError: If the update would empty the title
            NotFoundError: If the task is absent or not owned by the caller
        """
        fields = changes.model_dump(mode="json", exclude_unset=True)
        fields.pop("completed_at", None)
        fields.pop("updated_at", None)

        if "title" in fields and not (fields["title"] or "").strip():
            raise ValidationError("Title cannot be empty")

        now = utc_now()
        if "completed" in fields:
            fields["completed_at"] = now.isoformat() if fields["completed"] else None
        fields["updated_at"] = now.isoformat()

        task = await self.repository.update(task_id, fields)
        logger.info("Updated task %s (%s)", task_id, ", ".join(sorted(fields)))
        return task

    async def set_completed(self, task_id: str, completed: bool) -> Task:
        """Toggle completion of a task."""
        return await self.update_task(task_id, TaskUpdate(completed=completed))

    async def delete_task(self, task_id: str) -> None:
        await self.repository.delete(task_id)
        logger.info("Deleted task %s", task_id)

    async def check_connection(self) -> ConnectionCheck:
        """Exercise read, insert, update and delete on a throwaway task.

        Never raises for backend failures; the outcome is reported instead.
        """
        passed: list[str] = []
        step = "read from"
        try:
            await self.repository.list_all(TaskFilters(status="all", limit=1))
            passed.append("read")

            step = "insert into"
            test_task = await self.add_task(
                "Test Connection Task",
                description="This is a test task to verify database connection",
                priority=Priority.LOW,
            )
            passed.append("insert")

            step = "update"
            try:
                await self.repository.update(test_task.id, {"title": "Updated Test Task"})
            except AppError:
                # Remove the test task even though the update failed
                await self.repository.delete(test_task.id)
                raise
            passed.append("update")

            step = "delete from"
            await self.repository.delete(test_task.id)
            passed.append("delete")
        except AppError as e:
            logger.error("Connection check failed at %s: %s", step, e.message)
            return ConnectionCheck(
                success=False,
                message=f"Failed to {step} tasks table: {e.message}",
                passed=passed,
            )

        return ConnectionCheck(
            success=True,
            message="All database operations are working correctly!",
            passed=passed,
        )
