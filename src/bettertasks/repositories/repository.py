"""Repository abstraction layer for BetterTasks.

Repositories provide an abstraction over data persistence, so the services
and the task list controller stay independent of the backend's REST dialect.
Ownership is enforced by the backend: a repository only ever sees the rows
of the user whose token it carries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from bettertasks.models import Profile, Task, TaskFilters


class TaskRepository(ABC):
    """Abstract base class for task persistence operations."""

    @abstractmethod
    async def list_all(self, filters: TaskFilters) -> list[Task]:
        """List tasks matching the filters, in the order the filter defines.

        Args:
            filters: TaskFilters object specifying filter criteria

        Returns:
            List of Task objects matching the filters
        """
        raise NotImplementedError(
            "TaskRepository.list_all() must be implemented by adapter"
        )

    @abstractmethod
    async def get(self, task_id: str) -> Task:
        """Get a specific task by ID.

        Raises:
            NotFoundError: If the task does not exist or is not owned by the caller
        """
        raise NotImplementedError("TaskRepository.get() must be implemented by adapter")

    @abstractmethod
    async def add(self, data: dict[str, Any]) -> Task:
        """Insert a task row and return it as stored.

        Args:
            data: Column values, already validated and stamped by the service

        Raises:
            ValidationError: If the backend rejects the payload
        """
        raise NotImplementedError("TaskRepository.add() must be implemented by adapter")

    @abstractmethod
    async def update(self, task_id: str, changes: dict[str, Any]) -> Task:
        """Update a task row and return it as stored.

        Raises:
            NotFoundError: If the task does not exist or is not owned by the caller
        """
        raise NotImplementedError(
            "TaskRepository.update() must be implemented by adapter"
        )

    @abstractmethod
    async def delete(self, task_id: str) -> None:
        """Delete a task.

        Raises:
            NotFoundError: If the task does not exist or is not owned by the caller
        """
        raise NotImplementedError(
            "TaskRepository.delete() must be implemented by adapter"
        )


class ProfileRepository(ABC):
    """Abstract base class for profile persistence operations."""

    @abstractmethod
    async def get(self, user_id: str) -> Profile:
        """Get the profile of a user.

        Raises:
            NotFoundError: If the row (or the profiles table) does not exist.
                The error's ``code`` tells which.
        """
        raise NotImplementedError(
            "ProfileRepository.get() must be implemented by adapter"
        )

    @abstractmethod
    async def upsert(self, user_id: str, full_name: str, avatar_id: int) -> Profile:
        """Insert or update the single profile row of a user."""
        raise NotImplementedError(
            "ProfileRepository.upsert() must be implemented by adapter"
        )
