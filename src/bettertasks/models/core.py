"""Core data models."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class Priority(str, Enum):
    """Task priority as stored in the ``priority`` column."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Task(BaseModel):
    """Task model representing one row of the ``tasks`` table.

    Attributes:
        id: Store-assigned unique identifier
        user_id: Owning user
        title: Task title
        description: Optional detailed description
        priority: High, Medium or Low
        date: Scheduled calendar date
        due_date: Legacy due date column, read-only
        completed: Completion status
        completed_at: Set when completed flips to true, cleared when it flips back
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    user_id: str | None = None
    title: str
    description: str | None = None
    priority: Priority | None = None
    date: dt.date | None = None
    due_date: dt.date | None = None
    completed: bool = False
    completed_at: dt.datetime | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class TaskCreate(BaseModel):
    """Model for creating a new task.

    Attributes:
        title: Task title (required, non-empty)
        description: Optional detailed description
        priority: Priority level
        date: Scheduled date; the service fills in today when omitted
    """

    title: str = Field(min_length=1)
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    date: dt.date | None = None


class TaskUpdate(BaseModel):
    """Model for updating an existing task.

    Only fields that were explicitly set are sent, so ``description=None``
    clears the description while leaving it out keeps it.
    """

    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    date: dt.date | None = None
    completed: bool | None = None
    completed_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class TaskFilters(BaseModel):
    """Filters for querying tasks.

    Attributes:
        status: "incomplete", "completed" or "all"
        on_date: Only tasks scheduled on this date (ignores status)
        limit: Maximum number of results
    """

    status: Literal["incomplete", "completed", "all"] = "incomplete"
    on_date: dt.date | None = None
    limit: int | None = Field(default=None, ge=1)


def task_sort_key(task: Task) -> tuple:
    """Ordering of the visible list: date ascending, then creation time ascending.

    Missing values sort last, matching the backend's ascending order.
    """
    return (
        task.date is None,
        task.date or dt.date.min,
        task.created_at is None,
        task.created_at or dt.datetime.min,
    )


class Profile(BaseModel):
    """One-per-user profile row."""

    id: str | None = None
    user_id: str
    full_name: str
    avatar_id: int = Field(default=1, ge=1)
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class User(BaseModel):
    """Authenticated user as reported by the auth provider."""

    id: str
    email: str | None = None


class Session(BaseModel):
    """Locally stored session issued by the auth provider."""

    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    user: User | None = None


class ChatMessage(BaseModel):
    """A chat panel message. Never persisted."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: dt.datetime = Field(default_factory=dt.datetime.now)
