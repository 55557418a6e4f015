"""BetterTasks domain models.

Pydantic models for the rows the backend stores, the session the auth
provider issues, and the chat messages the assistant panel keeps in memory.
"""

from .config_models import AppConfig
from .core import (
    ChatMessage,
    Priority,
    Profile,
    Session,
    Task,
    TaskCreate,
    TaskFilters,
    TaskUpdate,
    User,
    task_sort_key,
)

__all__ = [
    # Task models
    "Priority",
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilters",
    "task_sort_key",
    # Profile / auth models
    "Profile",
    "User",
    "Session",
    # Chat
    "ChatMessage",
    # Config
    "AppConfig",
]
