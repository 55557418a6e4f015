"""Repository interfaces for BetterTasks.

This package contains abstract base classes (ABCs) that define the contracts
for data persistence operations. The implementations live in
``bettertasks.adapters.rest_api``.
"""

from .repository import ProfileRepository, TaskRepository

__all__ = [
    "TaskRepository",
    "ProfileRepository",
]
