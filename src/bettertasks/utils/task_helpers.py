"""Task helper utilities."""

from bettertasks.errors import NotFoundError, ValidationError
from bettertasks.services.task_service import TaskService
from bettertasks.utils.ui.formatters import short_ids


async def resolve_task_id(task_service: TaskService, task_id_or_suffix: str) -> str:
    """
    Resolve a task ID or a unique suffix of one to the full task ID.

    Args:
        task_service: The task service instance
        task_id_or_suffix: Full task ID or suffix to resolve

    Returns:
        The full task ID

    Raises:
        NotFoundError: If no task matches
        ValidationError: If the suffix matches more than one task
    """
    needle = task_id_or_suffix.strip()
    if not needle:
        raise ValidationError("Task ID is required")

    tasks = await task_service.list_tasks(status="all")
    ids = [task.id for task in tasks]
    if needle in ids:
        return needle

    matches = [tid for tid in ids if tid.endswith(needle)]
    if not matches:
        raise NotFoundError(f"No task found with ID or suffix '{needle}'")
    if len(matches) > 1:
        suggestions = short_ids(ids)
        options = ", ".join(suggestions[tid] for tid in matches)
        raise ValidationError(
            f"Ambiguous task ID '{needle}'. Did you mean one of: {options}?"
        )
    return matches[0]
