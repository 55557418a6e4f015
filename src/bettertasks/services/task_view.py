"""Task list controller - the state behind the live task view.

The controller owns the visible list of incomplete tasks and the completion
history buffer. User actions go to the backend first and only touch local
state once the backend confirmed them. Reloads (from realtime events, the
completion animation or edits) all go through one coalescing signal, so a
burst of change events costs at most one extra fetch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from bettertasks.errors import AppError, NotFoundError
from bettertasks.models import Task, TaskUpdate, task_sort_key
from bettertasks.services.task_service import TaskService

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    LOADING = "loading"
    READY = "ready"


class ReloadSignal:
    """Single-slot reload request drained by one runner task.

    Requests made while a reload runs set the pending flag; the runner then
    performs exactly one more reload, however many requests arrived.
    """

    def __init__(self, reload: Callable[[], Awaitable[None]]):
        self._reload = reload
        self._pending = False
        self._closed = False
        self._runner: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def request(self) -> None:
        if self._closed:
            return
        self._pending = True
        if not self.running:
            self._runner = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending and not self._closed:
            self._pending = False
            await self._reload()

    async def wait_idle(self) -> None:
        """Wait until no reload is running or pending.

        Returns quietly when close() cancelled the running reload.
        """
        while self.running:
            runner = self._runner
            try:
                await runner
            except asyncio.CancelledError:
                if self._closed and runner.cancelled():
                    return
                raise

    def close(self) -> None:
        self._closed = True
        self._pending = False
        if self.running:
            self._runner.cancel()


def _load_failure(error: AppError) -> AppError:
    # Keeps the exit code so a command failing on the load exits like the cause
    return AppError(
        f"Failed to load tasks: {error.message}",
        exit_code=error.exit_code,
        status_code=error.status_code,
        code=error.code,
    )


class TaskListController:
    """View state for the task list.

    Attributes:
        tasks: Visible incomplete tasks, ordered by date then creation time.
            Tasks completed moments ago stay here while they animate.
        history: Completed tasks, most recent first (see load_history).
        state: LOADING while a reload runs, READY otherwise.
        error: Last non-fatal error to show as a banner, or None.
        last_error: The AppError behind ``error``, for callers that need to
            fail with it (the CLI commands).
    """

    def __init__(
        self,
        service: TaskService,
        *,
        animation_delay: float = 1.0,
        load_timeout: float = 10.0,
        on_change: Callable[[], None] | None = None,
        on_error: Callable[[AppError], None] | None = None,
    ):
        self.service = service
        self.animation_delay = animation_delay
        self.load_timeout = load_timeout
        self.on_change = on_change
        self.on_error = on_error

        self.tasks: list[Task] = []
        self.history: list[Task] = []
        self.state = ViewState.LOADING
        self.error: str | None = None
        self.last_error: AppError | None = None

        self._animations: dict[str, asyncio.Task] = {}
        self._signal = ReloadSignal(self._reload)
        self._closed = False

    @property
    def animating(self) -> set[str]:
        """Ids of tasks currently playing the completion animation."""
        return set(self._animations)

    @property
    def closed(self) -> bool:
        return self._closed

    # -- loading ---------------------------------------------------------

    async def start(self) -> None:
        """Initial load, bounded by ``load_timeout``."""
        self.state = ViewState.LOADING
        try:
            fetched = await asyncio.wait_for(
                self.service.list_tasks(), timeout=self.load_timeout
            )
        except asyncio.TimeoutError:
            self._surface(
                AppError(
                    f"Failed to load tasks: timed out after {self.load_timeout:g}s"
                )
            )
        except AppError as e:
            self._surface(_load_failure(e))
        else:
            self._apply(fetched)
        finally:
            if not self._closed:
                self.state = ViewState.READY
                self._notify()

    def request_reload(self) -> None:
        """Ask for a reload. Bursts of requests coalesce."""
        self._signal.request()

    async def reload(self) -> None:
        """Request a reload and wait for it (and any follow-up) to finish."""
        self.request_reload()
        await self._signal.wait_idle()

    async def wait_idle(self) -> None:
        await self._signal.wait_idle()

    async def settle(self) -> None:
        """Wait for running completion animations and the reloads they request."""
        while self._animations:
            await asyncio.gather(*self._animations.values(), return_exceptions=True)
        await self._signal.wait_idle()

    async def _reload(self) -> None:
        if self._closed:
            return
        self.state = ViewState.LOADING
        try:
            fetched = await self.service.list_tasks()
        except AppError as e:
            if self._closed:
                return
            logger.warning("Reload failed: %s", e.message)
            self._surface(_load_failure(e))
        else:
            if self._closed:
                return
            self._apply(fetched)
        self.state = ViewState.READY
        self._notify()

    def _apply(self, fetched: list[Task]) -> None:
        """Replace the visible list, keeping tasks whose animation is still running."""
        fetched_ids = {t.id for t in fetched}
        retained = [
            t for t in self.tasks if t.id in self._animations and t.id not in fetched_ids
        ]
        self.tasks = sorted([*fetched, *retained], key=task_sort_key)
        self.error = None
        self.last_error = None

    async def load_history(self) -> bool:
        """Replace the history buffer with the completed tasks."""
        try:
            history = await self.service.completed_tasks()
        except AppError as e:
            self._surface(e)
            return False
        if self._closed:
            return False
        self.history = history
        self._notify()
        return True

    # -- user actions --------------------------------------------------------

    def find(self, task_id: str) -> Task | None:
        for task in (*self.tasks, *self.history):
            if task.id == task_id:
                return task
        return None

    async def toggle(self, task_id: str) -> Task | None:
        """Flip completion of a task. Returns the stored task, or None on failure."""
        current = self.find(task_id)
        if current is None:
            self._surface(NotFoundError(f"Task not found: {task_id}"))
            return None

        try:
            updated = await self.service.set_completed(task_id, not current.completed)
        except AppError as e:
            self._surface(e)
            return None
        if self._closed:
            return updated

        if updated.completed:
            self._replace(updated)
            self.history = [updated, *(t for t in self.history if t.id != task_id)]
            if any(t.id == task_id for t in self.tasks):
                self._start_animation(task_id)
        else:
            self._cancel_animation(task_id)
            if not self._replace(updated):
                self.tasks = sorted([*self.tasks, updated], key=task_sort_key)
            self.history = [t for t in self.history if t.id != task_id]

        self._notify()
        return updated

    async def create_task(self, title: str, **fields) -> Task | None:
        """Create a task, add it to the list and request a reload."""
        try:
            task = await self.service.add_task(title, **fields)
        except AppError as e:
            self._surface(e)
            return None
        if self._closed:
            return task
        self.tasks.append(task)
        self._notify()
        self.request_reload()
        return task

    async def update_task(self, task_id: str, changes: TaskUpdate) -> Task | None:
        """Edit a task, replace it in the list and request a reload."""
        try:
            task = await self.service.update_task(task_id, changes)
        except AppError as e:
            self._surface(e)
            return None
        if self._closed:
            return task
        if not self._replace(task):
            self.tasks.append(task)
        self.history = [task if t.id == task_id else t for t in self.history]
        self._notify()
        self.request_reload()
        return task

    async def delete(self, task_id: str) -> bool:
        """Delete a task; it leaves both the list and the history."""
        try:
            await self.service.delete_task(task_id)
        except AppError as e:
            self._surface(e)
            return False
        if self._closed:
            return True
        self._cancel_animation(task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self.history = [t for t in self.history if t.id != task_id]
        self._notify()
        return True

    async def close(self) -> None:
        """Stop all background work. Late results are discarded."""
        self._closed = True
        self._signal.close()
        for task in self._animations.values():
            task.cancel()
        self._animations.clear()

    # -- internals -------------------------------------------------------------

    def _replace(self, task: Task) -> bool:
        for i, existing in enumerate(self.tasks):
            if existing.id == task.id:
                self.tasks[i] = task
                return True
        return False

    def _start_animation(self, task_id: str) -> None:
        self._cancel_animation(task_id)
        self._animations[task_id] = asyncio.get_running_loop().create_task(
            self._finish_animation(task_id)
        )

    def _cancel_animation(self, task_id: str) -> None:
        task = self._animations.pop(task_id, None)
        if task is not None:
            task.cancel()

    async def _finish_animation(self, task_id: str) -> None:
        await asyncio.sleep(self.animation_delay)
        if self._closed:
            return
        self._animations.pop(task_id, None)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._notify()
        self.request_reload()

    def _surface(self, error: AppError) -> None:
        logger.error("Task view error: %s", error.message)
        self.error = error.message
        self.last_error = error
        if self.on_error is not None:
            self.on_error(error)

    def _notify(self) -> None:
        if self.on_change is not None and not self._closed:
            self.on_change()
