"""Task management commands."""

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Annotated

import typer
from rich.console import Group
from rich.live import Live
from rich.text import Text
from websockets.exceptions import WebSocketException

from bettertasks.errors import AppError, NotFoundError, ValidationError
from bettertasks.models import Priority, Task, TaskUpdate
from bettertasks.services.config_service import get_config_service
from bettertasks.services.context import AppContext, open_app_context
from bettertasks.services.realtime import RealtimeBridge
from bettertasks.services.task_view import TaskListController, ViewState
from bettertasks.utils.task_helpers import resolve_task_id
from bettertasks.utils.typer_helpers import SuggestingGroup
from bettertasks.utils.ui.console import get_console
from bettertasks.utils.ui.formatters import (
    build_tasks_table,
    format_error,
    format_output,
    format_success,
    format_tasks,
    format_warning,
)

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Task management commands")
console = get_console()

DATE_FORMATS = ["%Y-%m-%d"]


def _as_date(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


def _output_format(output: str | None) -> str:
    if output is not None:
        return output
    return get_config_service().config.output.format


def _show(tasks: list[Task], output: str, *, title: str) -> None:
    if output in ("json", "yaml"):
        format_output([t.model_dump(mode="json") for t in tasks], output)
    else:
        format_tasks(tasks, title=title)


@app.command("list")
@command_wrapper
async def list_tasks(
    completed: Annotated[
        bool, typer.Option("--completed", help="Completed tasks, most recent first")
    ] = False,
    show_all: Annotated[
        bool, typer.Option("--all", help="All tasks, newest first")
    ] = False,
    on_date: Annotated[
        datetime | None,
        typer.Option("--date", formats=DATE_FORMATS, help="Tasks scheduled on a date"),
    ] = None,
    limit: Annotated[
        int | None, typer.Option("--limit", min=1, help="Limit results")
    ] = None,
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="table, json or yaml")
    ] = None,
) -> None:
    """List tasks (incomplete by default)."""
    if completed and show_all:
        raise ValidationError("Use either --completed or --all, not both")

    status = "completed" if completed else "all" if show_all else "incomplete"
    title = {"completed": "Completed", "all": "All tasks"}.get(status, "Tasks")
    day = _as_date(on_date)
    if day is not None:
        title = f"Tasks on {day.isoformat()}"

    async with open_app_context() as ctx:
        tasks = await ctx.tasks.list_tasks(status=status, on_date=day, limit=limit)
    _show(tasks, _output_format(output), title=title)


@asynccontextmanager
async def open_task_view(ctx: AppContext, *, history: bool = False):
    """Loaded task list controller for one command, closed afterwards."""
    view = ctx.config_service.config.view
    controller = TaskListController(
        ctx.tasks,
        animation_delay=view.animation_delay,
        load_timeout=view.load_timeout,
    )
    try:
        await controller.start()
        if controller.last_error is not None:
            raise controller.last_error
        if history:
            _checked(controller, await controller.load_history())
        yield controller
    finally:
        await controller.close()


def _checked(controller: TaskListController, result):
    """Fail with the error the controller surfaced for an unsuccessful action."""
    if result is None or result is False:
        raise controller.last_error or AppError("Task action failed")
    return result


@app.command("add")
@command_wrapper
async def add_task(
    title: Annotated[str, typer.Argument(help="Task title")],
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Task description")
    ] = None,
    priority: Annotated[
        Priority,
        typer.Option("--priority", "-p", case_sensitive=False, help="Priority"),
    ] = Priority.MEDIUM,
    on_date: Annotated[
        datetime | None,
        typer.Option("--date", formats=DATE_FORMATS, help="Scheduled date (default today)"),
    ] = None,
) -> None:
    """Create a task."""
    async with open_app_context() as ctx, open_task_view(ctx) as controller:
        task = _checked(
            controller,
            await controller.create_task(
                title, description=description, priority=priority, date=_as_date(on_date)
            ),
        )
        await controller.wait_idle()
        format_success(f"Created: {task.title} ({task.id})")
        console.print(render_view(controller))


@app.command("edit")
@command_wrapper
async def edit_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or suffix")],
    title: Annotated[str | None, typer.Option("--title", help="New title")] = None,
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="New description ('' clears it)"),
    ] = None,
    priority: Annotated[
        Priority | None,
        typer.Option("--priority", "-p", case_sensitive=False, help="New priority"),
    ] = None,
    on_date: Annotated[
        datetime | None,
        typer.Option("--date", formats=DATE_FORMATS, help="New scheduled date"),
    ] = None,
) -> None:
    """Edit a task's fields."""
    changes: dict = {}
    if title is not None:
        changes["title"] = title
    if description is not None:
        changes["description"] = description or None
    if priority is not None:
        changes["priority"] = priority
    if on_date is not None:
        changes["date"] = _as_date(on_date)
    if not changes:
        raise ValidationError("Nothing to change")

    async with open_app_context() as ctx:
        resolved = await resolve_task_id(ctx.tasks, task_id)
        async with open_task_view(ctx) as controller:
            task = _checked(
                controller, await controller.update_task(resolved, TaskUpdate(**changes))
            )
            await controller.wait_idle()
            format_success(f"Updated: {task.title}")
            console.print(render_view(controller))


@app.command("done")
@command_wrapper
async def complete_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or suffix")],
) -> None:
    """Mark a task as completed.

    The task is shown checked off for ``view.animation_delay`` seconds before
    it leaves the list.
    """
    async with open_app_context() as ctx:
        resolved = await resolve_task_id(ctx.tasks, task_id)
        async with open_task_view(ctx) as controller:
            current = controller.find(resolved)
            if current is None:
                # Completed tasks are only in the history buffer
                _checked(controller, await controller.load_history())
                current = controller.find(resolved)
            if current is None:
                raise NotFoundError(f"Task not found: {task_id}")
            if current.completed:
                format_warning(f"Already completed: {current.title}")
                return

            with Live(render_view(controller), console=console, refresh_per_second=8) as live:
                controller.on_change = lambda: live.update(render_view(controller))
                task = _checked(controller, await controller.toggle(resolved))
                await controller.settle()
            format_success(f"✓ Completed: {task.title}")
            console.print(f"[dim]To undo: bettertasks tasks undo {task_id}[/dim]")


@app.command("undo")
@command_wrapper
async def reopen_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or suffix")],
) -> None:
    """Mark a completed task as not completed."""
    async with open_app_context() as ctx:
        resolved = await resolve_task_id(ctx.tasks, task_id)
        async with open_task_view(ctx, history=True) as controller:
            current = controller.find(resolved)
            if current is None:
                raise NotFoundError(f"Task not found: {task_id}")
            if not current.completed:
                format_warning(f"Not completed: {current.title}")
                return
            task = _checked(controller, await controller.toggle(resolved))
            format_success(f"Reopened: {task.title}")
            console.print(render_view(controller))


@app.command("delete")
@command_wrapper
async def delete_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or suffix")],
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip confirmation")
    ] = False,
) -> None:
    """Delete a task."""
    async with open_app_context() as ctx:
        resolved = await resolve_task_id(ctx.tasks, task_id)
        async with open_task_view(ctx, history=True) as controller:
            task = controller.find(resolved) or await ctx.tasks.get_task(resolved)
            if not yes and not typer.confirm(f"Delete '{task.title}'?"):
                format_warning("Cancelled")
                return
            _checked(controller, await controller.delete(resolved))
            format_success(f"Deleted: {task.title}")
            console.print(render_view(controller))


@app.command("history")
@command_wrapper
async def history(
    limit: Annotated[
        int | None, typer.Option("--limit", min=1, help="Limit results")
    ] = None,
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="table, json or yaml")
    ] = None,
) -> None:
    """Show completed tasks, most recently completed first."""
    async with open_app_context() as ctx, open_task_view(ctx, history=True) as controller:
        tasks = controller.history[:limit] if limit else controller.history
    _show(tasks, _output_format(output), title="Completed")


@app.command("check")
@command_wrapper
async def check_connection() -> None:
    """Verify read, insert, update and delete against the tasks table."""
    async with open_app_context() as ctx:
        result = await ctx.tasks.check_connection()
    for step in result.passed:
        console.print(f"[green]✓[/green] {step.capitalize()} test passed")
    if not result.success:
        format_error(result.message)
        raise typer.Exit(1)
    format_success(result.message)


def render_view(controller: TaskListController):
    """Renderable for the live view: status line, banner and table."""
    parts = []
    if controller.state == ViewState.LOADING and not controller.tasks:
        parts.append(Text("Loading tasks...", style="dim"))
    if controller.error:
        parts.append(Text(controller.error, style="bold red"))
    if controller.tasks:
        parts.append(
            build_tasks_table(
                controller.tasks, title="Tasks", animating=controller.animating
            )
        )
    elif controller.state == ViewState.READY:
        parts.append(Text("No tasks. Add one with 'bettertasks tasks add'.", style="yellow"))
    return Group(*parts)


@app.command("watch")
@command_wrapper
async def watch(
    duration: Annotated[
        float | None,
        typer.Option("--duration", min=0, help="Stop after this many seconds"),
    ] = None,
) -> None:
    """Live task list, refreshed whenever tasks change. Ctrl+C to stop."""
    async with open_app_context() as ctx:
        settings = ctx.config_service.config
        controller = TaskListController(
            ctx.tasks,
            animation_delay=settings.view.animation_delay,
            load_timeout=settings.view.load_timeout,
        )
        bridge = RealtimeBridge(
            ctx.config_service.backend_url,
            ctx.config_service.anon_key,
            ctx.client.access_token,
            controller.request_reload,
            channel=settings.realtime.channel,
            heartbeat_interval=settings.realtime.heartbeat_interval,
        )

        with Live(render_view(controller), console=console, refresh_per_second=4) as live:
            controller.on_change = lambda: live.update(render_view(controller))
            await controller.start()
            try:
                await bridge.start()
            except (OSError, WebSocketException) as e:
                format_warning(f"Live updates unavailable: {e}")
            try:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
            finally:
                await bridge.stop()
                await controller.close()
