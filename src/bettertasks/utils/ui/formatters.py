"""Output formatters for different formats."""

import json
from collections.abc import Iterable
from datetime import date
from typing import Any

import yaml
from rich.table import Table
from rich.text import Text

from bettertasks.models import ChatMessage, Profile, Task
from bettertasks.utils.ui.console import get_console

console = get_console()

PRIORITY_ICONS = {
    "High": "🔴",
    "Medium": "🟡",
    "Low": "⚪",
}

PRIORITY_COLORS = {
    "High": "bold red",
    "Medium": "bold yellow",
    "Low": "white",
}


def calculate_unique_suffixes(task_ids: list[str]) -> dict[str, int]:
    """
    Calculate minimum unique suffix length for each task ID.

    Starts from length 1 and grows until unique among all IDs.

    Args:
        task_ids: List of full task IDs

    Returns:
        Dict mapping task_id -> required suffix length
    """
    if not task_ids:
        return {}

    result = {}

    for task_id in task_ids:
        for length in range(1, len(task_id) + 1):
            suffix = task_id[-length:]

            conflicts = [
                tid for tid in task_ids if tid != task_id and tid.endswith(suffix)
            ]

            if not conflicts:
                result[task_id] = length
                break
        else:
            result[task_id] = len(task_id)

    return result


def short_ids(task_ids: list[str], minimum: int = 4) -> dict[str, str]:
    """Map each task ID to the suffix shown in listings."""
    lengths = calculate_unique_suffixes(task_ids)
    return {
        task_id: task_id[-max(length, minimum) :] for task_id, length in lengths.items()
    }


def format_output(data: Any, output_format: str = "table") -> None:
    """Format and display output based on format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif isinstance(data, list):
        format_dict_table(data)
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        console.print(data)


def format_dict_table(items: list[dict]) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = list(items[0].keys())
    table = Table(show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title())

    for item in items:
        table.add_row(*(_cell(item.get(col)) for col in columns))

    console.print(table)


def format_single_item(item: dict) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _cell(value))

    console.print(table)


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return "-"
    return str(value)


def build_tasks_table(
    tasks: list[Task],
    *,
    title: str = "Tasks",
    animating: Iterable[str] = (),
    today: date | None = None,
) -> Table:
    """Build the task list table used by list, watch and the mutating commands."""
    today = today or date.today()
    animating = set(animating)
    ids = short_ids([t.id for t in tasks])

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("", no_wrap=True)
    table.add_column("Title")
    table.add_column("Priority", no_wrap=True)
    table.add_column("Date", no_wrap=True)

    for task in tasks:
        priority = task.priority.value if task.priority else None
        title_text = Text(task.title)
        if task.completed:
            title_text.stylize("green strike")
        elif task.date is not None and task.date < today:
            title_text.stylize("red")
        if task.description:
            title_text.append(f"\n{task.description}", style="dim")

        mark = "✓" if task.completed else "○"
        if task.id in animating:
            mark = "[green]✓[/green]"

        table.add_row(
            ids.get(task.id, task.id),
            mark,
            title_text,
            Text(
                f"{PRIORITY_ICONS.get(priority, '')} {priority or '-'}",
                style=PRIORITY_COLORS.get(priority, ""),
            ),
            task.date.isoformat() if task.date else "-",
        )

    return table


def format_tasks(tasks: list[Task], *, title: str = "Tasks") -> None:
    """Print a task table, or a friendly note when empty."""
    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return
    console.print(build_tasks_table(tasks, title=title))


def format_profile(profile: Profile, email: str | None = None) -> None:
    """Print a profile as key-value pairs."""
    format_single_item(
        {
            "name": profile.full_name,
            "email": email,
            "avatar": profile.avatar_id,
            "created_at": profile.created_at,
        }
    )


def format_chat_message(message: ChatMessage) -> None:
    """Print one chat message."""
    stamp = message.timestamp.strftime("%H:%M")
    if message.role == "user":
        console.print(f"[dim]{stamp}[/dim] [bold cyan]You:[/bold cyan] {message.content}")
    else:
        console.print(f"[dim]{stamp}[/dim] [bold magenta]Assistant:[/bold magenta] {message.content}")


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")
