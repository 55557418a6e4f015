"""Main entry point for the BetterTasks CLI."""

import typer

from bettertasks import __version__
from bettertasks.commands import auth, chat, config, profile, serve, tasks
from bettertasks.utils.typer_helpers import SuggestingGroup
from bettertasks.utils.ui.console import get_console

# Create main app with custom group class
app = typer.Typer(
    name="bettertasks",
    cls=SuggestingGroup,
    help="BetterTasks: a personal task manager with an AI assistant",
    no_args_is_help=True,
)

console = get_console()

# Add subcommands
app.add_typer(auth.app, name="auth", help="Authentication commands")
app.add_typer(tasks.app, name="tasks", help="Task management commands")
app.add_typer(profile.app, name="profile", help="Profile commands")
app.add_typer(config.app, name="config", help="Configuration management")

# Add top-level commands
app.command("chat")(chat.chat)
app.command("serve")(serve.serve)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]BetterTasks[/bold] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
