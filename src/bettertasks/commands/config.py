"""Configuration management commands."""

import json
from typing import Annotated

import typer

from bettertasks.errors import ValidationError
from bettertasks.services.config_service import get_config_service
from bettertasks.utils.typer_helpers import SuggestingGroup
from bettertasks.utils.ui.console import get_console
from bettertasks.utils.ui.formatters import format_output, format_success, format_warning

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


def parse_value(value: str):
    """Parse a command-line value as JSON when possible (numbers, booleans)."""
    try:
        return json.loads(value)
    except ValueError:
        return value


@app.command("show")
@command_wrapper(auth_required=False)
def show_config(
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "yaml",
) -> None:
    """Show the current configuration."""
    config_service = get_config_service()
    format_output(config_service.config.model_dump(mode="json"), output)


@app.command("get")
@command_wrapper(auth_required=False)
def get_config(
    key: Annotated[str, typer.Argument(help="Configuration key (e.g., backend.url)")],
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if value is None:
        raise ValidationError(f"Configuration key '{key}' not found")
    console.print(value)


@app.command("set")
@command_wrapper(auth_required=False)
def set_config(
    key: Annotated[str, typer.Argument(help="Configuration key (e.g., backend.url)")],
    value: Annotated[str, typer.Argument(help="Configuration value")],
) -> None:
    """Set a configuration value."""
    parsed = parse_value(value)
    try:
        get_config_service().set(key, parsed)
    except KeyError as e:
        raise ValidationError(f"Configuration key '{key}' not found") from e
    except ValueError as e:
        raise ValidationError(f"Invalid value for '{key}': {e}") from e
    format_success(f"Configuration '{key}' set to '{parsed}'")


@app.command("reset")
@command_wrapper(auth_required=False)
def reset_config(
    key: Annotated[str | None, typer.Argument(help="Configuration key to reset")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        target = f"'{key}'" if key else "all configuration"
        if not typer.confirm(f"Reset {target} to defaults?"):
            format_warning("Cancelled")
            return
    try:
        get_config_service().reset(key)
    except KeyError as e:
        raise ValidationError(f"Configuration key '{key}' not found") from e
    format_success(f"Reset {key or 'configuration'} to defaults")
