"""Profile commands."""

from typing import Annotated

import typer

from bettertasks.errors import ValidationError
from bettertasks.services.context import open_app_context
from bettertasks.services.profile_service import AVATAR_COUNT
from bettertasks.utils.typer_helpers import SuggestingGroup
from bettertasks.utils.ui.formatters import format_info, format_profile, format_success

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Profile commands")

MIN_NAME_LENGTH = 2


@app.command("show")
@command_wrapper
async def show_profile() -> None:
    """Show your profile."""
    async with open_app_context() as ctx:
        user = await ctx.sessions.get_user()
        profile = await ctx.profiles.get_profile()
    if profile is None:
        format_info(
            "No profile yet. Set one up with 'bettertasks profile setup --name <name>'."
        )
        return
    format_profile(profile, user.email if user else None)


@app.command("setup")
@command_wrapper
async def setup_profile(
    name: Annotated[str, typer.Option("--name", "-n", help="Your full name")],
    avatar: Annotated[
        int | None,
        typer.Option(
            "--avatar", "-a", min=1, max=AVATAR_COUNT, help="Avatar number (1-12)"
        ),
    ] = None,
) -> None:
    """Create or update your profile."""
    if len(name.strip()) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters long"
        )
    async with open_app_context() as ctx:
        profile = await ctx.profiles.upsert_profile(name, avatar)
    format_success(f"Profile saved: {profile.full_name} (avatar {profile.avatar_id})")
