"""Authentication commands.

Sign-in happens in the browser; ``login`` stores the token it produced.
"""

from typing import Annotated

import typer

from bettertasks.errors import NotAuthenticatedError
from bettertasks.services.config_service import get_config_service
from bettertasks.services.context import open_app_context
from bettertasks.utils.typer_helpers import SuggestingGroup
from bettertasks.utils.ui.console import get_console
from bettertasks.utils.ui.formatters import (
    format_info,
    format_single_item,
    format_success,
)

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Authentication commands")
console = get_console()


@app.command("login")
@command_wrapper(auth_required=False)
async def login(
    token: Annotated[
        str, typer.Option("--token", help="Access token issued by the auth provider")
    ],
    refresh_token: Annotated[
        str | None, typer.Option("--refresh-token", help="Refresh token to store")
    ] = None,
) -> None:
    """Store an access token after verifying it with the auth provider."""
    async with open_app_context() as ctx:
        session = await ctx.sessions.store_session(token, refresh_token)
        who = (session.user.email or session.user.id) if session.user else "unknown user"
        format_success(f"Logged in as {who}")

        if not await ctx.profiles.has_profile():
            format_info(
                "No profile yet. Set one up with 'bettertasks profile setup --name <name>'."
            )


@app.command("status")
@command_wrapper(auth_required=False)
async def status() -> None:
    """Show the current session."""
    if get_config_service().load_session() is None:
        format_info("Not logged in")
        return

    async with open_app_context() as ctx:
        user = await ctx.sessions.get_user()
    if user is None:
        raise NotAuthenticatedError(
            "Stored session is no longer valid. Log in again."
        )
    format_single_item({"user_id": user.id, "email": user.email, "logged_in": True})


@app.command("logout")
@command_wrapper(auth_required=False)
async def logout() -> None:
    """Sign out of this device."""
    if get_config_service().load_session() is None:
        format_info("Already logged out")
        return
    async with open_app_context() as ctx:
        await ctx.sessions.sign_out()
    format_success("Logged out")
