"""Run the assistant HTTP service."""

from typing import Annotated

import typer
import uvicorn

from bettertasks.server import create_app
from bettertasks.services.config_service import get_config_service
from bettertasks.utils.ui.formatters import format_warning

from .decorators import command_wrapper


@command_wrapper(auth_required=False)
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Bind port")] = 8000,
) -> None:
    """Serve POST /api/ai for the chat command."""
    if not get_config_service().llm_api_key:
        format_warning("OPENAI_API_KEY is not set; requests will fail until it is.")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")
