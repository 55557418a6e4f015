"""Chat with the task assistant."""

from typing import Annotated

import typer
from rich.prompt import Prompt

from bettertasks.services.chat_service import AssistantClient, ChatSession
from bettertasks.services.config_service import get_config_service
from bettertasks.utils.ui.console import get_console
from bettertasks.utils.ui.formatters import format_chat_message, format_info

from .decorators import command_wrapper

console = get_console()

EXIT_WORDS = {"exit", "quit", "/exit", "/quit"}


def build_chat_session() -> ChatSession:
    config_service = get_config_service()
    client = AssistantClient(
        config_service.assistant_endpoint,
        config_service.load_session(),
        timeout=config_service.config.assistant.timeout,
    )
    return ChatSession(client)


@command_wrapper
async def chat(
    message: Annotated[
        str | None,
        typer.Argument(help="Message to send; omit for an interactive session"),
    ] = None,
) -> None:
    """Ask the assistant about your tasks."""
    session = build_chat_session()

    if message is not None:
        answer = await session.send(message)
        if answer is None:
            format_info("Nothing to send")
            return
        format_chat_message(answer)
        if answer.content.startswith("Error: "):
            raise typer.Exit(1)
        return

    format_info("Ask me anything about your tasks. Type 'exit' to leave.")
    while True:
        try:
            text = Prompt.ask("[bold cyan]You[/bold cyan]", console=console)
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if text.strip().lower() in EXIT_WORDS:
            break
        with console.status("Thinking...", spinner="dots"):
            answer = await session.send(text)
        if answer is not None:
            format_chat_message(answer)
