"""Unit tests for the chat command."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from bettertasks.commands.chat import build_chat_session
from bettertasks.errors import NotAuthenticatedError
from bettertasks.main import app
from bettertasks.services.chat_service import ChatSession

runner = CliRunner()


@pytest.fixture()
def assistant(mocker, logged_in):
    client = MagicMock()
    client.ask = AsyncMock(return_value="Start with the report.")
    mocker.patch(
        "bettertasks.commands.chat.build_chat_session",
        return_value=ChatSession(client),
    )
    return client


def test_one_shot(assistant):
    result = runner.invoke(app, ["chat", "what next?"])

    assert result.exit_code == 0
    assert "Assistant:" in result.output
    assert "Start with the report." in result.output
    assistant.ask.assert_awaited_once_with("what next?")


def test_one_shot_error(assistant):
    assistant.ask.side_effect = NotAuthenticatedError("Unauthorized. Please log in.")

    result = runner.invoke(app, ["chat", "hello"])

    assert result.exit_code == 1
    assert "Error: Unauthorized. Please log in." in result.output


def test_blank_one_shot(assistant):
    result = runner.invoke(app, ["chat", "   "])
    assert result.exit_code == 0
    assert "Nothing to send" in result.output
    assistant.ask.assert_not_awaited()


def test_interactive_until_exit(assistant):
    result = runner.invoke(app, ["chat"], input="hello\n\nexit\n")

    assert result.exit_code == 0
    assert result.output.count("Start with the report.") == 1
    assistant.ask.assert_awaited_once_with("hello")


def test_requires_login(tmp_config):
    result = runner.invoke(app, ["chat", "hello"])
    assert result.exit_code == 3


def test_build_chat_session_uses_endpoint_and_session(logged_in, monkeypatch):
    monkeypatch.setenv("BETTERTASKS_ASSISTANT_URL", "https://tasks.example/api/ai")

    session = build_chat_session()

    assert session.client.endpoint == "https://tasks.example/api/ai"
    assert session.client.session.access_token == "token-1"
    assert session.messages == []
