"""Unit tests for the top-level CLI."""

from unittest.mock import MagicMock

from typer.testing import CliRunner

from bettertasks import __version__
from bettertasks.main import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_lists_command_groups():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("auth", "tasks", "profile", "config", "chat", "serve"):
        assert name in result.output


def test_suggests_close_command():
    result = runner.invoke(app, ["taks"])
    assert result.exit_code == 1
    assert "Did you mean this?" in result.output
    assert "tasks" in result.output


def test_serve_runs_uvicorn(mocker, tmp_config, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    run = mocker.patch("bettertasks.commands.serve.uvicorn.run")

    result = runner.invoke(app, ["serve", "--port", "9000"])

    assert result.exit_code == 0
    assert run.call_args.kwargs["port"] == 9000
    assert run.call_args.kwargs["host"] == "127.0.0.1"


def test_serve_warns_without_llm_key(mocker, tmp_config):
    mocker.patch("bettertasks.commands.serve.uvicorn.run", MagicMock())

    result = runner.invoke(app, ["serve"])

    assert result.exit_code == 0
    assert "OPENAI_API_KEY is not set" in result.output
