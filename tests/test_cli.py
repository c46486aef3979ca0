"""Tests for the console commands."""

from typer.testing import CliRunner

from ragebot import assistant as assistant_module
from ragebot import db
from ragebot.cli import app
from ragebot.store import create_user, save_chat_log

from conftest import ScriptedAssistant

runner = CliRunner()


def test_chat_loop(monkeypatch):
    scripted = ScriptedAssistant(["You can do better.\nScore: 35"])
    monkeypatch.setattr(assistant_module, "build_assistant", lambda metrics: scripted)

    result = runner.invoke(app, ["chat"], input="hard\nI skipped the gym\nexit\n")

    assert result.exit_code == 0
    assert "Difficulty set to hard" in result.output
    assert "You can do better." in result.output
    assert "35.00/100" in result.output
    assert "Goodbye!" in result.output
    assert scripted.calls[0][0]["content"].startswith("Roast the user hard")


def test_chat_invalid_difficulty_defaults_to_medium(monkeypatch):
    monkeypatch.setattr(assistant_module, "build_assistant", lambda metrics: ScriptedAssistant())

    result = runner.invoke(app, ["chat", "--difficulty", "insane"], input="exit\n")

    assert result.exit_code == 0
    assert "Defaulting to medium" in result.output


def test_history_unknown_user(monkeypatch, engine):
    monkeypatch.setattr(db, "engine", engine)

    result = runner.invoke(app, ["history", "ghost@example.com"])

    assert result.exit_code == 1
    assert "No user with email" in result.output


def test_history_lists_sessions(monkeypatch, engine, session):
    monkeypatch.setattr(db, "engine", engine)
    user = create_user(session, "busy@example.com", "hash")
    save_chat_log(session, user, [{"text": "hi", "side": "right"}], 42.0, "Busy.")

    result = runner.invoke(app, ["history", "busy@example.com"])

    assert result.exit_code == 0
    assert "42.00/100" in result.output
    assert "Busy." in result.output


def test_history_without_sessions(monkeypatch, engine, session):
    monkeypatch.setattr(db, "engine", engine)
    create_user(session, "idle@example.com", "hash")

    result = runner.invoke(app, ["history", "idle@example.com"])

    assert result.exit_code == 0
    assert "No previous chats found." in result.output
