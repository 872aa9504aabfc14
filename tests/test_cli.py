"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner

from tutorchat.backends.rest import HttpSessionStore
from tutorchat.cli import main
from tutorchat.core import ChatSession
from tutorchat.provider import StoreError


@pytest.fixture
def runner():
    return CliRunner()


def test_offline_chat_over_fallback(runner):
    result = runner.invoke(
        main,
        ["chat", "--offline", "--no-realtime", "--context-type", "topic", "--context-id", "t1"],
        input="hello\n/quit\n",
    )
    assert result.exit_code == 0, result.output
    assert "== Topic Discussion (HTTP fallback) ==" in result.output
    assert "I'm here to help with your current topic" in result.output
    assert "/quick 0: Explain simply" in result.output
    assert "You: hello" in result.output
    assert "Tutor: " in result.output


def test_offline_chat_quick_action(runner):
    result = runner.invoke(
        main,
        ["chat", "--offline", "--no-realtime", "--context-type", "topic"],
        input="/quick 2\n/quick 9\n",
    )
    assert result.exit_code == 0, result.output
    assert "You: What are the key takeaways?" in result.output
    assert "No such quick action." in result.output


def test_general_chat_shows_greeting(runner):
    result = runner.invoke(main, ["chat", "--offline"], input="/quit\n")
    assert result.exit_code == 0, result.output
    assert "== General AI Chat (real-time) ==" in result.output
    assert "Hi! I'm your AI tutor." in result.output


def test_sessions_lists(runner, monkeypatch):
    async def fake_list(self):
        return [ChatSession(id="s1", title="Module Help", context_type="module", total_messages=4)]

    monkeypatch.setattr(HttpSessionStore, "list_sessions", fake_list)
    result = runner.invoke(main, ["sessions", "--api-url", "http://test/api"])
    assert result.exit_code == 0, result.output
    assert "s1  Module Help  [module]  4 messages  Recently created" in result.output


def test_sessions_reports_store_errors(runner, monkeypatch):
    async def failing_list(self):
        raise StoreError("GET /chat/sessions failed with 401")

    monkeypatch.setattr(HttpSessionStore, "list_sessions", failing_list)
    result = runner.invoke(main, ["sessions", "--api-url", "http://test/api"])
    assert result.exit_code == 1
    assert "401" in result.output
