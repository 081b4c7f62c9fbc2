"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They run against a temporary database via ZAP_DB_PATH.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
"""

import sys

import pytest
from typer.testing import CliRunner

from config import get_settings
from zap.delivery import cli
from zap.study.errors import StorageError
from zap.study.focus_monitor import FocusEvent, FocusEventType

pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the CLI at a fresh database."""
    monkeypatch.setenv("ZAP_DB_PATH", str(tmp_path / "state.db"))
    monkeypatch.setenv("ZAP_USER_ID", "smoke")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def invoke(*args, input=None):
    return runner.invoke(cli.app, list(args), input=input)


class TestCLIHelp:
    def test_main_help(self):
        result = invoke("--help")

        assert result.exit_code == 0
        for command in ("add-card", "due", "review", "focus", "progress", "sessions"):
            assert command in result.stdout


class TestCards:
    def test_due_with_no_cards(self):
        result = invoke("due")

        assert result.exit_code == 0
        assert "No cards yet" in result.stdout

    def test_add_card_then_due(self):
        added = invoke("add-card", "What is ATP?", "Energy currency", "--deck", "bio")
        assert added.exit_code == 0

        result = invoke("due", "--deck", "bio")

        assert result.exit_code == 0
        assert "What is ATP?" in result.stdout
        assert "overdue" in result.stdout

    def test_review_awards_xp(self):
        invoke("add-card", "Q1", "A1")
        invoke("add-card", "Q2", "A2")

        result = invoke("review", input="\ny\n\nn\n")

        assert result.exit_code == 0, result.stdout
        assert "+5 XP" in result.stdout


class TestFocus:
    def test_focus_session_awards_xp(self, monkeypatch):
        monkeypatch.setattr(cli.time, "sleep", lambda seconds: None)

        result = invoke("focus", "--minutes", "1", input="4\n")

        assert result.exit_code == 0, result.stdout
        assert "+22 XP" in result.stdout

        sessions = invoke("sessions")
        assert "focus" in sessions.stdout

    def test_focus_rejects_out_of_range_duration(self):
        result = invoke("focus", "--minutes", "500")
        assert result.exit_code != 0


class TestProgress:
    def test_progress_starts_at_lowest_tier(self):
        result = invoke("progress")

        assert result.exit_code == 0
        assert "Beginner Rabbit" in result.stdout
        assert "100 XP to the next tier" in result.stdout

    def test_sessions_empty(self):
        result = invoke("sessions")

        assert result.exit_code == 0
        assert "No sessions recorded yet" in result.stdout


class TestFocusAlerts:
    def test_interruption_alert_when_enabled(self, capsys):
        context = cli._new_context()
        context.start_focus()

        context.monitor.handle_event(FocusEvent(FocusEventType.BLUR))

        assert "Focus lost: blur" in capsys.readouterr().out
        assert context.focus.interruptions == 1

    def test_no_alert_when_disabled(self, capsys, monkeypatch):
        monkeypatch.setenv("FOCUS_ALERTS", "false")
        get_settings.cache_clear()
        context = cli._new_context()
        context.start_focus()

        context.monitor.handle_event(FocusEvent(FocusEventType.BLUR))

        assert "Focus lost" not in capsys.readouterr().out
        assert context.focus.interruptions == 1


class TestEntryPoint:
    def test_study_error_exits_without_traceback(self, monkeypatch, capsys):
        def broken_service():
            raise StorageError("disk full")

        monkeypatch.setattr(cli, "_get_service", broken_service)
        monkeypatch.setattr(sys, "argv", ["zap", "progress"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        captured = capsys.readouterr()
        assert exc_info.value.code == 1
        assert "disk full" in captured.out
        assert "Traceback" not in captured.out + captured.err
