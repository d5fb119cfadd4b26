"""Tests for CLI commands."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from pomodoro import db
from pomodoro.cli import app
from pomodoro.clock import ManualClock
from pomodoro.models import PhaseKind, SessionRecord, SessionType
from pomodoro.presence import FilePresencePublisher

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolate(tmp_path: Path):
    """Redirect config, data and database to tmp_path; no desktop notifications."""
    cfg_dir = tmp_path / "config"
    with patch("pomodoro.config._CONFIG_DIR", cfg_dir), patch(
        "pomodoro.config._CONFIG_FILE", cfg_dir / "config.json"
    ), patch("pomodoro.config._DATA_DIR", tmp_path / "data"), patch(
        "pomodoro.db._get_db_path", return_value=tmp_path / "test.db"
    ), patch("pomodoro.notifications.shutil.which", return_value=None):
        yield


@pytest.fixture()
def clock():
    """Simulated time: every one-second sleep advances the clock instead."""
    manual = ManualClock()
    with patch("pomodoro.cli.SystemClock", return_value=manual), patch(
        "pomodoro.timer.time.sleep", side_effect=manual.advance
    ):
        yield manual


def _sessions(tmp_path: Path) -> list[SessionRecord]:
    conn = db.get_connection(tmp_path / "test.db")
    try:
        return db.fetch_all_sessions(conn)
    finally:
        conn.close()


class TestStart:
    def test_work_then_break(self, clock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["start", "--work", "1", "--break", "1"], input="y\nn\n")
        assert result.exit_code == 0, result.output
        assert "Focus session complete" in result.output
        assert "Break over" in result.output

        sessions = _sessions(tmp_path)
        assert [s.kind for s in sessions] == [SessionType.BREAK, SessionType.WORK]
        assert all(s.completed for s in sessions)
        assert sessions[1].duration_seconds == 60

    def test_again_without_break(self, clock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["start", "--work", "1"], input="n\ny\nn\nn\n")
        assert result.exit_code == 0, result.output
        kinds = [s.kind for s in _sessions(tmp_path)]
        assert kinds == [SessionType.WORK, SessionType.WORK]

    def test_stop_after_work(self, clock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["start", "--work", "1"], input="n\nn\n")
        assert result.exit_code == 0
        assert len(_sessions(tmp_path)) == 1

    def test_presence_cleared_after_run(self, clock, tmp_path: Path) -> None:
        runner.invoke(app, ["start", "--work", "1"], input="n\nn\n")
        assert not (tmp_path / "data" / "activity.json").exists()

    def test_reminder_delivered(self, clock) -> None:
        result = runner.invoke(app, ["start", "--work", "1"], input="n\nn\n")
        assert "Work Session Complete!" in result.output

    def test_interrupt_records_nothing(self, tmp_path: Path) -> None:
        with patch("pomodoro.timer.time.sleep", side_effect=KeyboardInterrupt):
            result = runner.invoke(app, ["start"])
        assert result.exit_code == 0
        assert "stopped early" in result.output
        assert _sessions(tmp_path) == []

    def test_history_disabled(self, clock, tmp_path: Path) -> None:
        runner.invoke(app, ["config", "--no-history"])
        runner.invoke(app, ["start", "--work", "1"], input="n\nn\n")
        assert not (tmp_path / "test.db").exists()

    def test_invalid_duration(self) -> None:
        result = runner.invoke(app, ["start", "--work", "0"])
        assert result.exit_code == 1
        assert "greater than zero" in result.output

    @pytest.mark.parametrize("minutes", ["1e12", "inf"])
    def test_oversized_duration(self, minutes) -> None:
        result = runner.invoke(app, ["start", "--work", minutes])
        assert result.exit_code == 1
        assert "at most 24 hours" in result.output


class TestTakeBreak:
    def test_break_only(self, clock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["take-break", "--minutes", "1"], input="n\n")
        assert result.exit_code == 0, result.output
        assert "Break over" in result.output
        assert [s.kind for s in _sessions(tmp_path)] == [SessionType.BREAK]


class TestHistory:
    def test_empty(self) -> None:
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "No sessions yet" in result.output

    def test_lists_sessions(self, clock) -> None:
        runner.invoke(app, ["start", "--work", "1"], input="n\nn\n")
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "work" in result.output
        assert "01:00" in result.output


class TestStats:
    def test_empty(self) -> None:
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Last 7 days" in result.output
        assert "Today: 0 focus sessions" in result.output

    def test_single_day(self) -> None:
        result = runner.invoke(app, ["stats", "--days", "1"])
        assert result.exit_code == 0
        assert "Last 1 day" in result.output


class TestPresence:
    def test_idle(self) -> None:
        result = runner.invoke(app, ["presence"])
        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_running(self, tmp_path: Path) -> None:
        publisher = FilePresencePublisher(tmp_path / "data" / "activity.json")
        publisher.publish(
            PhaseKind.WORKING, datetime.now(timezone.utc) + timedelta(minutes=10, seconds=30)
        )
        result = runner.invoke(app, ["presence"])
        assert result.exit_code == 0
        assert result.output.startswith("🍅 10:")


class TestConfig:
    def test_no_flags(self) -> None:
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "--show" in result.output

    def test_show_default(self) -> None:
        result = runner.invoke(app, ["config", "--show"])
        assert result.exit_code == 0
        assert "Work: 25:00" in result.output
        assert "(default)" in result.output

    def test_set_durations(self) -> None:
        result = runner.invoke(app, ["config", "--work", "50", "--break", "10"])
        assert result.exit_code == 0
        assert "Work 50:00, break 10:00" in result.output

    def test_rejects_zero_duration(self) -> None:
        result = runner.invoke(app, ["config", "--break", "0"])
        assert result.exit_code == 1

    def test_set_db_path(self, tmp_path: Path) -> None:
        target = tmp_path / "custom.db"
        result = runner.invoke(app, ["config", "--db-path", str(target)])
        assert result.exit_code == 0
        assert "Database path set" in result.output

    def test_reset(self) -> None:
        result = runner.invoke(app, ["config", "--reset"])
        assert result.exit_code == 0
        assert "Reset" in result.output

    def test_toggles(self) -> None:
        result = runner.invoke(app, ["config", "--shortcuts", "--no-presence", "--show"])
        assert result.exit_code == 0
        assert "Shortcuts on" in result.output
        assert "Presence off" in result.output
        assert "Shortcuts: on" in result.output
