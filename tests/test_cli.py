"""Tests for the timeleft CLI layer."""

from __future__ import annotations

import json
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import click.testing
import pytest

from timeleft.cli.main import _format_remaining, cli

T0 = 1_700_000_000_000


@pytest.fixture()
def runner() -> click.testing.CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return click.testing.CliRunner()


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatRemaining:
    def test_minutes_and_seconds(self) -> None:
        assert _format_remaining(454) == "7:34"

    def test_pads_seconds(self) -> None:
        assert _format_remaining(5) == "0:05"

    def test_whole_minutes(self) -> None:
        assert _format_remaining(720) == "12:00"


# ---------------------------------------------------------------------------
# timeleft remaining
# ---------------------------------------------------------------------------


class TestRemainingCommand:
    """Tests for ``timeleft remaining``."""

    @patch("timeleft.cli.main.time")
    def test_active(self, mock_time: MagicMock, runner: click.testing.CliRunner) -> None:
        mock_time.time.return_value = (T0 + 146_000) / 1000
        result = runner.invoke(cli, ["remaining", "600", "--started-at", str(T0)])
        assert result.exit_code == 0
        assert "7:34 remaining" in result.output

    @patch("timeleft.cli.main.time")
    def test_offset_applied(self, mock_time: MagicMock, runner: click.testing.CliRunner) -> None:
        mock_time.time.return_value = (T0 + 146_000) / 1000
        result = runner.invoke(
            cli, ["remaining", "600", "--started-at", str(T0), "--offset", "4000"]
        )
        assert "7:30 remaining" in result.output

    @patch("timeleft.cli.main.time")
    def test_ended(self, mock_time: MagicMock, runner: click.testing.CliRunner) -> None:
        mock_time.time.return_value = (T0 + 600_000) / 1000
        result = runner.invoke(cli, ["remaining", "600", "--started-at", str(T0)])
        assert result.exit_code == 1
        assert "Time has ended" in result.output

    def test_missing_started_at(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["remaining", "600"])
        assert result.exit_code != 0

    def test_invalid_duration(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["remaining", "abc", "--started-at", "0"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# timeleft watch
# ---------------------------------------------------------------------------


class TestWatchCommand:
    """Tests for ``timeleft watch``."""

    def test_ended_meeting_closes_immediately(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        started_at = _now_ms() - 120_000
        result = runner.invoke(
            cli, ["watch", "60", "--started-at", str(started_at), "--config-dir", str(tmp_path)]
        )
        assert result.exit_code == 0
        assert "Meeting will close" in result.output

    def test_ended_breakout_closes_immediately(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        started_at = _now_ms() - 120_000
        result = runner.invoke(
            cli,
            [
                "watch",
                "60",
                "--started-at",
                str(started_at),
                "--breakout",
                "--config-dir",
                str(tmp_path),
            ],
        )
        assert result.exit_code == 0
        assert "Breakout room will close" in result.output

    def test_zero_duration_is_dormant(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["watch", "0", "--config-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No countdown active" in result.output

    def test_negative_duration_is_an_error(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["watch", "--config-dir", str(tmp_path), "--", "-5"])
        assert result.exit_code == 1
        assert "must not be negative" in result.output

    def test_bad_threshold_is_an_error(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            cli, ["watch", "60", "--threshold", "0", "--config-dir", str(tmp_path)]
        )
        assert result.exit_code == 1
        assert "positive" in result.output

    def test_bad_settings_file_is_an_error(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        (tmp_path / "settings.json").write_text(json.dumps({"displayAlerts": "no"}))
        result = runner.invoke(cli, ["watch", "60", "--config-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "displayAlerts" in result.output


class TestVersion:
    def test_version_option(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "timeleft" in result.output
