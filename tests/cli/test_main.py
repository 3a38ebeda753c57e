"""Tests for the spidermonkey command."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import structlog
from click.testing import CliRunner

from spidermonkey.cli.main import _build_overrides, cli
from spidermonkey.index.models import IndexState

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """The command reconfigures global logging; undo it after each test."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


@pytest.fixture
def scan_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "tree"
    directory.mkdir()
    (directory / "readme.txt").write_text("hello\nworld\n")
    return directory


@pytest.fixture
def mock_run_server() -> Iterator[AsyncMock]:
    with patch("spidermonkey.daemon.lifecycle.run_server", new_callable=AsyncMock) as mock:
        yield mock


class TestArguments:
    """Option validation."""

    def test_requires_directory_or_config(self) -> None:
        result = runner.invoke(cli, [])

        assert result.exit_code == 2
        assert "Exactly one of" in result.output

    def test_rejects_directory_and_config_together(self, scan_dir: Path, tmp_path: Path) -> None:
        config_file = tmp_path / "sm.yaml"
        config_file.write_text(f"scan_settings:\n  scan_directory: {scan_dir}\n")

        result = runner.invoke(cli, ["-d", str(scan_dir), "-c", str(config_file)])

        assert result.exit_code == 2
        assert "Exactly one of" in result.output

    def test_missing_directory_fails(self, tmp_path: Path, mock_run_server: AsyncMock) -> None:
        result = runner.invoke(cli, ["-d", str(tmp_path / "nope")])

        assert result.exit_code == 1
        assert "not an existing directory" in result.output
        mock_run_server.assert_not_called()

    def test_missing_config_file_fails(self, tmp_path: Path, mock_run_server: AsyncMock) -> None:
        result = runner.invoke(cli, ["-c", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_invalid_interval_fails(self, scan_dir: Path, mock_run_server: AsyncMock) -> None:
        result = runner.invoke(cli, ["-d", str(scan_dir), "--interval", "soon"])

        assert result.exit_code == 1
        mock_run_server.assert_not_called()

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "spidermonkey" in result.output

    def test_short_help_flag(self) -> None:
        result = runner.invoke(cli, ["-h"])

        assert result.exit_code == 0
        assert "--directory" in result.output


class TestStartup:
    """Build then serve."""

    def test_builds_index_then_serves(self, scan_dir: Path, mock_run_server: AsyncMock) -> None:
        # When
        result = runner.invoke(cli, ["-d", str(scan_dir), "-e", "127.0.0.1:4010"])

        # Then
        assert result.exit_code == 0, result.output
        mock_run_server.assert_awaited_once()
        synchronizer, config = mock_run_server.await_args.args
        assert synchronizer.state is IndexState.READY
        assert synchronizer.tracked_count == 1
        assert config.server.port == 4010
        assert Path(config.scan.scan_directory) == scan_dir

    def test_banner_printed_only_from_ready_callback(
        self, scan_dir: Path, mock_run_server: AsyncMock
    ) -> None:
        # When - the mocked server never becomes ready
        result = runner.invoke(cli, ["-d", str(scan_dir)])

        # Then
        assert result.exit_code == 0, result.output
        assert "Ready" not in result.output
        on_ready = mock_run_server.await_args.kwargs["on_ready"]

        # When - the server reports ready
        with patch("spidermonkey.cli.main._print_banner") as banner:
            on_ready()

        # Then
        banner.assert_called_once()

    def test_bind_failure_exits_with_error(
        self, scan_dir: Path, mock_run_server: AsyncMock
    ) -> None:
        mock_run_server.side_effect = OSError(98, "Address already in use")

        result = runner.invoke(cli, ["-d", str(scan_dir), "-e", "127.0.0.1:4011"])

        assert result.exit_code == 1
        assert "Failed to serve on 127.0.0.1:4011" in result.output
        assert "Ready" not in result.output

    def test_config_file_with_overrides(
        self, scan_dir: Path, tmp_path: Path, mock_run_server: AsyncMock
    ) -> None:
        # Given
        config_file = tmp_path / "sm.yaml"
        config_file.write_text(
            f"scan_settings:\n  scan_directory: {scan_dir}\n  rescan_interval: 10m\n"
        )

        # When
        result = runner.invoke(cli, ["-c", str(config_file), "--interval", "45s"])

        # Then
        assert result.exit_code == 0, result.output
        _, config = mock_run_server.await_args.args
        assert config.scan.rescan_interval == 45.0

    def test_keyboard_interrupt_stops_cleanly(
        self, scan_dir: Path, mock_run_server: AsyncMock
    ) -> None:
        mock_run_server.side_effect = KeyboardInterrupt

        result = runner.invoke(cli, ["-d", str(scan_dir)])

        assert result.exit_code == 0
        assert "Stopped" in result.output


class TestBuildOverrides:
    """CLI flags to config sections."""

    def test_no_flags(self) -> None:
        assert _build_overrides(None, None, None) == {}

    def test_all_flags(self, tmp_path: Path) -> None:
        overrides = _build_overrides(tmp_path, "0.0.0.0:8080", "5m")

        assert overrides == {
            "scan": {"scan_directory": str(tmp_path), "rescan_interval": "5m"},
            "server": {"endpoint": "0.0.0.0:8080"},
        }
