"""Unit tests for cli.sync_command module."""

import io
import os
from unittest.mock import patch

import pytest
from rich.console import Console

from notion_mirror.cli.config import StateManager
from notion_mirror.cli.errors import ConfigNotFoundError
from notion_mirror.cli.models import ExitCode, SyncStatus
from notion_mirror.cli.output import OutputHandler
from notion_mirror.cli.sync_command import SyncCommand
from notion_mirror.cli.sync_lock import SyncLock
from notion_mirror.file_mapper.config_loader import ConfigLoader
from notion_mirror.file_mapper.models import SyncConfig
from notion_mirror.notion_api.auth import Authenticator
from notion_mirror.notion_api.errors import APIUnreachableError, InvalidCredentialsError
from tests.fixtures import FakeNotionAPI, paragraph


@pytest.fixture
def paths(tmp_path):
    state_dir = tmp_path / ".notion-mirror"
    config_path = str(state_dir / "config.yaml")
    ConfigLoader.save(config_path, SyncConfig(vault_path=str(tmp_path / "vault")))
    return {
        "config": config_path,
        "state": str(state_dir / "state.yaml"),
        "state_dir": str(state_dir),
        "vault": tmp_path / "vault",
    }


@pytest.fixture
def output():
    console = Console(file=io.StringIO(), width=120, no_color=True)
    return OutputHandler(console=console)


@pytest.fixture
def api():
    api = FakeNotionAPI()
    api.add_page("root", "Projects")
    api.add_page("p1", "Plan", parent_id="root", blocks=[paragraph("Hello")])
    return api


def make_command(paths, output, api, token="secret_test"):
    return SyncCommand(
        config_path=paths["config"],
        state_path=paths["state"],
        output_handler=output,
        authenticator=Authenticator(token=token),
        api_wrapper=api,
    )


class TestSyncCommandRun:
    """Test cases for SyncCommand.run."""

    def test_successful_pass(self, paths, output, api):
        # Act
        exit_code = make_command(paths, output, api).run()

        # Assert
        assert exit_code == ExitCode.SUCCESS
        assert (paths["vault"] / "Projects" / "Plan.md").is_file()
        state = StateManager.load(paths["state"])
        assert state.last_synced is not None
        assert set(state.synced_pages) == {"p1"}

    def test_dry_run_changes_nothing(self, paths, output, api):
        command = make_command(paths, output, api)

        exit_code = command.run(dry_run=True)

        assert exit_code == ExitCode.SUCCESS
        assert command.last_summary.dry_run is True
        assert not (paths["vault"] / "Projects").exists()
        assert not os.path.exists(paths["state"])
        assert "Would write" in output.console.file.getvalue()

    def test_missing_config_prints_help(self, tmp_path, output, api):
        command = SyncCommand(
            config_path=str(tmp_path / "none.yaml"),
            state_path=str(tmp_path / "state.yaml"),
            output_handler=output,
            api_wrapper=api,
        )

        assert command.run() == ExitCode.GENERAL_ERROR
        assert "notion-mirror --init" in output.console.file.getvalue()

    def test_load_config_raises_when_missing(self, tmp_path, output):
        command = SyncCommand(str(tmp_path / "none.yaml"), str(tmp_path / "s.yaml"), output_handler=output)

        with pytest.raises(ConfigNotFoundError, match="none.yaml"):
            command._load_config()

    def test_missing_token_refused_before_any_request(self, paths, output, api):
        exit_code = make_command(paths, output, api, token=None).run()

        assert exit_code == ExitCode.AUTH_ERROR
        assert api.search_calls == 0

    def test_rejected_token(self, paths, output, api):
        api.search_error = InvalidCredentialsError("https://api.notion.com/v1")
        assert make_command(paths, output, api).run() == ExitCode.AUTH_ERROR

    def test_network_failure_aborts(self, paths, output, api):
        api.search_error = APIUnreachableError("https://api.notion.com/v1")
        command = make_command(paths, output, api)

        exit_code = command.run()

        assert exit_code == ExitCode.NETWORK_ERROR
        assert command.last_summary.status is SyncStatus.ABORTED
        assert not os.path.exists(paths["state"])

    def test_concurrent_pass_is_refused(self, paths, output, api):
        command = make_command(paths, output, api)

        with SyncLock(paths["state_dir"]).hold() as acquired:
            assert acquired
            exit_code = command.run()

        assert exit_code == ExitCode.ALREADY_RUNNING
        assert command.last_summary.status is SyncStatus.ALREADY_RUNNING
        assert api.search_calls == 0

    def test_collisions_return_conflicts(self, paths, output, api):
        api.add_page("p2", "Plan", parent_id="root")

        assert make_command(paths, output, api).run() == ExitCode.CONFLICTS

    def test_invalid_config(self, paths, output, api):
        with open(paths["config"], "w", encoding="utf-8") as f:
            f.write("sync_interval_minutes: -5\n")

        assert make_command(paths, output, api).run() == ExitCode.GENERAL_ERROR

    def test_unexpected_error_is_general(self, paths, output, api):
        with patch("notion_mirror.cli.sync_command.ReconciliationEngine") as engine_cls:
            engine_cls.return_value.run.side_effect = RuntimeError("bug")
            assert make_command(paths, output, api).run() == ExitCode.GENERAL_ERROR


class TestSyncCommandStatus:
    """Test cases for SyncCommand.status."""

    def test_status_after_sync(self, paths, output, api):
        command = make_command(paths, output, api)
        command.run()

        assert command.status() == ExitCode.SUCCESS
        text = output.console.file.getvalue()
        assert "Synced pages" in text

    def test_status_without_config(self, tmp_path, output):
        command = SyncCommand(str(tmp_path / "none.yaml"), str(tmp_path / "s.yaml"), output_handler=output)
        assert command.status() == ExitCode.GENERAL_ERROR
