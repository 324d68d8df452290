"""Tests for the svn-mirror command-line entry point."""

import json
import logging
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import pytest
import yaml

from svn_mirror.cli import build_parser, main
from svn_mirror.core.models import RepoInfo, StatusEntry
from svn_mirror.errors import ErrorKind, ExternalToolError, SyncError
from svn_mirror.sync.log import AUDIT_LOGGER
from svn_mirror.sync.models import (
    EntryKind,
    SyncAction,
    SyncOperation,
    SyncReport,
)


@pytest.fixture
def cli_env(sync_config):
    """Patch config loading and logging so main() runs in isolation."""
    with (
        patch("svn_mirror.cli.load_dotenv"),
        patch("svn_mirror.cli.setup_logging") as mock_logging,
        patch(
            "svn_mirror.cli.load_config", return_value=sync_config
        ) as mock_load,
    ):
        yield mock_load, mock_logging


def _report(dry_run=False):
    return SyncReport(
        paths=["docs"],
        dry_run=dry_run,
        operations=[
            SyncOperation(
                action=SyncAction.ADD,
                kind=EntryKind.FILE,
                relative_path="docs/a.txt",
            )
        ],
        log=[
            "[2024-03-01T10:00:00.000Z] Starting sync",
            "[2024-03-01T10:00:01.000Z] Sync complete",
        ],
        started_at="2024-03-01T10:00:00.000Z",
        completed_at="2024-03-01T10:00:01.000Z",
    )


# -------------------------------------------------------------------------
# Argument parsing
# -------------------------------------------------------------------------


class TestParser:
    def test_sync_requires_paths(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sync"])

    def test_sync_options(self):
        args = build_parser().parse_args(
            ["--config", "c.yml", "sync", "a", "b", "--dry-run", "--json"]
        )
        assert args.config == "c.yml"
        assert args.paths == ["a", "b"]
        assert args.dry_run and args.json

    def test_checkout_defaults_to_both(self):
        assert build_parser().parse_args(["checkout"]).repo == "both"

    def test_status_requires_repo_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["status", "c"])


# -------------------------------------------------------------------------
# sync
# -------------------------------------------------------------------------


class TestSyncCommand:
    @patch("svn_mirror.cli.Reconciler")
    def test_prints_log_lines(self, mock_cls, cli_env, capsys):
        mock_cls.return_value.run.return_value = _report()

        assert main(["sync", "docs"]) == 0

        out = capsys.readouterr().out
        assert "Starting sync" in out
        assert "Sync complete" in out
        mock_cls.return_value.run.assert_called_once_with(
            ["docs"], dry_run=False
        )

    @patch("svn_mirror.cli.Reconciler")
    def test_json_output(self, mock_cls, cli_env, capsys):
        mock_cls.return_value.run.return_value = _report(dry_run=True)

        assert main(["sync", "docs", "--dry-run", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["dry_run"] is True
        assert data["counts"]["added"] == 1
        mock_cls.return_value.run.assert_called_once_with(
            ["docs"], dry_run=True
        )

    @patch("svn_mirror.cli.Reconciler")
    def test_failure_exit_code(self, mock_cls, cli_env, capsys):
        mock_cls.return_value.run.side_effect = SyncError(
            "svn: E155004: locked", ErrorKind.EXTERNAL_TOOL
        )

        assert main(["sync", "docs"]) == 1

        assert "Sync failed: svn: E155004: locked" in capsys.readouterr().err

    @patch("svn_mirror.cli.Reconciler")
    def test_audit_log_override_passed(self, mock_cls, cli_env):
        mock_load, _ = cli_env
        mock_cls.return_value.run.return_value = _report()

        main(["--config", "x.yml", "--audit-log", "/tmp/a.log", "sync", "d"])

        mock_load.assert_called_once_with("x.yml", log_file="/tmp/a.log")

    @patch("svn_mirror.cli.Reconciler")
    def test_logging_configured_from_config(
        self, mock_cls, cli_env, sync_config
    ):
        _, mock_logging = cli_env
        mock_cls.return_value.run.return_value = _report()

        main(["--debug", "sync", "docs"])

        mock_logging.assert_called_once_with(
            debug=True,
            log_file=sync_config.logging.file,
            debug_format="text",
            level=sync_config.logging.level,
            stderr_exclude=(),
        )

    @patch("svn_mirror.cli.Reconciler")
    def test_audit_echo_kept_off_stderr_by_default(self, mock_cls, cli_env):
        _, mock_logging = cli_env
        mock_cls.return_value.run.return_value = _report()

        main(["sync", "docs"])

        assert mock_logging.call_args.kwargs["stderr_exclude"] == (
            AUDIT_LOGGER,
        )

    @patch("svn_mirror.cli.Reconciler")
    def test_dry_run_prints_readable_report(self, mock_cls, cli_env, capsys):
        mock_cls.return_value.run.return_value = _report(dry_run=True)

        assert main(["sync", "docs", "--dry-run"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Sync report for docs (DRY RUN)")
        assert "1 operations: 1 added, 0 deleted" in out
        assert "  docs/a.txt" in out
        assert "Starting sync" not in out


# -------------------------------------------------------------------------
# End to end with a real Reconciler
# -------------------------------------------------------------------------


@contextmanager
def _preserved_root_logging():
    """Restore root logger handlers replaced by ``setup_logging``."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    try:
        yield
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)


class TestEndToEnd:
    def test_missing_svn_reports_failure_once(
        self, tmp_path, working_copies, monkeypatch, capsys
    ):
        for name in (
            "LOG_LEVEL",
            "SVN_MIRROR_CONFIG",
            "SVN_MIRROR_LOG_FILE",
            "SVN_MIRROR_SVN_BINARY",
        ):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        wc_a, wc_b = working_copies
        (wc_a / "docs").mkdir()
        log_file = tmp_path / "audit" / "sync.log"
        config_path = tmp_path / "mirror.json"
        config_path.write_text(
            json.dumps(
                {
                    "repoA": {"localPath": str(wc_a)},
                    "repoB": {"localPath": str(wc_b)},
                    "logFile": str(log_file),
                    "svnBinary": str(tmp_path / "no-such-svn"),
                }
            ),
            encoding="utf-8",
        )

        with patch("svn_mirror.cli.load_dotenv"), _preserved_root_logging():
            code = main(["--config", str(config_path), "sync", "docs"])

        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == ""
        err_lines = captured.err.splitlines()
        assert len(err_lines) == 1
        assert err_lines[0].startswith("Sync failed: ")
        assert "not installed or not on PATH" in err_lines[0]
        # The audit log still records the failure
        assert "Sync failed: " in log_file.read_text(encoding="utf-8")


# -------------------------------------------------------------------------
# Config errors
# -------------------------------------------------------------------------


class TestConfigErrors:
    @pytest.mark.parametrize(
        "exc",
        [
            ValueError("repoA.localPath is not set"),
            FileNotFoundError("Config file not found: x.yml"),
            yaml.YAMLError("bad yaml"),
        ],
    )
    def test_config_error_exit_code(self, exc, capsys):
        with (
            patch("svn_mirror.cli.load_dotenv"),
            patch("svn_mirror.cli.load_config", side_effect=exc),
        ):
            assert main(["sync", "docs"]) == 2

        assert capsys.readouterr().err.startswith("Error: ")


# -------------------------------------------------------------------------
# Working copy commands
# -------------------------------------------------------------------------


class TestWorkingCopyCommands:
    @patch("svn_mirror.cli.client_for")
    def test_status(self, mock_client_for, cli_env, capsys):
        client = MagicMock()
        client.status.return_value = [
            StatusEntry(path="a.txt", status_code="M", working_revision="7"),
            StatusEntry(path="new.tmp", status_code="?"),
        ]
        mock_client_for.return_value = client

        assert main(["status", "b"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("M") and out[0].endswith("a.txt")
        assert "7" in out[0]
        assert out[1].startswith("?") and out[1].endswith("new.tmp")
        client.status.assert_called_once_with(".")

    @patch("svn_mirror.cli.client_for")
    def test_status_uses_selected_repo(
        self, mock_client_for, cli_env, sync_config
    ):
        mock_client_for.return_value.status.return_value = []

        main(["status", "a", "docs"])

        mock_client_for.assert_called_once_with(
            sync_config.repo_a, sync_config
        )
        mock_client_for.return_value.status.assert_called_once_with("docs")

    @patch("svn_mirror.cli.client_for")
    def test_info(self, mock_client_for, cli_env, capsys):
        mock_client_for.return_value.info.return_value = RepoInfo(
            url="https://svn.b.example/repo", revision="12"
        )

        assert main(["info", "b"]) == 0

        out = capsys.readouterr().out
        assert "URL: https://svn.b.example/repo" in out
        assert "Revision: 12" in out
        assert "Last Changed Author: -" in out

    @patch("svn_mirror.cli.client_for")
    def test_cleanup(self, mock_client_for, cli_env, capsys):
        assert main(["cleanup", "a"]) == 0
        mock_client_for.return_value.cleanup.assert_called_once_with(".")

    @patch("svn_mirror.cli.client_for")
    def test_tool_error_exit_code(self, mock_client_for, cli_env, capsys):
        mock_client_for.return_value.cleanup.side_effect = ExternalToolError(
            "svn: E155037: previous operation not finished"
        )

        assert main(["cleanup", "b"]) == 1
        assert "E155037" in capsys.readouterr().err

    @patch("svn_mirror.cli.SvnClient")
    def test_checkout_both(self, mock_client_cls, cli_env, sync_config):
        assert main(["checkout"]) == 0

        checkout = mock_client_cls.return_value.checkout
        assert [c.args for c in checkout.call_args_list] == [
            (sync_config.repo_a.url, sync_config.repo_a.local_path),
            (sync_config.repo_b.url, sync_config.repo_b.local_path),
        ]
        # Credentials of repo B are passed to its client
        assert mock_client_cls.call_args_list[1].kwargs["username"] == "mirror"

    @patch("svn_mirror.cli.SvnClient")
    def test_checkout_missing_url(self, mock_client_cls, sync_config, capsys):
        config = sync_config.model_copy(
            update={"repo_a": sync_config.repo_a.model_copy(update={"url": ""})}
        )
        with (
            patch("svn_mirror.cli.load_dotenv"),
            patch("svn_mirror.cli.setup_logging"),
            patch("svn_mirror.cli.load_config", return_value=config),
        ):
            assert main(["checkout", "a"]) == 2

        assert "repoA.url is not set" in capsys.readouterr().err
        mock_client_cls.return_value.checkout.assert_not_called()
