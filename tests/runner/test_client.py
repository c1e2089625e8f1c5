"""Tests for running the sync client."""

from __future__ import annotations

import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from synccron.core.config import SyncConfig
from synccron.core.errors import SyncClientNotFoundError
from synccron.runner.client import (
    TIMEOUT_EXIT_CODE,
    SyncClient,
    build_command,
    find_executable,
)


def make_script(path: Path, body: str) -> Path:
    """Create an executable shell script standing in for nextcloudcmd."""
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


@pytest.fixture
def config(tmp_path: Path) -> SyncConfig:
    return SyncConfig(
        config_file=tmp_path / "sync.conf",
        local=tmp_path / "Nextcloud",
        remote="https://cloud.example.com",
    )


@pytest.fixture
def output_file(tmp_path: Path) -> Path:
    return tmp_path / "nextcloudcmd.txt"


class TestBuildCommand:
    """Tests for build_command."""

    def test_netrc(self, config: SyncConfig) -> None:
        """Without a username, credentials come from ~/.netrc."""
        assert build_command("nextcloudcmd", config) == [
            "nextcloudcmd",
            "-n",
            str(config.local),
            "https://cloud.example.com",
        ]

    def test_explicit_credentials(self, config: SyncConfig) -> None:
        """Username and password are passed on the command line."""
        config.username = "alice"
        config.password = "pass word"
        cmd = build_command("nextcloudcmd", config)
        assert cmd[1:5] == ["--user", "alice", "--password", "pass word"]
        assert "-n" not in cmd

    def test_optional_settings(self, config: SyncConfig) -> None:
        """Optional settings become options before the positional arguments."""
        config.unsyncedfolders = "/etc/unsynced.lst"
        config.davpath = "remote.php/webdav"
        config.exclude = "/etc/exclude.lst"
        cmd = build_command("nextcloudcmd", config)
        assert cmd == [
            "nextcloudcmd",
            "-n",
            "--unsyncedfolders",
            "/etc/unsynced.lst",
            "--davpath",
            "remote.php/webdav",
            "--exclude",
            "/etc/exclude.lst",
            str(config.local),
            "https://cloud.example.com",
        ]

    def test_never_syncs_hidden_files(self, config: SyncConfig) -> None:
        """-h would sync the hidden log directory."""
        assert "-h" not in build_command("nextcloudcmd", config)


class TestFindExecutable:
    """Tests for find_executable."""

    def test_not_found(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should raise when the client is not on the PATH."""
        monkeypatch.delenv("SYNCCRON_NEXTCLOUDCMD", raising=False)
        with patch("synccron.runner.client.shutil.which", return_value=None):
            with pytest.raises(SyncClientNotFoundError, match="nextcloudcmd"):
                find_executable()

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """$SYNCCRON_NEXTCLOUDCMD names another executable."""
        script = make_script(tmp_path / "fakecmd", "exit 0\n")
        monkeypatch.setenv("SYNCCRON_NEXTCLOUDCMD", str(script))
        assert find_executable() == str(script)


class TestSyncClientRun:
    """Tests for SyncClient.run with a stand-in executable."""

    def test_success(self, tmp_path: Path, config: SyncConfig, output_file: Path) -> None:
        """Should report exit status and combined output."""
        script = make_script(tmp_path / "nextcloudcmd", 'echo "out"\necho "err" >&2\nexit 0\n')
        context = SyncClient(str(script)).run(config, output_file)
        assert context.succeeded
        assert "out" in context.output
        assert "err" in context.output
        assert context.end_epoch >= context.start_epoch

    def test_failure(self, tmp_path: Path, config: SyncConfig, output_file: Path) -> None:
        """Should report a nonzero exit status."""
        script = make_script(tmp_path / "nextcloudcmd", "exit 3\n")
        context = SyncClient(str(script)).run(config, output_file)
        assert context.exit_code == 3
        assert not context.succeeded

    def test_stdin_is_closed(self, tmp_path: Path, config: SyncConfig, output_file: Path) -> None:
        """A client reading stdin gets end of file instead of blocking."""
        script = make_script(tmp_path / "nextcloudcmd", 'read answer\necho "eof $?"\n')
        context = SyncClient(str(script)).run(config, output_file)
        assert "eof 1" in context.output

    def test_arguments_passed(self, tmp_path: Path, config: SyncConfig, output_file: Path) -> None:
        """The client receives the built command line."""
        script = make_script(tmp_path / "nextcloudcmd", 'printf "%s\\n" "$*"\n')
        context = SyncClient(str(script)).run(config, output_file)
        assert context.output.strip() == f"-n {config.local} https://cloud.example.com"

    def test_output_appended_after_header(
        self, tmp_path: Path, config: SyncConfig, output_file: Path
    ) -> None:
        """Output goes below what is already in the file; only the new part is reported."""
        output_file.write_text("# header\n")
        script = make_script(tmp_path / "nextcloudcmd", 'echo "synced"\n')
        context = SyncClient(str(script)).run(config, output_file)
        assert output_file.read_text() == "# header\nsynced\n"
        assert context.output == "synced\n"

    def test_output_written_while_running(
        self, tmp_path: Path, config: SyncConfig, output_file: Path
    ) -> None:
        """The output file holds what the client printed before it finishes."""
        snapshot = tmp_path / "snapshot.txt"
        script = make_script(
            tmp_path / "nextcloudcmd",
            f'echo "sync progress: uploaded file1"\ncp "{output_file}" "{snapshot}"\n',
        )
        SyncClient(str(script)).run(config, output_file)
        assert "sync progress: uploaded file1" in snapshot.read_text()

    def test_timeout(self, tmp_path: Path, config: SyncConfig, output_file: Path) -> None:
        """A client running past the timeout is killed and its output kept."""
        script = make_script(tmp_path / "nextcloudcmd", "echo started\nexec sleep 30\n")
        config.timeout = 0.5
        context = SyncClient(str(script)).run(config, output_file)
        assert context.timed_out
        assert context.exit_code == TIMEOUT_EXIT_CODE
        assert "timeout" in context.output
        text = output_file.read_text()
        assert text.startswith("started\n")
        assert "killed after 0.5 s timeout" in text
