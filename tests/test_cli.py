"""Tests for the fskit CLI."""

import json
import re
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fskit import __version__
from fskit.cli import app


@pytest.mark.integration
class TestGlobal:
    """Tests for global options."""

    def test_version(self, runner: CliRunner) -> None:
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        """Invoking without a command prints usage."""
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """A config that fails validation exits 1."""
        bad = tmp_path / "bad.toml"
        bad.write_text("[lock]\nstale = 0\n")
        result = runner.invoke(app, ["--config", str(bad), "token"])
        assert result.exit_code == 1

    def test_init_writes_template(self, runner: CliRunner, tmp_path: Path) -> None:
        """init creates ./fskit.toml once."""
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "fskit.toml").exists()

        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0


@pytest.mark.integration
class TestTempCommands:
    """Tests for token and temp commands."""

    def test_token(self, runner: CliRunner) -> None:
        """token prints 32 hex characters."""
        result = runner.invoke(app, ["token"])
        assert result.exit_code == 0
        assert re.fullmatch(r"[0-9a-f]{32}", result.stdout.strip())

    def test_token_length_json(self, runner: CliRunner) -> None:
        """--json and --length are honoured."""
        result = runner.invoke(app, ["--json", "token", "--length", "12"])
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)["token"]) == 12

    def test_temp_file_uses_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """temp-file creates the file in the configured directory."""
        base = tmp_path / "scratch"
        base.mkdir()
        (tmp_path / "fskit.toml").write_text(f'[temp]\ndirectory = "{base}"\n')

        result = runner.invoke(app, ["temp-file"])
        assert result.exit_code == 0
        created = Path(result.stdout.strip())
        assert created.is_file()
        assert created.parent == base.resolve()

    def test_temp_dir(self, runner: CliRunner, tmp_path: Path) -> None:
        """temp-dir creates a directory and prints it as JSON."""
        (tmp_path / "fskit.toml").write_text(f'[temp]\ndirectory = "{tmp_path}"\n')
        result = runner.invoke(app, ["--json", "temp-dir"])
        assert result.exit_code == 0
        assert Path(json.loads(result.stdout)["path"]).is_dir()


@pytest.mark.integration
class TestLockCommands:
    """Tests for lock, unlock, status and run."""

    def test_lock_status_unlock(self, runner: CliRunner, target: Path) -> None:
        """A CLI lock persists until unlocked."""
        result = runner.invoke(app, ["lock", str(target)])
        assert result.exit_code == 0
        assert Path(f"{target}.lock").is_dir()

        result = runner.invoke(app, ["--json", "status", str(target)])
        assert result.exit_code == 0
        info = json.loads(result.stdout)
        assert info["locked"] is True
        assert info["held"] is False

        result = runner.invoke(app, ["unlock", str(target)])
        assert result.exit_code == 0
        assert not Path(f"{target}.lock").exists()

    def test_lock_contention_exit_code(self, runner: CliRunner, target: Path) -> None:
        """--contend on a held lock exits 3."""
        assert runner.invoke(app, ["lock", str(target)]).exit_code == 0

        result = runner.invoke(app, ["lock", str(target), "--contend"])
        assert result.exit_code == 3

    def test_relock_without_contend_is_noop(self, runner: CliRunner, target: Path) -> None:
        """Locking a held path without --contend succeeds."""
        assert runner.invoke(app, ["lock", str(target)]).exit_code == 0
        assert runner.invoke(app, ["lock", str(target)]).exit_code == 0

    def test_lock_missing_parent(self, runner: CliRunner, tmp_path: Path) -> None:
        """A missing parent directory exits 4."""
        result = runner.invoke(app, ["lock", str(tmp_path / "nope" / "file")])
        assert result.exit_code == 4

    def test_status_stale(self, runner: CliRunner, target: Path) -> None:
        """A lock older than --stale reports as stale."""
        Path(f"{target}.lock").mkdir()
        result = runner.invoke(app, ["--json", "status", str(target), "--stale", "0.000001"])
        info = json.loads(result.stdout)
        assert info["stale"] is True
        assert info["locked"] is False

    def test_run_propagates_exit_code(self, runner: CliRunner, target: Path) -> None:
        """run exits with the command's code and releases the lock."""
        script = f"import os, sys; sys.exit(5 if os.path.isdir({str(target) + '.lock'!r}) else 1)"
        result = runner.invoke(app, ["run", str(target), "--", sys.executable, "-c", script])
        assert result.exit_code == 5
        assert not Path(f"{target}.lock").exists()

    def test_run_refuses_held_lock(self, runner: CliRunner, target: Path) -> None:
        """run does not start the command under someone else's lock."""
        Path(f"{target}.lock").mkdir()
        result = runner.invoke(app, ["run", str(target), "--", sys.executable, "-c", "pass"])
        assert result.exit_code == 3
        assert Path(f"{target}.lock").is_dir()

    def test_run_missing_command(self, runner: CliRunner, target: Path) -> None:
        """An unknown command exits 127 and releases the lock."""
        result = runner.invoke(app, ["run", str(target), "--", "fskit-no-such-command-xyz"])
        assert result.exit_code == 127
        assert not Path(f"{target}.lock").exists()
