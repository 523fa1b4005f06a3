"""Tests for the REPL helpers and the interactive loop."""

from unittest.mock import patch

import pytest

from permfs.fs import FileSystem
from permfs.repl import build_prompt, format_boot_log, parse_args, run
from permfs.shell import Shell


class TestREPLHelpers:
    """Verify pure helper functions."""

    def test_build_prompt_shows_user(self) -> None:
        """The prompt names the acting user."""
        fs = FileSystem()
        fs.add_user("alice", "rwx", "/home/alice")
        shell = Shell(fs=fs, user="alice")
        assert build_prompt(shell) == "alice@permfs $ "

    def test_format_boot_log(self) -> None:
        """The banner includes the boot messages."""
        banner = format_boot_log(["[CONFIG] ok", "[OK] File system ready"])
        assert "permfs" in banner
        assert "[OK] File system ready" in banner

    def test_parse_args_defaults(self) -> None:
        """No arguments means no users file, acting as root."""
        args = parse_args([])
        assert args.users is None
        assert args.user == "root"


class TestRun:
    """Verify the loop with scripted input."""

    def test_run_until_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Commands run until exit; output is printed."""
        commands = iter(["mkdir /docs", "ls /", "exit"])
        with patch("builtins.input", lambda _prompt: next(commands)):
            status = run([])
        out = capsys.readouterr().out
        assert status == 0
        assert "drwx root 0 docs/" in out
        assert "Session closed." in out

    def test_run_stops_on_eof(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Ctrl+D ends the session cleanly."""

        def _eof(_prompt: str) -> str:
            raise EOFError

        with patch("builtins.input", _eof):
            assert run([]) == 0
        assert "Session closed." in capsys.readouterr().out

    def test_run_reports_boot_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        """An unknown starting user fails the boot."""
        assert run(["--user", "ghost"]) == 1
        assert "Boot failed" in capsys.readouterr().out
