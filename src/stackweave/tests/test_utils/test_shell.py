#!/usr/bin/env python3
"""Tests for stackweave.utils.shell module."""

import shlex
import subprocess
import unittest
from unittest.mock import patch

from stackweave.utils.shell import (
    _check_returncode, remove_prefix, run, run_always_return, run_capture, run_multiline
)
from stackweave.utils.logging import ExitException


class TestCheckReturnCode(unittest.TestCase):
    """Tests for _check_returncode function."""

    @patch("stackweave.utils.shell.die")
    def test_check_returncode_zero(self, mock_die):
        """Test that zero return code does not call die."""
        sp = subprocess.CompletedProcess(args=["ls"], returncode=0)
        _check_returncode(sp, ["ls"])
        mock_die.assert_not_called()

    @patch("stackweave.utils.shell.die")
    def test_check_returncode_negative(self, mock_die):
        """Test that negative return code (signal) calls die with signal info."""
        sp = subprocess.CompletedProcess(args=["ls"], returncode=-9, stderr=b"killed")
        _check_returncode(sp, ["ls"])
        mock_die.assert_called_once_with(
            "Killed by signal {}: {}. Stderr was:\n{}",
            9, shlex.join(["ls"]), "killed"
        )

    @patch("stackweave.utils.shell.die")
    def test_check_returncode_positive(self, mock_die):
        """Test that positive return code calls die with exit status."""
        sp = subprocess.CompletedProcess(args=["ls"], returncode=2, stderr=b"error")
        _check_returncode(sp, ["ls"])
        mock_die.assert_called_once_with(
            "Exited with status {}: {}. Stderr was:\n{}",
            2, shlex.join(["ls"]), "error"
        )


class TestRun(unittest.TestCase):
    """Tests for run functions."""

    @patch("subprocess.run")
    def test_run_strips_output(self, mock_subprocess_run):
        """Test run returns stripped output on success."""
        mock_subprocess_run.return_value = subprocess.CompletedProcess(
            args=["git"], returncode=0, stdout=b"  main  \n", stderr=b""
        )
        self.assertEqual(run(["git", "branch"]), "main")

    @patch("subprocess.run")
    def test_run_multiline_keeps_newlines(self, mock_subprocess_run):
        """Test run_multiline keeps the output as is."""
        mock_subprocess_run.return_value = subprocess.CompletedProcess(
            args=["git"], returncode=0, stdout=b"a\nb\n", stderr=b""
        )
        self.assertEqual(run_multiline(["git", "log"]), "a\nb\n")

    @patch("subprocess.run")
    def test_run_failure_unchecked(self, mock_subprocess_run):
        """Test a failing command gives None when not checked."""
        mock_subprocess_run.return_value = subprocess.CompletedProcess(
            args=["git"], returncode=1, stdout=b"", stderr=b"fatal"
        )
        self.assertIsNone(run(["git", "show-ref"], check=False))

    @patch("subprocess.run")
    def test_run_failure_checked(self, mock_subprocess_run):
        """Test a failing command raises ExitException by default."""
        mock_subprocess_run.return_value = subprocess.CompletedProcess(
            args=["git"], returncode=128, stdout=b"", stderr=b"fatal: not a git repository"
        )
        with self.assertRaises(ExitException) as cm:
            run(["git", "status"])
        self.assertIn("not a git repository", str(cm.exception))

    @patch("subprocess.run")
    def test_run_always_return(self, mock_subprocess_run):
        """Test run_always_return passes the output through."""
        mock_subprocess_run.return_value = subprocess.CompletedProcess(
            args=["git"], returncode=0, stdout=b"/repo/.git\n", stderr=b""
        )
        self.assertEqual(run_always_return(["git", "rev-parse", "--absolute-git-dir"]), "/repo/.git")

    @patch("subprocess.run")
    def test_run_capture_returns_process(self, mock_subprocess_run):
        """Test run_capture never dies on failure."""
        sp = subprocess.CompletedProcess(args=["gh"], returncode=1, stdout=b"", stderr=b"boom")
        mock_subprocess_run.return_value = sp
        self.assertIs(run_capture(["gh", "pr", "view"]), sp)


class TestRemovePrefix(unittest.TestCase):
    """Tests for remove_prefix function."""

    def test_remove_prefix(self):
        """Test the prefix is removed."""
        self.assertEqual(remove_prefix("refs/heads/main", "refs/heads/"), "main")

    def test_missing_prefix(self):
        """Test a missing prefix dies."""
        with self.assertRaises(ExitException):
            remove_prefix("main", "refs/heads/")


if __name__ == "__main__":
    unittest.main()
