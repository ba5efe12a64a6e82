#!/usr/bin/env python3
"""Tests for stackweave.pr.github module."""

import json
import subprocess
import unittest
from unittest.mock import MagicMock, patch

from stackweave.pr.github import (
    STACK_COMMENT_END, STACK_COMMENT_START, GitHubClient, PRState,
    extract_stack_comment, generate_stack_string, with_stack_comment
)
from stackweave.utils.errors import AuthFailure, NetworkFailure
from stackweave.utils.logging import ExitException
from stackweave.utils.types import BranchName


def completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=["gh"], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitHubClient(unittest.TestCase):
    """Tests for GitHubClient."""

    def setUp(self):
        self.sleep = MagicMock()
        self.client = GitHubClient(sleep=self.sleep)

    @patch("stackweave.pr.github.run_capture")
    def test_pr_state(self, mock_run):
        """Test the state field is parsed into a PRState."""
        mock_run.return_value = completed(stdout=json.dumps({"state": "MERGED"}).encode())
        self.assertEqual(self.client.pr_state(12), PRState.MERGED)
        mock_run.assert_called_once_with(["gh", "pr", "view", "12", "--json", "state"])

    @patch("stackweave.pr.github.warning")
    @patch("stackweave.pr.github.run_capture")
    def test_network_failure_retried(self, mock_run, mock_warning):
        """Test transient failures are retried with doubling delays."""
        mock_run.side_effect = [
            completed(1, stderr=b"dial tcp: connection refused"),
            completed(1, stderr=b"HTTP 502: Bad Gateway"),
            completed(stdout=json.dumps({"state": "OPEN"}).encode()),
        ]
        self.assertEqual(self.client.pr_state(3), PRState.OPEN)
        self.assertEqual(mock_run.call_count, 3)
        self.assertEqual([c.args[0] for c in self.sleep.call_args_list], [1.0, 2.0])

    @patch("stackweave.pr.github.warning")
    @patch("stackweave.pr.github.run_capture")
    def test_network_failure_gives_up(self, mock_run, mock_warning):
        """Test NetworkFailure after the last attempt."""
        mock_run.return_value = completed(1, stderr=b"could not resolve host: api.github.com")
        with self.assertRaises(NetworkFailure):
            self.client.pr_state(3)
        self.assertEqual(mock_run.call_count, 3)
        self.assertEqual(self.sleep.call_count, 2)

    @patch("stackweave.pr.github.run_capture")
    def test_auth_failure_not_retried(self, mock_run):
        """Test rejected credentials fail immediately."""
        mock_run.return_value = completed(1, stderr=b"To get started with GitHub CLI, please run:  gh auth login")
        with self.assertRaises(AuthFailure):
            self.client.pr_state(3)
        self.assertEqual(mock_run.call_count, 1)
        self.sleep.assert_not_called()

    @patch("stackweave.pr.github.run_capture")
    def test_forbidden_is_auth_failure(self, mock_run):
        """Test HTTP 401 and 403 responses are treated as rejected credentials."""
        for stderr in [b"HTTP 401: Bad credentials (https://api.github.com/graphql)",
                       b"HTTP 403: Resource not accessible by integration"]:
            mock_run.reset_mock()
            mock_run.return_value = completed(1, stderr=stderr)
            with self.assertRaises(AuthFailure):
                self.client.pr_state(3)
            self.assertEqual(mock_run.call_count, 1)
        self.sleep.assert_not_called()

    @patch("stackweave.pr.github.run_capture")
    def test_other_failure_dies(self, mock_run):
        """Test unclassified failures are reported as they are."""
        mock_run.return_value = completed(1, stderr=b"no pull requests found")
        with self.assertRaises(ExitException):
            self.client.pr_state(3)
        self.assertEqual(mock_run.call_count, 1)

    @patch("stackweave.pr.github.run_capture")
    def test_create_pr(self, mock_run):
        """Test the PR number is taken from the URL gh prints."""
        mock_run.return_value = completed(stdout=b"Creating pull request\nhttps://github.com/acme/repo/pull/42\n")
        n = self.client.create_pr(BranchName("feat"), BranchName("main"), "Title", "Body", True)
        self.assertEqual(n, 42)
        cmd = mock_run.call_args.args[0]
        self.assertIn("--draft", cmd)
        self.assertEqual(cmd[cmd.index("--base") + 1], "main")

    @patch("stackweave.pr.github.run_capture")
    def test_update_pr_base(self, mock_run):
        """Test retargeting a PR."""
        mock_run.return_value = completed()
        self.client.update_pr_base(5, BranchName("A"))
        mock_run.assert_called_once_with(["gh", "pr", "edit", "5", "--base", "A"])


class TestStackComment(unittest.TestCase):
    """Tests for stack overview helpers."""

    def test_generate_stack_string(self):
        """Test the overview lists PRs top first and marks the current one."""
        entries = [(BranchName("A"), 1), (BranchName("B"), None), (BranchName("C"), 3)]
        result = generate_stack_string(entries, BranchName("main"), BranchName("A"))
        lines = result.split("\n")
        self.assertEqual(lines[0], STACK_COMMENT_START)
        self.assertEqual(lines[2:5], ["* #3", "* #1 👈", "* `main`"])
        self.assertEqual(lines[-1], STACK_COMMENT_END)

    def test_generate_without_prs(self):
        """Test no overview when nothing has a PR."""
        self.assertEqual(generate_stack_string([(BranchName("A"), None)], BranchName("main"), BranchName("A")), "")

    def test_replace_existing_comment(self):
        """Test the previous overview is replaced, the rest of the body kept."""
        old = "\n".join([STACK_COMMENT_START, "old", STACK_COMMENT_END])
        body = "Intro\n\n" + old + "\n\nOutro"
        new = with_stack_comment(body, "NEW")
        self.assertEqual(new, "Intro\n\nNEW\n\nOutro")
        self.assertEqual(extract_stack_comment(new), "")

    def test_append_comment(self):
        """Test the overview is appended to a body without one."""
        self.assertEqual(with_stack_comment("Intro", "NEW"), "Intro\n\nNEW")
        self.assertEqual(with_stack_comment("", "NEW"), "NEW")


if __name__ == "__main__":
    unittest.main()
