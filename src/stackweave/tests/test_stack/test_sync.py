#!/usr/bin/env python3
"""Tests for stackweave.stack.sync module."""

import unittest
from unittest.mock import patch

from stackweave.pr.github import PRState
from stackweave.stack.graph import StackGraph
from stackweave.stack.models import GraphState, ParentRef
from stackweave.stack.sync import SyncEngine
from stackweave.stack.trunks import TrunkRegistry
from stackweave.tests.fakes import FakeGit, FakeGitHub, MemoryStore
from stackweave.utils.errors import NetworkFailure, OperationInProgress
from stackweave.utils.types import BranchName


class TestSyncEngine(unittest.TestCase):
    """Tests for SyncEngine.run.

    The stack is main -> merged -> open, main -> closed and main -> plain.
    """

    def setUp(self):
        self.log = []
        self.git = FakeGit(self.log)
        self.github = FakeGitHub(self.log)
        self.store = MemoryStore(log=self.log)
        self.git.add_branch("main", commits=1)
        self.graph = StackGraph(GraphState())
        TrunkRegistry(self.graph).add(BranchName("main"))

        self.prs = {}
        for name, parent, state in [
            ("merged", "main", PRState.MERGED),
            ("open", "merged", PRState.OPEN),
            ("closed", "main", PRState.CLOSED),
            ("plain", "main", None),
        ]:
            self.git.add_branch(name, parent, commits=1)
            b = self.graph.track(BranchName(name), BranchName(parent), parent_head=self.git.commit_id(parent))
            if state is not None:
                b.pr_number = self.github.add_pr(name, parent, state=state)
                self.prs[name] = b.pr_number
        self.git.current = BranchName("open")
        self.answers = []

    def engine(self, answer=True):
        def confirm(msg):
            self.answers.append(msg)
            return answer
        return SyncEngine(self.graph, self.git, self.github, self.store, remote="origin", confirm=confirm)

    @patch("stackweave.stack.sync.cout")
    def test_merged_branch_deleted_and_children_relinked(self, mock_cout):
        """Test the merged branch goes away and its child moves onto main."""
        result = self.engine().run()

        self.assertEqual(result.deleted, ["merged"])
        self.assertEqual(result.relinked, ["open"])
        self.assertFalse(self.graph.is_tracked(BranchName("merged")))
        self.assertFalse(self.git.branch_exists(BranchName("merged")))
        child = self.graph.get(BranchName("open"))
        self.assertEqual(child.parent, ParentRef.trunk(BranchName("main")))
        self.assertTrue(child.needs_restack)

    @patch("stackweave.stack.sync.cout")
    def test_open_and_closed_never_deleted(self, mock_cout):
        """Test branches with open or closed PRs are kept."""
        with patch("stackweave.stack.sync.warning") as mock_warning:
            result = self.engine().run()
        for name in ["open", "closed", "plain"]:
            self.assertTrue(self.graph.is_tracked(BranchName(name)))
            self.assertTrue(self.git.branch_exists(BranchName(name)))
        self.assertEqual(result.closed, ["closed"])
        self.assertTrue(any("closed" in str(c) for c in mock_warning.call_args_list))

    @patch("stackweave.stack.sync.cout")
    def test_declined_confirmation(self, mock_cout):
        """Test answering no keeps the merged branch and writes nothing."""
        result = self.engine(answer=False).run()
        self.assertEqual(result.kept, ["merged"])
        self.assertEqual(result.deleted, [])
        self.assertTrue(self.graph.is_tracked(BranchName("merged")))
        self.assertEqual(self.store.saves, 0)
        self.assertEqual(self.git.deleted, [])
        self.assertEqual(len(self.answers), 1)

    @patch("stackweave.stack.sync.cout")
    def test_order_of_effects(self, mock_cout):
        """Test fetch, then PR queries, then a single save, then ref deletion."""
        self.engine().run()
        kinds = [entry[0] for entry in self.log]
        self.assertEqual(kinds[0], "fetch")
        first_query = kinds.index("pr_state")
        last_query = len(kinds) - 1 - kinds[::-1].index("pr_state")
        self.assertLess(kinds.index("fetch"), first_query)
        self.assertEqual(kinds.count("save"), 1)
        self.assertLess(last_query, kinds.index("save"))
        self.assertLess(kinds.index("save"), kinds.index("delete_branch"))
        self.assertEqual(kinds.count("pr_state"), 3)

    @patch("stackweave.stack.sync.cout")
    def test_checked_out_branch_moves_to_parent(self, mock_cout):
        """Test deleting the checked out branch checks out its parent first."""
        self.git.current = BranchName("merged")
        self.engine().run()
        self.assertEqual(self.git.current_branch(), "main")
        self.assertLess(self.log.index(("checkout", "main")), self.log.index(("delete_branch", "merged")))

    @patch("stackweave.stack.sync.cout")
    def test_nested_merged_branches(self, mock_cout):
        """Test merging a whole chain relinks the survivor onto the trunk."""
        self.github.prs[self.prs["open"]]["state"] = PRState.MERGED.value
        self.git.add_branch("top", "open", commits=1)
        self.graph.track(BranchName("top"), BranchName("open"), parent_head=self.git.commit_id("open"))

        result = self.engine().run()

        self.assertEqual(result.deleted, ["merged", "open"])
        self.assertEqual(result.relinked, ["top"])
        self.assertEqual(self.graph.get(BranchName("top")).parent, ParentRef.trunk(BranchName("main")))
        self.assertEqual(self.store.saves, 1)

    def test_trunk_fast_forwarded(self):
        """Test the trunk follows its remote-tracking branch when possible."""
        remote_head = self.git.make_commit(self.git.commit_id("main"), "upstream work")
        self.git.remote_refs[("origin", "main")] = remote_head
        self.engine().fetch_trunk()
        self.assertEqual(self.git.commit_id("main"), remote_head)

    @patch("stackweave.stack.sync.warning")
    def test_trunk_diverged(self, mock_warning):
        """Test a diverged trunk is left alone with a warning."""
        local_head = self.git.commit_id("main")
        self.git.remote_refs[("origin", "main")] = self.git.make_commit(None, "unrelated")
        self.engine().fetch_trunk()
        self.assertEqual(self.git.commit_id("main"), local_head)
        mock_warning.assert_called_once()

    @patch("stackweave.stack.sync.cout")
    def test_query_failure_changes_nothing(self, mock_cout):
        """Test a remote failure after some PR queries leaves state and refs untouched."""
        answers = [PRState.MERGED, NetworkFailure("HTTP 502: Bad Gateway")]

        def pr_state(pr_number):
            answer = answers.pop(0)
            if isinstance(answer, NetworkFailure):
                raise answer
            return answer

        with patch.object(self.github, "pr_state", side_effect=pr_state) as mock_state:
            with self.assertRaises(NetworkFailure):
                self.engine().run()
        self.assertEqual(mock_state.call_count, 2)
        self.assertEqual(self.store.saves, 0)
        self.assertEqual(self.git.deleted, [])
        self.assertTrue(self.graph.is_tracked(BranchName("merged")))
        self.assertEqual(self.answers, [])

    def test_operation_in_progress(self):
        """Test sync refuses to run during an interrupted rebase."""
        self.git.operation = "rebase"
        with self.assertRaises(OperationInProgress):
            self.engine().run()
        self.assertEqual(self.log, [])


if __name__ == "__main__":
    unittest.main()
