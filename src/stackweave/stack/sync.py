"""Reconciling tracked branches with the state of their pull requests."""

import dataclasses
from typing import Callable, Dict, List, Tuple

from stackweave.pr.github import PRState
from stackweave.stack.graph import StackGraph
from stackweave.stack.operations import delete_from_graph, remove_branch_refs
from stackweave.stack.store import GraphStore
from stackweave.utils.errors import OperationInProgress
from stackweave.utils.logging import cout, info, warning
from stackweave.utils.types import BranchName


@dataclasses.dataclass
class SyncResult:
    deleted: List[BranchName] = dataclasses.field(default_factory=list)
    # Merged, but the user chose to keep them
    kept: List[BranchName] = dataclasses.field(default_factory=list)
    closed: List[BranchName] = dataclasses.field(default_factory=list)
    relinked: List[BranchName] = dataclasses.field(default_factory=list)


class SyncEngine:
    """Fetches the trunk, then deletes branches whose PRs were merged.

    The order is fixed: fetch, then every PR state query, then the graph
    changes, saved once, then the local refs are removed.
    """

    def __init__(
        self,
        graph: StackGraph,
        git,
        github,
        store: GraphStore,
        *,
        remote: str = "origin",
        confirm: Callable[[str], bool],
    ):
        self.graph = graph
        self.git = git
        self.github = github
        self.store = store
        self.remote = remote
        self.confirm = confirm

    def fetch_trunk(self):
        trunk = self.graph.active_trunk()
        info("Fetching {} from {}", trunk, self.remote)
        self.git.fetch(self.remote, trunk)
        if not self.git.fast_forward(trunk, self.remote):
            warning("Local {} cannot be fast-forwarded to {}/{}, leaving it alone", trunk, self.remote, trunk)

    def query_states(self) -> Dict[BranchName, PRState]:
        states: Dict[BranchName, PRState] = {}
        for trunk in self.graph.trunks:
            for name in self.graph.descendants(trunk):
                pr_number = self.graph.get(name).pr_number
                if pr_number is not None:
                    states[name] = self.github.pr_state(pr_number)
        return states

    def run(self) -> SyncResult:
        operation = self.git.operation_in_progress()
        if operation is not None:
            raise OperationInProgress(operation)

        self.fetch_trunk()
        states = self.query_states()

        result = SyncResult()
        deletions: List[Tuple[BranchName, BranchName]] = []
        for name, state in states.items():
            pr_number = self.graph.get(name).pr_number
            if state == PRState.CLOSED:
                warning("PR #{} for {} was closed without merging, leaving the branch alone", pr_number, name)
                result.closed.append(name)
                continue
            if state != PRState.MERGED:
                continue
            parent = self.graph.get(name).parent.name
            children = [c.name for c in self.graph.children(name)]
            cout("- PR #{} for {} was merged into {}\n", pr_number, name, parent)
            for c in children:
                cout("  - {} will be moved onto {}\n", c, parent)
            if not self.confirm("Delete branch {}?".format(name)):
                result.kept.append(name)
                continue
            parent, relinked = delete_from_graph(self.graph, name)
            deletions.append((name, parent))
            result.deleted.append(name)
            result.relinked.extend(relinked)

        if not deletions:
            return result

        self.store.save(self.graph.state)
        # Branches deleted later in the pass may have been relink targets
        result.relinked = [n for n in result.relinked if self.graph.is_tracked(n)]
        remove_branch_refs(self.git, deletions)
        return result
