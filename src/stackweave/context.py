"""Per-invocation state shared by all commands."""

import dataclasses
import os
from typing import Optional

from stackweave.git.repository import GitRepository
from stackweave.pr.github import GitHubClient
from stackweave.stack.graph import StackGraph
from stackweave.stack.operations import bootstrap_trunk, load_graph
from stackweave.stack.store import GraphStore
from stackweave.utils.config import StackweaveConfig
from stackweave.utils.errors import OperationInProgress
from stackweave.utils.logging import die, warning
from stackweave.utils.types import STORE_FILE_NAME, BranchName


@dataclasses.dataclass
class StackContext:
    """Everything a command needs, built once at startup and dropped at exit."""
    config: StackweaveConfig
    git: GitRepository
    github: GitHubClient
    store: GraphStore
    graph: StackGraph

    def save(self):
        self.store.save(self.graph.state)

    def current_branch(self) -> BranchName:
        current = self.git.current_branch()
        if current is None:
            die("HEAD is detached, check out a branch first")
        return current

    def resolve(self, name: Optional[str]) -> BranchName:
        """Branch named on the command line, defaulting to the checked-out one."""
        return BranchName(name) if name else self.current_branch()

    def guard(self, *, read_only: bool = False):
        """Refuse to run on top of an interrupted rebase/merge/cherry-pick."""
        operation = self.git.operation_in_progress()
        if operation is None:
            return
        if read_only:
            warning("A git {} is in progress", operation)
            return
        raise OperationInProgress(operation)


def load_context(config: StackweaveConfig, git: Optional[GitRepository] = None) -> StackContext:
    git = git or GitRepository()
    store = GraphStore(os.path.join(git.git_dir(), STORE_FILE_NAME))
    graph = load_graph(git, store)
    ctx = StackContext(config=config, git=git, github=GitHubClient(), store=store, graph=graph)
    if bootstrap_trunk(graph, git) is not None:
        ctx.save()
    return ctx
