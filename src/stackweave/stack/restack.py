"""Cascading rebases of tracked branches onto their parents."""

import dataclasses
from typing import Iterable, List, Optional

from stackweave.stack.graph import StackGraph
from stackweave.stack.store import GraphStore
from stackweave.utils.errors import DirtyWorkingTree, OperationInProgress, RebaseConflict
from stackweave.utils.logging import cout, warning
from stackweave.utils.types import BranchName


@dataclasses.dataclass
class RestackResult:
    """What happened to each branch of a restack run."""
    rebased: List[BranchName] = dataclasses.field(default_factory=list)
    # Already on the parent head; only the recorded head was updated
    recorded: List[BranchName] = dataclasses.field(default_factory=list)
    up_to_date: List[BranchName] = dataclasses.field(default_factory=list)
    orphaned: List[BranchName] = dataclasses.field(default_factory=list)
    # Left in place because an ancestor is orphaned
    blocked: List[BranchName] = dataclasses.field(default_factory=list)


def restack_scope(graph: StackGraph, current: BranchName, *, whole_trunk: bool = False) -> List[BranchName]:
    """Branches a restack from ``current`` should visit.

    The ancestors of ``current``, ``current`` itself and everything above it,
    or every branch of the active trunk with ``whole_trunk``.
    """
    if whole_trunk:
        return graph.descendants(graph.active_trunk())
    graph.check_visible(current)
    names = list(reversed(graph.ancestors(current))) + [current] + graph.descendants(current)
    return [n for n in names if graph.is_tracked(n)]


class RestackEngine:
    def __init__(self, graph: StackGraph, git, store: GraphStore):
        self.graph = graph
        self.git = git
        self.store = store

    def plan(self, names: Iterable[BranchName]) -> List[BranchName]:
        """Order ``names`` so that every parent comes before its children."""
        wanted = set(names)
        order: List[BranchName] = []
        for trunk in self.graph.trunks:
            order.extend(n for n in self.graph.descendants(trunk) if n in wanted)
        return order

    def check_preconditions(self):
        operation = self.git.operation_in_progress()
        if operation is not None:
            raise OperationInProgress(operation)
        if self.git.is_working_tree_dirty():
            raise DirtyWorkingTree()

    def run(self, names: Iterable[BranchName]) -> RestackResult:
        """Rebase each branch onto its parent's head, parents first.

        Progress is saved after every branch, so a conflict leaves the
        already restacked branches recorded.
        """
        self.check_preconditions()
        order = self.plan(names)
        result = RestackResult()
        original: Optional[BranchName] = self.git.current_branch()

        for i, name in enumerate(order):
            b = self.graph.get(name)
            if self.graph.is_orphaned(name):
                warning("Skipping {}, its local branch no longer exists", name)
                result.orphaned.append(name)
                continue
            if b.parent.name in self.graph.orphaned or b.parent.name in result.blocked:
                warning("Skipping {}, its parent {} was not restacked", name, b.parent.name)
                result.blocked.append(name)
                continue

            parent_head = self.git.commit_id(b.parent.name)
            on_parent = self.git.is_ancestor(parent_head, name)
            if on_parent and not self.graph.needs_restack(name, parent_head):
                cout("✓ {} is up to date with {}\n", name, b.parent.name, fg="green")
                result.up_to_date.append(name)
                continue

            if on_parent:
                cout("Recording {} as restacked on top of {}\n", name, b.parent.name, fg="green")
                result.recorded.append(name)
            else:
                cout("Rebasing {} on top of {}\n", name, b.parent.name, fg="green")
                try:
                    self.git.rebase_onto(name, parent_head, upstream=b.recorded_parent_head)
                except RebaseConflict:
                    pending = [n for n in order[i + 1:] if not self.graph.is_orphaned(n)]
                    raise RebaseConflict(name, pending)
                result.rebased.append(name)

            b.recorded_parent_head = parent_head
            b.needs_restack = False
            self.store.save(self.graph.state)

        if original is not None and self.git.current_branch() != original:
            self.git.checkout(original)
        return result
