"""Stack operations shared by commands - loading, staleness, deleting."""

from typing import List, Optional, Set, Tuple

from stackweave.stack.graph import StackGraph
from stackweave.stack.store import GraphStore
from stackweave.stack.trunks import TrunkRegistry
from stackweave.utils.logging import info, warning
from stackweave.utils.types import DEFAULT_TRUNKS, BranchName


def load_graph(git, store: GraphStore) -> StackGraph:
    """Build the graph from the store, checking tracked branches still exist locally."""
    state = store.load()
    existing = git.all_branches()
    graph = StackGraph(state, existing, source=store.path)
    if graph.orphaned:
        warning(
            "Tracked branch(es) missing locally: {}; use `stackweave untrack` to forget them",
            ", ".join(sorted(graph.orphaned)),
        )
    return graph


def bootstrap_trunk(graph: StackGraph, git) -> Optional[BranchName]:
    """Register main/master as trunk when nothing is registered yet."""
    if graph.trunks:
        return None
    candidates = sorted(b for b in git.all_branches() if b in DEFAULT_TRUNKS)
    if len(candidates) != 1:
        return None
    TrunkRegistry(graph).add(candidates[0])
    info("Registered {} as trunk", candidates[0])
    return candidates[0]


def stale_branches(graph: StackGraph, git, names: List[BranchName]) -> Set[BranchName]:
    """The tracked branches among ``names`` that need a restack."""
    stale = set()
    for name in names:
        if not graph.is_tracked(name) or graph.is_orphaned(name):
            continue
        b = graph.get(name)
        if b.parent.name in graph.orphaned:
            stale.add(name)
            continue
        parent_head = git.commit_id(b.parent.name)
        if graph.needs_restack(name, parent_head) or not git.is_ancestor(parent_head, name):
            stale.add(name)
    return stale


def delete_from_graph(graph: StackGraph, name: BranchName) -> Tuple[BranchName, List[BranchName]]:
    """Remove ``name`` and relink its children.

    Returns the former parent and the relinked children.
    """
    parent = graph.get(name).parent.name
    relinked = graph.delete(name)
    for c in relinked:
        info("Relinked {} onto {}, it now needs a restack", c.name, parent)
    return parent, [c.name for c in relinked]


def remove_branch_refs(git, deletions: List[Tuple[BranchName, BranchName]]):
    """Delete local branches, each given with the branch to move to if it is checked out."""
    current = git.current_branch()
    for name, fallback in deletions:
        if not git.branch_exists(name):
            continue
        if name == current:
            info("About to delete current branch, switching to {}", fallback)
            git.checkout(fallback)
            current = fallback
        info("Deleting {}", name)
        git.delete_branch(name)
