"""In-memory branch forest built from the persisted state."""

from typing import Dict, Iterable, List, Optional, Set

from stackweave.stack.models import GraphState, ParentRef, TrackedBranch, TrunkBranch
from stackweave.utils.errors import BranchAlreadyTracked, BranchNotTracked, CorruptState, CycleDetected
from stackweave.utils.logging import die
from stackweave.utils.types import BranchName, Commit


class StackGraph:
    """Forest of tracked branches rooted at trunks.

    The graph wraps a ``GraphState`` and mutates it in place, so saving
    ``graph.state`` persists every change made through the graph. Invariants
    (acyclic, one parent each, parents exist, trunk consistency) are checked
    when the graph is built and before every mutation.
    """

    def __init__(
        self,
        state: GraphState,
        existing_branches: Optional[Iterable[BranchName]] = None,
        *,
        source: str = "<memory>",
    ):
        self.state = state
        self.source = source
        self.trunks: Dict[BranchName, TrunkBranch] = {}
        self.branches: Dict[BranchName, TrackedBranch] = {}
        for t in state.trunks:
            if t.name in self.trunks:
                raise CorruptState(source, f"trunk {t.name} is listed twice")
            self.trunks[t.name] = t
        for b in state.branches:
            if b.name in self.branches or b.name in self.trunks:
                raise CorruptState(source, f"branch {b.name} is listed twice")
            self.branches[b.name] = b
        self._validate()

        self.orphaned: Set[BranchName] = set()
        if existing_branches is not None:
            existing = set(existing_branches)
            self.orphaned = {name for name in self.branches if name not in existing}

    def _validate(self):
        active = [t.name for t in self.state.trunks if t.is_active]
        if self.trunks and len(active) != 1:
            raise CorruptState(self.source, f"expected exactly one active trunk, found {len(active)}")
        for b in self.state.branches:
            if b.trunk not in self.trunks:
                raise CorruptState(self.source, f"branch {b.name} belongs to unknown trunk {b.trunk}")
            if b.parent.is_trunk:
                if b.parent.name not in self.trunks:
                    raise CorruptState(self.source, f"parent {b.parent} of {b.name} does not exist")
                parent_trunk = b.parent.name
            else:
                if b.parent.name not in self.branches:
                    raise CorruptState(self.source, f"parent {b.parent} of {b.name} does not exist")
                parent_trunk = self.branches[b.parent.name].trunk
            if parent_trunk != b.trunk:
                raise CorruptState(self.source, f"branch {b.name} and its parent are on different trunks")
        for name in self.branches:
            seen = {name}
            p = self.branches[name].parent
            while not p.is_trunk:
                if p.name in seen:
                    raise CorruptState(self.source, f"branch {name} is its own ancestor")
                seen.add(p.name)
                p = self.branches[p.name].parent

    # Queries

    def active_trunk(self) -> BranchName:
        t = self.state.active_trunk()
        if t is None:
            die("No trunk registered, run `stackweave trunk add <branch>`")
        return t.name

    def is_trunk(self, name: BranchName) -> bool:
        return name in self.trunks

    def is_tracked(self, name: BranchName) -> bool:
        return name in self.branches

    def is_orphaned(self, name: BranchName) -> bool:
        return name in self.orphaned

    def get(self, name: BranchName) -> TrackedBranch:
        if name not in self.branches:
            raise BranchNotTracked(name)
        return self.branches[name]

    def parent_ref_for(self, name: BranchName) -> ParentRef:
        """Reference to ``name`` for use as someone's parent."""
        if self.is_trunk(name):
            return ParentRef.trunk(name)
        if self.is_tracked(name):
            return ParentRef.branch(name)
        raise BranchNotTracked(name)

    def trunk_of(self, name: BranchName) -> BranchName:
        if self.is_trunk(name):
            return name
        return self.get(name).trunk

    def children(self, name: BranchName) -> List[TrackedBranch]:
        """Direct children of a trunk or tracked branch, in creation order."""
        return [b for b in self.state.branches if b.parent.name == name]

    def branches_in_trunk(self, trunk: BranchName) -> List[TrackedBranch]:
        return [b for b in self.state.branches if b.trunk == trunk]

    def ancestors(self, name: BranchName) -> List[BranchName]:
        """Parent, grandparent, ... up to and including the trunk."""
        if self.is_trunk(name):
            return []
        result: List[BranchName] = []
        p = self.get(name).parent
        while not p.is_trunk:
            result.append(p.name)
            p = self.branches[p.name].parent
        result.append(p.name)
        return result

    def descendants(self, name: BranchName) -> List[BranchName]:
        """All transitive children, parents always listed before their children."""
        if not (self.is_trunk(name) or self.is_tracked(name)):
            raise BranchNotTracked(name)
        result: List[BranchName] = []
        todo = [c.name for c in reversed(self.children(name))]
        while todo:
            n = todo.pop()
            result.append(n)
            todo.extend(c.name for c in reversed(self.children(n)))
        return result

    def check_visible(self, name: BranchName):
        """Die unless ``name`` belongs to the active trunk."""
        trunk = self.trunk_of(name)
        if trunk != self.active_trunk():
            die("Branch {} belongs to trunk {}, switch with `stackweave trunk switch {}`", name, trunk, trunk)

    def current_stack(self, current: BranchName) -> List[BranchName]:
        """Trunk down to ``current``, then up along the single-child chain above it.

        Siblings are left out; the chain stops where a branch forks.
        Only branches of the active trunk have a current stack.
        """
        self.check_visible(current)
        stack = list(reversed(self.ancestors(current))) + [current]
        b = current
        while True:
            kids = self.children(b)
            if len(kids) != 1:
                break
            b = kids[0].name
            stack.append(b)
        return stack

    def would_create_cycle(self, candidate_parent: BranchName, candidate_branch: BranchName) -> bool:
        if candidate_parent == candidate_branch:
            return True
        if self.is_trunk(candidate_parent) or not self.is_tracked(candidate_parent):
            return False
        return candidate_branch in self.ancestors(candidate_parent)

    def needs_restack(self, name: BranchName, parent_head: Commit) -> bool:
        b = self.get(name)
        return b.needs_restack or b.recorded_parent_head != parent_head

    # Mutations

    def track(
        self,
        name: BranchName,
        parent: BranchName,
        *,
        parent_head: Optional[Commit] = None,
        pr_number: Optional[int] = None,
    ) -> TrackedBranch:
        """Start tracking ``name`` on top of ``parent`` (a trunk or tracked branch)."""
        parent_ref = self.parent_ref_for(parent)
        if self.would_create_cycle(parent, name):
            raise CycleDetected(name, parent)
        if self.is_trunk(name):
            raise BranchAlreadyTracked(name, "is a trunk")
        if self.is_tracked(name):
            raise BranchAlreadyTracked(name)
        b = TrackedBranch(
            name=name,
            parent=parent_ref,
            trunk=self.trunk_of(parent),
            pr_number=pr_number,
            recorded_parent_head=parent_head,
        )
        self.state.branches.append(b)
        self.branches[name] = b
        return b

    def _relink(self, child: TrackedBranch, new_parent: ParentRef):
        if self.would_create_cycle(new_parent.name, child.name):
            raise CycleDetected(child.name, new_parent.name)
        if self.trunk_of(new_parent.name) != child.trunk:
            die("Cannot move {} from trunk {} to trunk {}", child.name, child.trunk, self.trunk_of(new_parent.name))
        child.parent = new_parent
        child.needs_restack = True

    def untrack(self, name: BranchName) -> List[TrackedBranch]:
        """Forget ``name``; its children move onto its parent and become stale.

        Returns the relinked children.
        """
        b = self.get(name)
        kids = self.children(name)
        for c in kids:
            self._relink(c, b.parent)
        self.state.branches.remove(b)
        del self.branches[name]
        self.orphaned.discard(name)
        return kids

    def delete(self, name: BranchName) -> List[TrackedBranch]:
        """Metadata half of deleting a branch; the caller removes the ref."""
        return self.untrack(name)
