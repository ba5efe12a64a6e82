"""Registry of trunk branches and the active one."""

from typing import List

from stackweave.stack.graph import StackGraph
from stackweave.stack.models import TrunkBranch
from stackweave.utils.errors import BranchAlreadyTracked, DuplicateTrunk, TrunkInUse, UnknownTrunk
from stackweave.utils.types import BranchName


class TrunkRegistry:
    """Adds, removes and activates trunks of a StackGraph."""

    def __init__(self, graph: StackGraph):
        self.graph = graph

    def list(self) -> List[TrunkBranch]:
        return list(self.graph.state.trunks)

    def add(self, name: BranchName) -> TrunkBranch:
        """Register ``name``; the first trunk registered becomes active."""
        if self.graph.is_trunk(name):
            raise DuplicateTrunk(name)
        if self.graph.is_tracked(name):
            raise BranchAlreadyTracked(name, "is tracked and cannot become a trunk")
        t = TrunkBranch(name=name, is_active=not self.graph.trunks)
        self.graph.state.trunks.append(t)
        self.graph.trunks[name] = t
        return t

    def check_removable(self, name: BranchName):
        """Raise unless ``name`` could be removed right now."""
        if not self.graph.is_trunk(name):
            raise UnknownTrunk(name)
        users = self.graph.branches_in_trunk(name)
        if users:
            raise TrunkInUse(name, "still has tracked branches: {}".format(", ".join(b.name for b in users)))
        t = self.graph.trunks[name]
        if t.is_active:
            raise TrunkInUse(name, "it is the active trunk, switch to another trunk first")

    def remove(self, name: BranchName) -> TrunkBranch:
        self.check_removable(name)
        t = self.graph.trunks[name]
        self.graph.state.trunks.remove(t)
        del self.graph.trunks[name]
        return t

    def activate(self, name: BranchName) -> TrunkBranch:
        if not self.graph.is_trunk(name):
            raise UnknownTrunk(name)
        for t in self.graph.state.trunks:
            t.is_active = t.name == name
        return self.graph.trunks[name]
