"""Stack data models for stackweave."""

import dataclasses
from typing import List, Optional

from stackweave.utils.types import BranchName, Commit

PARENT_TRUNK = "trunk"
PARENT_BRANCH = "branch"


@dataclasses.dataclass(frozen=True)
class ParentRef:
    """Parent of a tracked branch: either a trunk or another tracked branch."""
    kind: str
    name: BranchName

    @classmethod
    def trunk(cls, name: BranchName) -> "ParentRef":
        return cls(PARENT_TRUNK, name)

    @classmethod
    def branch(cls, name: BranchName) -> "ParentRef":
        return cls(PARENT_BRANCH, name)

    @property
    def is_trunk(self) -> bool:
        return self.kind == PARENT_TRUNK

    def __str__(self):
        return f"{self.kind}:{self.name}"


@dataclasses.dataclass
class TrunkBranch:
    """A registered base branch, root of one stack namespace."""
    name: BranchName
    is_active: bool = False


@dataclasses.dataclass
class TrackedBranch:
    """A local branch managed by stackweave."""
    name: BranchName
    parent: ParentRef
    trunk: BranchName
    pr_number: Optional[int] = None
    # Parent head this branch was last rebased onto
    recorded_parent_head: Optional[Commit] = None
    # Set when the parent changed under the branch (relink)
    needs_restack: bool = False


@dataclasses.dataclass
class GraphState:
    """Everything persisted by the graph store."""
    trunks: List[TrunkBranch] = dataclasses.field(default_factory=list)
    # Creation order
    branches: List[TrackedBranch] = dataclasses.field(default_factory=list)

    def active_trunk(self) -> Optional[TrunkBranch]:
        for t in self.trunks:
            if t.is_active:
                return t
        return None
