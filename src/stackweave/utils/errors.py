"""Failure kinds surfaced by stackweave operations.

Every error is an ``ExitException`` so the CLI reports it and exits non-zero.
Each message names the branch (or trunk, or file) that the failure is about.
"""

from typing import List, Optional, Sequence

from stackweave.utils.logging import ExitException
from stackweave.utils.types import BranchName


class StackError(ExitException):
    """Base class for all stackweave failure kinds."""


class DirtyWorkingTree(StackError):
    def __init__(self):
        super().__init__("Working tree is dirty, commit or stash your changes first")


class RebaseConflict(StackError):
    """A rebase stopped on conflicts; ``pending`` are the branches not yet restacked."""

    def __init__(self, branch: BranchName, pending: Optional[Sequence[BranchName]] = None):
        self.branch = branch
        self.pending: List[BranchName] = list(pending or [])
        msg = "Rebase of {} stopped on conflicts. Resolve them and run `git rebase --continue` " \
              "(or `git rebase --abort`), then run `stackweave restack` again"
        if self.pending:
            msg += ". Still pending restack: {}".format(", ".join(self.pending))
        super().__init__("{}", msg.format(branch))


class OperationInProgress(StackError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            "A git {0} is in progress, finish it (`git {0} --continue`) or abort it (`git {0} --abort`) first",
            operation,
        )


class BranchNotTracked(StackError):
    def __init__(self, branch: BranchName):
        self.branch = branch
        super().__init__("Branch {} is not tracked", branch)


class BranchAlreadyTracked(StackError):
    def __init__(self, branch: BranchName, detail: str = "is already tracked"):
        self.branch = branch
        super().__init__("Branch {} {}", branch, detail)


class CycleDetected(StackError):
    def __init__(self, branch: BranchName, parent: BranchName):
        self.branch = branch
        self.parent = parent
        super().__init__(
            "Cannot stack {} on {}: {} is already below {} in the stack",
            branch, parent, branch, parent,
        )


class DuplicateTrunk(StackError):
    def __init__(self, name: BranchName):
        self.name = name
        super().__init__("Trunk {} is already registered", name)


class TrunkInUse(StackError):
    def __init__(self, name: BranchName, reason: str):
        self.name = name
        super().__init__("Cannot remove trunk {}: {}", name, reason)


class UnknownTrunk(StackError):
    def __init__(self, name: BranchName):
        self.name = name
        super().__init__("Trunk {} is not registered, see `stackweave trunk list`", name)


class RemoteBaseMissing(StackError):
    def __init__(self, branch: BranchName, remote: str = "origin"):
        self.branch = branch
        super().__init__(
            "Base branch {} does not exist on remote {}, push it first: `git push {} {}`",
            branch, remote, remote, branch,
        )


class NeedsRestack(StackError):
    def __init__(self, branch: BranchName):
        self.branch = branch
        super().__init__("Branch {} needs a restack, run `stackweave restack` first", branch)


class CorruptState(StackError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__("Stack state {} is unreadable: {}", path, reason)


class IOFailure(StackError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__("Could not write {}: {}", path, reason)


class NetworkFailure(StackError):
    def __init__(self, detail: str):
        super().__init__("Remote call failed: {}", detail)


class AuthFailure(StackError):
    def __init__(self, detail: str):
        super().__init__("Remote rejected credentials, run `gh auth login`: {}", detail)
