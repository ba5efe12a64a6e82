"""Stackweave - stacked branches and their GitHub pull requests."""

from .main import main

from .utils.logging import die, cout, debug, info, warning, error, fmt, ExitException
from .utils.types import BranchName, Commit, CmdArgs
from .utils.config import StackweaveConfig, read_config
from .utils.errors import (
    StackError, DirtyWorkingTree, RebaseConflict, OperationInProgress,
    BranchNotTracked, BranchAlreadyTracked, CycleDetected, DuplicateTrunk,
    TrunkInUse, UnknownTrunk, RemoteBaseMissing, NeedsRestack, CorruptState,
    IOFailure, NetworkFailure, AuthFailure
)

from .git.repository import GitRepository
from .pr.github import GitHubClient, PRState

from .stack.models import ParentRef, TrunkBranch, TrackedBranch, GraphState
from .stack.store import GraphStore
from .stack.graph import StackGraph
from .stack.trunks import TrunkRegistry
from .stack.tree import render_tree
from .stack.restack import RestackEngine, RestackResult, restack_scope
from .stack.sync import SyncEngine, SyncResult
from .stack.submit import SubmitFlow, SubmitResult


def runner():
    main()
