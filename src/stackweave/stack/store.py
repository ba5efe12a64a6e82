"""Durable storage of the branch graph."""

import json
import os
from typing import Any, Dict

from stackweave.stack.models import PARENT_BRANCH, PARENT_TRUNK, GraphState, ParentRef, TrackedBranch, TrunkBranch
from stackweave.utils.errors import CorruptState, IOFailure
from stackweave.utils.logging import debug
from stackweave.utils.types import STORE_VERSION, BranchName, Commit


def state_to_json(state: GraphState) -> Dict[str, Any]:
    """Flatten a GraphState into plain JSON types."""
    return {
        "version": STORE_VERSION,
        "trunks": [{"name": t.name, "active": t.is_active} for t in state.trunks],
        "branches": [
            {
                "name": b.name,
                "trunk": b.trunk,
                "parent": {"kind": b.parent.kind, "name": b.parent.name},
                "pr_number": b.pr_number,
                "recorded_parent_head": b.recorded_parent_head,
                "needs_restack": b.needs_restack,
            }
            for b in state.branches
        ],
    }


def _expect(value, kind, what: str):
    if not isinstance(value, kind) or isinstance(value, bool) and kind is not bool:
        raise ValueError(f"{what} has unexpected type {type(value).__name__}")
    return value


def state_from_json(data: Any) -> GraphState:
    """Rebuild a GraphState, raising ValueError on any schema problem."""
    _expect(data, dict, "state")
    if data.get("version") != STORE_VERSION:
        raise ValueError("unsupported version {!r}".format(data.get("version")))
    state = GraphState()
    for raw in _expect(data.get("trunks"), list, "trunks"):
        _expect(raw, dict, "trunk record")
        state.trunks.append(TrunkBranch(
            name=BranchName(_expect(raw.get("name"), str, "trunk name")),
            is_active=_expect(raw.get("active", False), bool, "trunk active flag"),
        ))
    for raw in _expect(data.get("branches"), list, "branches"):
        _expect(raw, dict, "branch record")
        name = _expect(raw.get("name"), str, "branch name")
        parent = _expect(raw.get("parent"), dict, f"parent of {name}")
        kind = parent.get("kind")
        if kind not in (PARENT_TRUNK, PARENT_BRANCH):
            raise ValueError(f"parent of {name} has unknown kind {kind!r}")
        pr_number = raw.get("pr_number")
        if pr_number is not None:
            _expect(pr_number, int, f"pr_number of {name}")
        head = raw.get("recorded_parent_head")
        if head is not None:
            _expect(head, str, f"recorded_parent_head of {name}")
        state.branches.append(TrackedBranch(
            name=BranchName(name),
            parent=ParentRef(kind, BranchName(_expect(parent.get("name"), str, f"parent name of {name}"))),
            trunk=BranchName(_expect(raw.get("trunk"), str, f"trunk of {name}")),
            pr_number=pr_number,
            recorded_parent_head=Commit(head) if head is not None else None,
            needs_restack=_expect(raw.get("needs_restack", False), bool, f"needs_restack of {name}"),
        ))
    return state


class GraphStore:
    """Loads and atomically replaces the JSON state file."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> GraphState:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            debug("No state at {}, starting empty", self.path)
            return GraphState()
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptState(self.path, str(e))
        try:
            return state_from_json(data)
        except ValueError as e:
            raise CorruptState(self.path, str(e))

    def save(self, state: GraphState):
        tmp_path = self.path + ".tmp"
        try:
            with open(tmp_path, "w") as f:
                json.dump(state_to_json(state), f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise IOFailure(self.path, str(e))
        debug("Saved {} branch(es) to {}", len(state.branches), self.path)
