"""Pushing stacked branches and opening or updating their pull requests."""

import dataclasses
from typing import Dict, List

from stackweave.pr.github import PRInfo, PRState, generate_stack_string, with_stack_comment
from stackweave.stack.graph import StackGraph
from stackweave.stack.operations import stale_branches
from stackweave.stack.store import GraphStore
from stackweave.utils.config import StackweaveConfig
from stackweave.utils.errors import DirtyWorkingTree, NeedsRestack, OperationInProgress, RemoteBaseMissing
from stackweave.utils.logging import cout, die, warning
from stackweave.utils.types import BranchName


@dataclasses.dataclass
class SubmitResult:
    created: Dict[BranchName, int] = dataclasses.field(default_factory=dict)
    pushed: List[BranchName] = dataclasses.field(default_factory=list)
    rebased_prs: List[BranchName] = dataclasses.field(default_factory=list)
    skipped: List[BranchName] = dataclasses.field(default_factory=list)


class SubmitFlow:
    def __init__(
        self,
        graph: StackGraph,
        git,
        github,
        store: GraphStore,
        config: StackweaveConfig,
        prompter,
    ):
        self.graph = graph
        self.git = git
        self.github = github
        self.store = store
        self.config = config
        self.prompter = prompter

    @property
    def remote(self) -> str:
        return self.config.remote_name

    def preflight(self, names: List[BranchName]):
        operation = self.git.operation_in_progress()
        if operation is not None:
            raise OperationInProgress(operation)
        if self.git.is_working_tree_dirty():
            raise DirtyWorkingTree()
        for name in names:
            if self.graph.is_orphaned(name):
                die("Branch {} no longer exists locally, untrack it first", name)
        stale = stale_branches(self.graph, self.git, names)
        for name in names:
            if name in stale:
                raise NeedsRestack(name)

    def run(self, names: List[BranchName], *, force: bool = False) -> SubmitResult:
        """Submit ``names`` (tracked branches, parents first)."""
        names = [n for n in names if self.graph.is_tracked(n)]
        self.preflight(names)
        result = SubmitResult()

        infos: Dict[BranchName, PRInfo] = {}
        for name in names:
            pr_number = self.graph.get(name).pr_number
            if pr_number is None:
                continue
            info = self.github.pr_info(pr_number)
            if info["state"] != PRState.OPEN.value:
                warning(
                    "PR #{} for {} is {}, skipping it; run `stackweave sync` to clean up",
                    pr_number, name, info["state"].lower(),
                )
                result.skipped.append(name)
                continue
            infos[name] = info

        for name in names:
            if name in result.skipped:
                continue
            if name in infos:
                self._update(name, infos[name], result, force=force)
            else:
                self._create(name, result, force=force)

        if self.config.enable_stack_comment:
            self.update_stack_comments([n for n in names if n not in result.skipped])
        return result

    def _push(self, name: BranchName, result: SubmitResult, *, force: bool):
        cout("Pushing {} to {}\n", name, self.remote, fg="green")
        self.git.push(name, self.remote, force=force or self.config.use_force_push)
        result.pushed.append(name)

    def _update(self, name: BranchName, info: PRInfo, result: SubmitResult, *, force: bool):
        parent = self.graph.get(name).parent.name
        if info["baseRefName"] != parent:
            cout("Changing base of PR #{} for {} from {} to {}\n", info["number"], name, info["baseRefName"], parent)
            self.github.update_pr_base(info["number"], parent)
            result.rebased_prs.append(name)
        if info["headRefOid"] == self.git.commit_id(name):
            cout("✓ {} is up to date with the remote\n", name, fg="green")
            return
        self._push(name, result, force=force)

    def _create(self, name: BranchName, result: SubmitResult, *, force: bool):
        b = self.graph.get(name)
        parent = b.parent.name
        if not self.git.remote_branch_exists(self.remote, parent):
            raise RemoteBaseMissing(parent, self.remote)
        self._push(name, result, force=force)

        commits = self.git.commit_messages_between(parent, name)
        default_title = commits[0] if len(commits) == 1 else name
        title = self.prompter.title(name, parent, default_title)
        body = self.prompter.body({
            "title": title,
            "branch": name,
            "parent": parent,
            "commits": commits,
            "diff": self.git.diff_between(parent, name),
        })
        draft = self.prompter.draft(self.config.draft_by_default)
        b.pr_number = self.github.create_pr(name, parent, title, body, draft)
        self.store.save(self.graph.state)
        result.created[name] = b.pr_number
        cout("Opened PR #{} for {} onto {}\n", b.pr_number, name, parent, fg="green")

    def update_stack_comments(self, names: List[BranchName]):
        """Add or refresh the stack overview in every open PR of the stack."""
        if not names:
            return
        trunk = self.graph.get(names[0]).trunk
        entries = [(n, self.graph.get(n).pr_number) for n in names]
        for name, pr_number in entries:
            if pr_number is None:
                continue
            info = self.github.pr_info(pr_number)
            if info["state"] != PRState.OPEN.value:
                continue
            body = info.get("body") or ""
            new_body = with_stack_comment(body, generate_stack_string(entries, trunk, name))
            if new_body != body:
                cout("Updating stack overview in PR #{}\n", pr_number, fg="yellow")
                self.github.update_pr_body(pr_number, new_body)
