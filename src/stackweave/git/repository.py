"""Git operations for stackweave, grouped behind one adapter object."""

import os
from typing import List, Optional

from stackweave.utils.errors import RebaseConflict
from stackweave.utils.logging import die, info
from stackweave.utils.shell import remove_prefix, run, run_always_return, run_multiline
from stackweave.utils.types import BranchName, CmdArgs, Commit, PathName

# Marker files inside the git directory, by operation name
_IN_PROGRESS_MARKERS = [
    ("rebase", "rebase-merge"),
    ("rebase", "rebase-apply"),
    ("merge", "MERGE_HEAD"),
    ("cherry-pick", "CHERRY_PICK_HEAD"),
    ("revert", "REVERT_HEAD"),
]


def branch_name_completer(prefix, parsed_args, **kwargs):
    """Argcomplete completer function for branch names."""
    try:
        branches = GitRepository().all_branches()
        return [branch for branch in branches if branch.startswith(prefix)]
    except Exception:
        return []


class GitRepository:
    """The version-control adapter: every git invocation goes through here."""

    def __init__(self):
        self._git_dir: Optional[PathName] = None

    def git_dir(self) -> PathName:
        if self._git_dir is None:
            self._git_dir = PathName(run_always_return(CmdArgs(["git", "rev-parse", "--absolute-git-dir"])))
        return self._git_dir

    def top_level_dir(self) -> Optional[PathName]:
        p = run(CmdArgs(["git", "rev-parse", "--show-toplevel"]), check=False)
        return PathName(p) if p else None

    def current_branch(self) -> Optional[BranchName]:
        """Get the checked-out branch, None on a detached HEAD."""
        s = run(CmdArgs(["git", "symbolic-ref", "-q", "HEAD"]), check=False)
        if s:
            return BranchName(remove_prefix(s, "refs/heads/"))
        return None

    def all_branches(self) -> List[BranchName]:
        branches = run_multiline(CmdArgs(["git", "for-each-ref", "--format", "%(refname:short)", "refs/heads"]))
        assert branches is not None
        return [BranchName(b) for b in branches.split("\n") if b]

    def branch_exists(self, name: BranchName) -> bool:
        return run(CmdArgs(["git", "show-ref", "--verify", "--quiet", f"refs/heads/{name}"]), check=False) is not None

    def commit_id(self, ref: str) -> Commit:
        """Resolve a branch name (or any ref) to a commit id."""
        c = run(CmdArgs(["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"]), check=False)
        if not c:
            die("Cannot resolve {} to a commit", ref)
        return Commit(c)

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return run(CmdArgs(["git", "merge-base", "--is-ancestor", ancestor, descendant]), check=False) is not None

    def merge_base(self, a: str, b: str) -> Optional[Commit]:
        c = run(CmdArgs(["git", "merge-base", a, b]), check=False)
        return Commit(c) if c else None

    def create_branch(self, name: BranchName, from_ref: str):
        run(CmdArgs(["git", "branch", name, from_ref]))

    def checkout(self, name: BranchName):
        info("Checking out branch {}", name)
        run(CmdArgs(["git", "checkout", name]), out=True)

    def delete_branch(self, name: BranchName):
        run(CmdArgs(["git", "branch", "-D", name]))

    def commit(self, message: str, *, add_all: bool = False):
        cmd = ["git", "commit"]
        if add_all:
            cmd += ["-a"]
        cmd += ["-m", message]
        run(CmdArgs(cmd), out=True)

    def rebase_onto(self, branch: BranchName, new_base: Commit, *, upstream: Optional[str] = None):
        """Move the commits of ``branch`` after ``upstream`` onto ``new_base``.

        Raises RebaseConflict when git stops with the rebase in progress.
        """
        if upstream is None:
            upstream = self.merge_base(new_base, branch)
            if upstream is None:
                die("Branch {} shares no history with {}", branch, new_base)
        r = run(CmdArgs(["git", "rebase", "--onto", new_base, upstream, branch]), out=True, check=False)
        if r is None:
            if self.rebase_in_progress():
                raise RebaseConflict(branch)
            die("Rebase of {} onto {} failed", branch, new_base)

    def operation_in_progress(self) -> Optional[str]:
        """Name of the interrupted git operation in the working tree, if any."""
        git_dir = self.git_dir()
        for name, marker in _IN_PROGRESS_MARKERS:
            if os.path.exists(os.path.join(git_dir, marker)):
                return name
        return None

    def rebase_in_progress(self) -> bool:
        return self.operation_in_progress() == "rebase"

    def is_working_tree_dirty(self) -> bool:
        out = run(CmdArgs(["git", "status", "--porcelain", "--untracked-files=no"]))
        return bool(out)

    def fetch(self, remote: str, branch: Optional[BranchName] = None):
        cmd = ["git", "fetch", remote]
        if branch is not None:
            cmd.append(branch)
        run(CmdArgs(cmd), out=True)

    def remote_commit(self, remote: str, branch: BranchName) -> Optional[Commit]:
        """Commit of the remote-tracking ref for ``branch``, None when absent."""
        c = run(CmdArgs(["git", "rev-parse", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}"]), check=False)
        return Commit(c) if c else None

    def remote_branch_exists(self, remote: str, branch: BranchName) -> bool:
        return self.remote_commit(remote, branch) is not None

    def fast_forward(self, branch: BranchName, remote: str) -> bool:
        """Move local ``branch`` to its remote-tracking ref when that is a fast-forward."""
        remote_commit = self.remote_commit(remote, branch)
        if remote_commit is None:
            return False
        local_commit = self.commit_id(branch)
        if local_commit == remote_commit:
            return True
        if not self.is_ancestor(local_commit, remote_commit):
            return False
        if self.current_branch() == branch:
            run(CmdArgs(["git", "merge", "--ff-only", f"{remote}/{branch}"]), out=True)
        else:
            run(CmdArgs(["git", "update-ref", f"refs/heads/{branch}", remote_commit, local_commit]))
        return True

    def push(self, branch: BranchName, remote: str, *, force: bool = False):
        cmd = ["git", "push"]
        if force:
            cmd.append("-f")
        cmd.extend([remote, "{}:{}".format(branch, branch)])
        run(CmdArgs(cmd), out=True)

    def commit_messages_between(self, base: str, branch: str) -> List[str]:
        out = run_multiline(CmdArgs(["git", "log", "--pretty=format:%s", f"{base}..{branch}"]))
        assert out is not None
        return [line for line in out.split("\n") if line]

    def diff_between(self, base: str, branch: str) -> str:
        out = run_multiline(CmdArgs(["git", "diff", f"{base}...{branch}"]))
        return out or ""
