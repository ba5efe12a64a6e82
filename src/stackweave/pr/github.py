"""GitHub PR operations for stackweave, through the `gh` CLI."""

import enum
import json
import re
import shlex
import time
from typing import List, Optional, Tuple, TypedDict

from stackweave.utils.errors import AuthFailure, NetworkFailure
from stackweave.utils.logging import die, warning
from stackweave.utils.shell import run_capture
from stackweave.utils.types import BranchName, CmdArgs

STACK_COMMENT_START = "<!-- stackweave stack -->"
STACK_COMMENT_END = "<!-- end stackweave stack -->"

_AUTH_PATTERNS = [
    r"gh auth login",
    r"HTTP 401",
    r"HTTP 403",
    r"Bad credentials",
    r"authentication (failed|required)",
    r"not logged in",
]
_NETWORK_PATTERNS = [
    r"could not resolve host",
    r"connection (refused|reset|timed out)",
    r"timeout",
    r"HTTP 5\d\d",
    r"TLS handshake",
    r"network is unreachable",
]


class PRState(str, enum.Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"
    CLOSED = "CLOSED"


class PRInfo(TypedDict):
    """Type definition for PR information from GitHub."""
    number: int
    state: str
    url: str
    title: str
    body: str
    baseRefName: str
    headRefName: str
    headRefOid: str


def _classify(stderr: str) -> Optional[str]:
    for p in _AUTH_PATTERNS:
        if re.search(p, stderr, re.I):
            return "auth"
    for p in _NETWORK_PATTERNS:
        if re.search(p, stderr, re.I):
            return "network"
    return None


class GitHubClient:
    """Remote review-service client.

    Transient transport failures are retried with exponential backoff;
    rejected credentials are reported immediately.
    """

    def __init__(self, *, attempts: int = 3, backoff: float = 1.0, sleep=time.sleep):
        self.attempts = attempts
        self.backoff = backoff
        self.sleep = sleep

    def _gh(self, args: List[str]) -> str:
        cmd = CmdArgs(["gh"] + args)
        delay = self.backoff
        for attempt in range(1, self.attempts + 1):
            sp = run_capture(cmd)
            if sp.returncode == 0:
                return sp.stdout.decode("UTF-8")
            stderr = sp.stderr.decode("UTF-8").strip()
            kind = _classify(stderr)
            if kind == "auth":
                raise AuthFailure(stderr)
            if kind != "network":
                die("Exited with status {}: {}. Stderr was:\n{}", sp.returncode, shlex.join(cmd), stderr)
            if attempt == self.attempts:
                raise NetworkFailure("{} (after {} attempts)".format(stderr, attempt))
            warning("Remote call failed ({}), retrying in {}s", stderr, delay)
            self.sleep(delay)
            delay *= 2
        raise AssertionError("unreachable")

    def pr_info(self, pr_number: int) -> PRInfo:
        fields = ["number", "state", "url", "title", "body", "baseRefName", "headRefName", "headRefOid"]
        return json.loads(self._gh(["pr", "view", str(pr_number), "--json", ",".join(fields)]))

    def pr_state(self, pr_number: int) -> PRState:
        data = json.loads(self._gh(["pr", "view", str(pr_number), "--json", "state"]))
        return PRState(data["state"])

    def create_pr(self, branch: BranchName, base: BranchName, title: str, body: str, draft: bool) -> int:
        cmd = ["pr", "create", "--head", branch, "--base", base, "--title", title, "--body", body]
        if draft:
            cmd.append("--draft")
        out = self._gh(cmd)
        # gh prints the URL of the new PR last
        match = re.search(r"/pull/(\d+)\s*$", out.strip())
        if match is None:
            die("Could not find the PR number for {} in gh output: {}", branch, out.strip())
        return int(match.group(1))

    def update_pr_base(self, pr_number: int, new_base: BranchName):
        self._gh(["pr", "edit", str(pr_number), "--base", new_base])

    def update_pr_body(self, pr_number: int, body: str):
        self._gh(["pr", "edit", str(pr_number), "--body", body])


def generate_stack_string(entries: List[Tuple[BranchName, Optional[int]]], trunk: BranchName,
                          current: BranchName) -> str:
    """Stack overview for a PR body, top of the stack first.

    ``entries`` are the stack's branches from trunk upwards, with their PR numbers.
    """
    lines = []
    for name, pr_number in reversed(entries):
        if pr_number is None:
            continue
        marker = " 👈" if name == current else ""
        lines.append(f"* #{pr_number}{marker}")
    if not lines:
        return ""
    lines.append(f"* `{trunk}`")
    return "\n".join([
        STACK_COMMENT_START,
        "**Stack:**",
        *lines,
        STACK_COMMENT_END,
    ])


def extract_stack_comment(body: str) -> str:
    """Extract existing stack comment from PR body."""
    if not body:
        return ""
    pattern = re.escape(STACK_COMMENT_START) + r".*?" + re.escape(STACK_COMMENT_END)
    match = re.search(pattern, body, re.DOTALL)
    if match:
        return match.group(0).strip()
    return ""


def with_stack_comment(body: str, stack_string: str) -> str:
    """``body`` with its stack comment added or replaced."""
    existing = extract_stack_comment(body)
    if existing:
        return body.replace(existing, stack_string)
    if body:
        return f"{body}\n\n{stack_string}"
    return stack_string
