"""User interface utilities for stackweave."""

import os
import subprocess
import sys
import tempfile
from typing import Callable, List, Optional

import asciitree  # type: ignore
from simple_term_menu import TerminalMenu  # type: ignore

from stackweave.utils.logging import IS_TERMINAL, cout, die


def prompt(message: str, default_value: Optional[str]) -> str:
    """Prompt the user for input."""
    cout(message)
    if default_value is not None:
        cout("({})", default_value, fg="gray")
        cout(" ")
    while True:
        sys.stderr.flush()
        r = input().strip()

        if len(r) > 0:
            return r
        if default_value:
            return default_value


def ask_yes_no(msg: str, *, default: Optional[bool] = None) -> bool:
    """Ask a yes/no question on the terminal."""
    if not os.isatty(0):
        die("Standard input is not a terminal, use --force option to force action")
    hint = {None: "yes/no", True: "YES/no", False: "yes/NO"}[default]
    while True:
        cout("{} [{}] ", msg, hint, fg="yellow")
        sys.stderr.flush()
        r = input().strip().lower()
        if r in ("yes", "y"):
            return True
        if r in ("no", "n"):
            return False
        if not r and default is not None:
            return default
        cout("Please answer yes or no\n", fg="red")


def confirm(msg: str = "Proceed?", *, skip: bool = False):
    """Ask for confirmation and die if refused. ``skip`` bypasses the question."""
    if skip:
        return
    print()
    if not ask_yes_no(msg):
        die("Not confirmed")


_ASCII_TREE_BOX = {
    "UP_AND_RIGHT": "└",
    "HORIZONTAL": "─",
    "VERTICAL": "│",
    "VERTICAL_AND_RIGHT": "├",
}
_ASCII_TREE_STYLE = asciitree.drawing.BoxStyle(gfx=_ASCII_TREE_BOX)
ASCII_TREE = asciitree.LeftAligned(draw=_ASCII_TREE_STYLE)


def select_one(lines: List[str], *, cursor_index: int = 0) -> int:
    """Show a terminal menu over ``lines`` and return the chosen index."""
    if not IS_TERMINAL:
        die("May only choose from menu when using a terminal")
    menu = TerminalMenu(lines, cursor_index=cursor_index)
    idx = menu.show()
    if idx is None:
        die("Aborted")
    return idx


def edit_text(initial: str, *, editor: str, suffix: str = ".md") -> str:
    """Open ``initial`` in the user's editor and return the edited text."""
    with tempfile.NamedTemporaryFile(mode="w+", suffix=suffix, delete=False) as temp_file:
        temp_file.write(initial)
        temp_file_path = temp_file.name

    try:
        result = subprocess.run([editor, temp_file_path])
        if result.returncode != 0:
            die("Editor {} exited with status {}", editor, result.returncode)
        with open(temp_file_path, "r") as f:
            return f.read().strip()
    finally:
        try:
            os.unlink(temp_file_path)
        except OSError:
            pass


def describe_commits(context: dict) -> Optional[str]:
    """List the commit subjects of a multi-commit branch as the PR body."""
    commits = context.get("commits") or []
    if len(commits) < 2:
        return None
    return "\n".join("- {}".format(c) for c in commits) + "\n"


class Prompter:
    """Interactive capabilities used by the submit flow.

    Tests substitute an object with the same methods.
    """

    def __init__(self, editor: str, describe: Optional[Callable[[dict], Optional[str]]] = None):
        self.editor = editor
        self.describe = describe

    def title(self, branch: str, parent: str, default: str) -> str:
        return prompt(
            "Title of pull request ({} -> {}): ".format(branch, parent),
            default,
        )

    def body(self, context: dict) -> str:
        initial = ""
        if self.describe is not None:
            initial = self.describe(context) or ""
        return edit_text(initial, editor=self.editor)

    def draft(self, default: bool) -> bool:
        return ask_yes_no("Is this PR a draft?", default=default)

    def confirm(self, msg: str) -> bool:
        return ask_yes_no(msg)


def menu_choose_branch(graph, trunk, current=None, *, exclude=()):
    """Display a menu over the tree of ``trunk`` and return the chosen branch name."""
    # Import here to avoid circular dependency
    from stackweave.stack.tree import render_tree, tree_order

    names = tree_order(graph, trunk)
    lines = [l.rstrip() for l in render_tree(graph, trunk, current=current).split("\n")]
    choices = [(n, l) for n, l in zip(names, lines) if n not in exclude]
    if not choices:
        die("No branch to choose from")
    initial_index = 0
    for i, (n, _) in enumerate(choices):
        if n == current:
            initial_index = i
            break
    idx = select_one([l for _, l in choices], cursor_index=initial_index)
    return choices[idx][0]
