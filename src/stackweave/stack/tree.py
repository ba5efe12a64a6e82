"""Tree formatting for stackweave stacks."""

from typing import Dict, Iterable, List, Optional

from stackweave.stack.graph import StackGraph
from stackweave.utils.logging import fmt
from stackweave.utils.types import BranchName


def format_name(
    graph: StackGraph,
    name: BranchName,
    *,
    current: Optional[BranchName],
    stale: Iterable[BranchName] = (),
    colorize: bool = False,
) -> str:
    """Format a branch name with status markers.

    ``!`` needs restack, ``?`` local branch missing, ``*`` checked out.
    """
    if graph.is_trunk(name):
        prefix = fmt("* ", color=colorize, fg="cyan") if name == current else ""
        return prefix + fmt("{}", name, color=colorize, style="bold") + fmt(" [trunk]", color=colorize, fg="gray")

    prefix = ""
    severity = 0
    if name in stale:
        prefix += fmt("!", color=colorize, fg="yellow")
        severity = max(severity, 2)
    if graph.is_orphaned(name):
        prefix += fmt("?", color=colorize, fg="red")
        severity = 3
    if name == current:
        prefix += fmt("*", color=colorize, fg="cyan")
    else:
        severity = max(severity, 1)
    if prefix:
        prefix += " "
    fg = ["cyan", "green", "yellow", "red"][severity]
    suffix = ""
    pr_number = graph.get(name).pr_number
    if pr_number is not None:
        suffix = fmt(" (#{})", pr_number, color=colorize, fg="blue")
    return prefix + fmt("{}", name, color=colorize, fg=fg) + suffix


def format_tree(graph: StackGraph, name: BranchName, **kwargs) -> Dict[str, dict]:
    """Nested dict of formatted names, children in creation order."""
    return {
        format_name(graph, c.name, **kwargs): format_tree(graph, c.name, **kwargs)
        for c in graph.children(name)
    }


def render_tree(
    graph: StackGraph,
    trunk: BranchName,
    *,
    current: Optional[BranchName] = None,
    stale: Iterable[BranchName] = (),
    colorize: bool = False,
) -> str:
    """Render the subtree of ``trunk`` as box-drawn text."""
    from stackweave.utils.ui import ASCII_TREE
    stale = set(stale)
    kwargs = dict(current=current, stale=stale, colorize=colorize)
    root = format_name(graph, trunk, **kwargs)
    return ASCII_TREE({root: format_tree(graph, trunk, **kwargs)})


def tree_order(graph: StackGraph, trunk: BranchName) -> List[BranchName]:
    """Branch names in the order render_tree prints them, trunk first."""
    return [trunk] + graph.descendants(trunk)
