"""Branch commands - create, checkout, track, untrack, delete."""

from stackweave.context import StackContext
from stackweave.stack.operations import delete_from_graph, remove_branch_refs
from stackweave.utils.logging import cout, die, info
from stackweave.utils.types import BranchName
from stackweave.utils.ui import confirm, menu_choose_branch


def cmd_create(ctx: StackContext, args):
    """Create a new branch on top of the current branch and track it."""
    ctx.guard()
    current = ctx.current_branch()
    name = BranchName(args.name)
    # Fails early when the current branch is neither trunk nor tracked
    ctx.graph.parent_ref_for(current)
    if ctx.git.branch_exists(name):
        die("Branch {} already exists, use `stackweave track {}` to adopt it", name, name)

    ctx.git.create_branch(name, current)
    ctx.graph.track(name, current, parent_head=ctx.git.commit_id(current))
    ctx.save()
    ctx.git.checkout(name)
    if args.message:
        ctx.git.commit(args.message, add_all=args.add_all)
    cout("Created {} on top of {}\n", name, current, fg="green")


def cmd_checkout(ctx: StackContext, args):
    """Checkout a branch (with menu if no name provided)."""
    ctx.guard()
    name = args.name
    if name is None:
        name = menu_choose_branch(ctx.graph, ctx.graph.active_trunk(), ctx.git.current_branch())
    ctx.git.checkout(name)


def cmd_track(ctx: StackContext, args):
    """Start tracking an existing local branch."""
    ctx.guard()
    name = ctx.resolve(args.name)
    if not ctx.git.branch_exists(name):
        die("Branch {} does not exist locally", name)
    parent = args.parent
    if parent is None:
        trunk = ctx.graph.active_trunk()
        exclude = {name}
        if ctx.graph.is_tracked(name):
            exclude.update(ctx.graph.descendants(name))
        cout("Choose the parent of {}\n", name, fg="green")
        parent = menu_choose_branch(ctx.graph, trunk, ctx.git.current_branch(), exclude=exclude)
    parent = BranchName(parent)

    fork_point = ctx.git.merge_base(parent, name)
    if fork_point is None:
        die("Branch {} shares no history with {}", name, parent)
    ctx.graph.track(name, parent, parent_head=fork_point)
    ctx.save()
    info("Tracking {} on top of {}", name, parent)


def cmd_untrack(ctx: StackContext, args):
    """Stop tracking a branch, leaving the branch itself alone."""
    ctx.guard()
    name = ctx.resolve(args.name)
    relinked = ctx.graph.untrack(name)
    ctx.save()
    info("Stopped tracking {}", name)
    for c in relinked:
        info("Relinked {} onto {}, it now needs a restack", c.name, c.parent.name)


def cmd_delete(ctx: StackContext, args):
    """Delete a tracked branch, moving its children onto its parent."""
    ctx.guard()
    name = ctx.resolve(args.name)
    if ctx.graph.is_trunk(name):
        die("Cannot delete trunk branch {}", name)
    b = ctx.graph.get(name)
    cout("- Will delete branch {}\n", name)
    for c in ctx.graph.children(name):
        cout("- Will move {} onto {}\n", c.name, b.parent.name)
    confirm(skip=args.force or ctx.config.skip_confirm)

    parent, _ = delete_from_graph(ctx.graph, name)
    ctx.save()
    remove_branch_refs(ctx.git, [(name, parent)])
