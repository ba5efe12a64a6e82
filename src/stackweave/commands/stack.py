"""Stack commands - log, status, restack, sync, submit."""

from stackweave.context import StackContext
from stackweave.stack.operations import stale_branches
from stackweave.stack.restack import RestackEngine, restack_scope
from stackweave.stack.submit import SubmitFlow
from stackweave.stack.sync import SyncEngine
from stackweave.stack.tree import render_tree
from stackweave.utils.logging import COLOR_STDOUT, cout
from stackweave.utils.ui import Prompter, ask_yes_no, describe_commits


def cmd_log(ctx: StackContext, args):
    """Show the tree of the active trunk."""
    ctx.guard(read_only=True)
    trunk = ctx.graph.active_trunk()
    stale = stale_branches(ctx.graph, ctx.git, ctx.graph.descendants(trunk))
    print(render_tree(ctx.graph, trunk, current=ctx.git.current_branch(), stale=stale, colorize=COLOR_STDOUT))


def cmd_status(ctx: StackContext, args):
    """Show the state of each branch in the current stack."""
    ctx.guard(read_only=True)
    operation = ctx.git.operation_in_progress()
    if operation is not None:
        cout("A git {} is in progress\n", operation, fg="red")
    current = ctx.current_branch()
    stack = ctx.graph.current_stack(current)
    stale = stale_branches(ctx.graph, ctx.git, stack)
    for name in stack:
        marker = "*" if name == current else " "
        if ctx.graph.is_trunk(name):
            cout("{} {} (trunk)\n", marker, name, style="bold")
            continue
        b = ctx.graph.get(name)
        pr = " #{}".format(b.pr_number) if b.pr_number is not None else ""
        if ctx.graph.is_orphaned(name):
            cout("{} {}{}: local branch missing\n", marker, name, pr, fg="red")
        elif name in stale:
            cout("{} {}{}: needs restack onto {}\n", marker, name, pr, b.parent.name, fg="yellow")
        else:
            cout("{} {}{}: up to date\n", marker, name, pr, fg="green")


def _restack(ctx: StackContext, *, whole_trunk: bool):
    names = restack_scope(ctx.graph, ctx.current_branch(), whole_trunk=whole_trunk)
    result = RestackEngine(ctx.graph, ctx.git, ctx.store).run(names)
    cout(
        "Restacked {} branch(es), {} already up to date\n",
        len(result.rebased) + len(result.recorded), len(result.up_to_date), fg="green",
    )


def cmd_restack(ctx: StackContext, args):
    """Rebase the current stack (or the whole trunk) onto updated parents."""
    ctx.guard()
    _restack(ctx, whole_trunk=args.all)


def cmd_sync(ctx: StackContext, args):
    """Delete branches whose PRs were merged and fetch the trunk."""
    ctx.guard()
    skip = args.force or ctx.config.skip_confirm
    engine = SyncEngine(
        ctx.graph, ctx.git, ctx.github, ctx.store,
        remote=ctx.config.remote_name,
        confirm=lambda msg: True if skip else ask_yes_no(msg),
    )
    result = engine.run()
    if not result.deleted:
        cout("✓ Nothing to clean up\n", fg="green")
        return
    cout("Deleted {}\n", ", ".join(result.deleted), fg="green")
    if args.restack:
        _restack(ctx, whole_trunk=True)
    elif result.relinked:
        cout("Run `stackweave restack` to move {} onto their new parents\n", ", ".join(result.relinked), fg="yellow")


def cmd_submit(ctx: StackContext, args):
    """Push the current stack and open or update its PRs."""
    ctx.guard()
    if args.all:
        names = ctx.graph.descendants(ctx.graph.active_trunk())
    else:
        names = ctx.graph.current_stack(ctx.current_branch())
    flow = SubmitFlow(
        ctx.graph, ctx.git, ctx.github, ctx.store, ctx.config,
        Prompter(ctx.config.get_editor(), describe=describe_commits),
    )
    result = flow.run(names, force=args.force)
    if not (result.created or result.pushed or result.rebased_prs):
        cout("✓ All pull requests up to date\n", fg="green")
