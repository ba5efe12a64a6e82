"""Trunk commands - list, switch, add, remove."""

from stackweave.context import StackContext
from stackweave.stack.trunks import TrunkRegistry
from stackweave.utils.logging import cout, die
from stackweave.utils.types import BranchName
from stackweave.utils.ui import confirm


def cmd_trunk_list(ctx: StackContext, args):
    """List registered trunks, marking the active one."""
    ctx.guard(read_only=True)
    trunks = TrunkRegistry(ctx.graph).list()
    if not trunks:
        cout("No trunks configured.\n")
        return
    cout("Trunk branches:\n")
    for t in trunks:
        if t.is_active:
            cout("  * {}\n", t.name, fg="green", style="bold")
        else:
            cout("    {}\n", t.name)


def cmd_trunk_switch(ctx: StackContext, args):
    ctx.guard()
    TrunkRegistry(ctx.graph).activate(BranchName(args.name))
    ctx.save()
    cout("Switched to trunk {}\n", args.name, fg="green")


def cmd_trunk_add(ctx: StackContext, args):
    ctx.guard()
    name = BranchName(args.name)
    if not ctx.git.branch_exists(name):
        die("Branch {} does not exist in the repository", name)
    t = TrunkRegistry(ctx.graph).add(name)
    ctx.save()
    if t.is_active:
        cout("Added trunk {}, it is now active\n", name, fg="green")
    else:
        cout("Added trunk {}. Use `stackweave trunk switch {}` to switch to it.\n", name, name, fg="green")


def cmd_trunk_remove(ctx: StackContext, args):
    ctx.guard()
    name = BranchName(args.name)
    registry = TrunkRegistry(ctx.graph)
    if not args.force:
        registry.check_removable(name)
        confirm("Remove trunk {}?".format(name), skip=ctx.config.skip_confirm)
    registry.remove(name)
    ctx.save()
    cout("Removed trunk {}\n", name, fg="red")
