"""Main entry point for stackweave."""

import logging
import sys
from argparse import ArgumentParser

import argcomplete  # type: ignore

from stackweave.commands.branch import cmd_checkout, cmd_create, cmd_delete, cmd_track, cmd_untrack
from stackweave.commands.config import cmd_config
from stackweave.commands.stack import cmd_log, cmd_restack, cmd_status, cmd_submit, cmd_sync
from stackweave.commands.trunk import cmd_trunk_add, cmd_trunk_list, cmd_trunk_remove, cmd_trunk_switch
from stackweave.context import load_context
from stackweave.git.repository import GitRepository, branch_name_completer
from stackweave.utils.config import read_config
from stackweave.utils.logging import ExitException, configure, error
from stackweave.utils.types import LOGLEVELS


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Manage stacked branches and their pull requests")
    parser.add_argument(
        "--log-level", default="info", choices=LOGLEVELS.keys(),
        help="Set the log level",
    )
    parser.add_argument(
        "--color", default="auto", choices=["always", "auto", "never"],
        help="Colorize output and error",
    )
    parser.add_argument(
        "--remote-name", "-r", default=None,
        help="name of the git remote where branches will be pushed",
    )

    subparsers = parser.add_subparsers(required=True, dest="command")

    create_parser = subparsers.add_parser("create", aliases=["c"], help="Create a branch on top of the current one")
    create_parser.add_argument("name", help="Branch name")
    create_parser.add_argument("-m", help="Commit staged changes with this message", dest="message")
    create_parser.add_argument("-a", action="store_true", help="Add all tracked files to the commit", dest="add_all")
    create_parser.set_defaults(func=cmd_create)

    submit_parser = subparsers.add_parser("submit", aliases=["s"], help="Push the stack and open or update PRs")
    submit_parser.add_argument("--force", "-f", action="store_true", help="Force push")
    submit_parser.add_argument("--all", "-a", action="store_true", help="Submit every branch of the active trunk")
    submit_parser.set_defaults(func=cmd_submit)

    log_parser = subparsers.add_parser("log", aliases=["ls"], help="Show the tree of the active trunk")
    log_parser.set_defaults(func=cmd_log)

    checkout_parser = subparsers.add_parser("checkout", aliases=["co"], help="Checkout a branch")
    checkout_parser.add_argument("name", help="Branch name", nargs="?").completer = branch_name_completer
    checkout_parser.set_defaults(func=cmd_checkout)

    restack_parser = subparsers.add_parser("restack", aliases=["rs"], help="Rebase branches onto their parents")
    restack_parser.add_argument("--all", action="store_true", help="Restack every branch of the active trunk")
    restack_parser.set_defaults(func=cmd_restack)

    sync_parser = subparsers.add_parser("sync", help="Clean up branches whose PRs were merged")
    sync_parser.add_argument("--force", "-f", action="store_true", help="Bypass confirmation")
    sync_parser.add_argument("--restack", action="store_true", help="Restack the trunk afterwards")
    sync_parser.set_defaults(func=cmd_sync)

    status_parser = subparsers.add_parser("status", aliases=["st"], help="Show the state of the current stack")
    status_parser.set_defaults(func=cmd_status)

    delete_parser = subparsers.add_parser("delete", aliases=["d"], help="Delete a branch and relink its children")
    delete_parser.add_argument("name", help="Branch name", nargs="?").completer = branch_name_completer
    delete_parser.add_argument("--force", "-f", action="store_true", help="Bypass confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    track_parser = subparsers.add_parser("track", aliases=["tr"], help="Track an existing branch")
    track_parser.add_argument("name", help="Branch name", nargs="?").completer = branch_name_completer
    track_parser.add_argument("--parent", "-p", help="Parent branch").completer = branch_name_completer
    track_parser.set_defaults(func=cmd_track)

    untrack_parser = subparsers.add_parser("untrack", aliases=["ut"], help="Stop tracking a branch")
    untrack_parser.add_argument("name", help="Branch name", nargs="?").completer = branch_name_completer
    untrack_parser.set_defaults(func=cmd_untrack)

    _setup_trunk_subcommands(subparsers)

    config_parser = subparsers.add_parser("config", help="Show or edit configuration")
    config_parser.add_argument("--edit", "-e", action="store_true", help="Open the config file in the editor")
    config_parser.add_argument("--global", action="store_true", dest="use_global", help="Edit the home config file")
    config_parser.set_defaults(func=None)

    return parser


def _setup_trunk_subcommands(subparsers):
    """Setup trunk subcommands."""
    trunk_parser = subparsers.add_parser("trunk", help="Manage trunk branches")
    trunk_subparsers = trunk_parser.add_subparsers(required=True, dest="trunk_command")

    list_parser = trunk_subparsers.add_parser("list", aliases=["ls"], help="List trunk branches")
    list_parser.set_defaults(func=cmd_trunk_list)

    switch_parser = trunk_subparsers.add_parser("switch", aliases=["sw"], help="Switch to a different trunk")
    switch_parser.add_argument("name", help="Trunk name")
    switch_parser.set_defaults(func=cmd_trunk_switch)

    add_parser = trunk_subparsers.add_parser("add", help="Add a new trunk branch")
    add_parser.add_argument("name", help="Trunk name").completer = branch_name_completer
    add_parser.set_defaults(func=cmd_trunk_add)

    remove_parser = trunk_subparsers.add_parser("remove", aliases=["rm"], help="Remove a trunk branch")
    remove_parser.add_argument("name", help="Trunk name")
    remove_parser.add_argument("--force", "-f", action="store_true", help="Bypass confirmation")
    remove_parser.set_defaults(func=cmd_trunk_remove)


def main():
    """Main entry point for stackweave."""
    configure(logging.INFO)
    try:
        parser = build_parser()
        argcomplete.autocomplete(parser)
        args = parser.parse_args()
        configure(LOGLEVELS[args.log_level], args.color)

        git = GitRepository()
        config = read_config(git.top_level_dir())
        if args.remote_name:
            config.remote_name = args.remote_name

        if args.command == "config":
            cmd_config(config, git, args)
            return

        ctx = load_context(config, git)
        args.func(ctx, args)
    except ExitException as e:
        error("{}", e.message)
        sys.exit(1)
