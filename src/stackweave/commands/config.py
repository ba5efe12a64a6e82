"""Config command - show or edit configuration files."""

import dataclasses
import subprocess

from stackweave.utils.config import StackweaveConfig, home_config_path, repo_config_path
from stackweave.utils.logging import cout, die


def cmd_config(config: StackweaveConfig, git, args):
    """Print the effective configuration, or open a config file in the editor."""
    if args.edit:
        if args.use_global:
            path = home_config_path()
        else:
            root = git.top_level_dir()
            if root is None:
                die("Not in a git repository, use --global")
            path = repo_config_path(root)
        editor = config.get_editor()
        result = subprocess.run([editor, path])
        if result.returncode != 0:
            die("Editor {} exited with status {}", editor, result.returncode)
        return

    if config.sources:
        cout("Read from: {}\n", ", ".join(config.sources), fg="gray")
    for field in dataclasses.fields(config):
        if field.name == "sources":
            continue
        cout("{} = {}\n", field.name, getattr(config, field.name))
