"""Configuration management for stackweave."""

import configparser
import dataclasses
import os
from typing import List, Optional

from stackweave.utils.logging import debug
from stackweave.utils.types import CONFIG_FILE_NAME


@dataclasses.dataclass
class StackweaveConfig:
    """Configuration options for stackweave."""
    skip_confirm: bool = False
    editor: str = ""
    remote_name: str = "origin"
    use_force_push: bool = True
    draft_by_default: bool = True
    enable_stack_comment: bool = True
    sources: List[str] = dataclasses.field(default_factory=list)

    def read_one_config(self, config_path: str):
        """Read configuration from a single file."""
        rawconfig = configparser.ConfigParser()
        rawconfig.read(config_path)
        if rawconfig.has_section("UI"):
            self.skip_confirm = rawconfig.getboolean("UI", "skip_confirm", fallback=self.skip_confirm)
            self.editor = rawconfig.get("UI", "editor", fallback=self.editor)

        if rawconfig.has_section("GIT"):
            self.remote_name = rawconfig.get("GIT", "remote_name", fallback=self.remote_name)
            self.use_force_push = rawconfig.getboolean("GIT", "use_force_push", fallback=self.use_force_push)

        if rawconfig.has_section("GITHUB"):
            self.draft_by_default = rawconfig.getboolean("GITHUB", "draft_by_default", fallback=self.draft_by_default)
            self.enable_stack_comment = rawconfig.getboolean(
                "GITHUB", "enable_stack_comment", fallback=self.enable_stack_comment
            )
        self.sources.append(config_path)

    def get_editor(self) -> str:
        """Editor command: config first, then $EDITOR, then vim."""
        return self.editor or os.environ.get("EDITOR", "vim")


def home_config_path() -> str:
    return os.path.expanduser(f"~/{CONFIG_FILE_NAME}")


def repo_config_path(root_dir: str) -> str:
    return os.path.join(root_dir, CONFIG_FILE_NAME)


def read_config(root_dir: Optional[str] = None) -> StackweaveConfig:
    """Read configuration from config files.

    The repository config, when ``root_dir`` is given, overrides the home directory config.
    """
    config = StackweaveConfig()
    config_paths = [home_config_path()]
    if root_dir is not None:
        config_paths.append(repo_config_path(root_dir))
    else:
        debug("Not in a git repository, skipping repo-level config")

    for p in config_paths:
        if os.path.exists(p):
            config.read_one_config(p)

    return config
