"""Type aliases and constants for stackweave."""

import logging
from typing import FrozenSet, List, NewType

# Type aliases
BranchName = NewType("BranchName", str)
PathName = NewType("PathName", str)
Commit = NewType("Commit", str)
CmdArgs = NewType("CmdArgs", List[str])

# Constants
STORE_FILE_NAME = "stackweave.json"
STORE_VERSION = 1
CONFIG_FILE_NAME = ".stackweaveconfig"

# Branches registered as trunk automatically on first use
DEFAULT_TRUNKS: FrozenSet[BranchName] = frozenset([BranchName("master"), BranchName("main")])

# Log levels
LOGLEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
