"""Subprocess helpers; every git and gh invocation goes through here."""

import shlex
import subprocess
import sys
from typing import Optional

from stackweave.utils.logging import debug, die
from stackweave.utils.types import CmdArgs


def _check_returncode(sp: subprocess.CompletedProcess, cmd: CmdArgs):
    """Die with the command's stderr unless it succeeded."""
    rc = sp.returncode
    if rc == 0:
        return
    stderr = sp.stderr.decode("UTF-8")
    if rc < 0:
        die("Killed by signal {}: {}. Stderr was:\n{}", -rc, shlex.join(cmd), stderr)
    else:
        die("Exited with status {}: {}. Stderr was:\n{}", rc, shlex.join(cmd), stderr)


def _spawn(cmd: CmdArgs, *, out: bool = False) -> subprocess.CompletedProcess:
    """Run ``cmd`` with stderr captured; stdout goes to the terminal with ``out``."""
    debug("Running: {}", shlex.join(cmd))
    # Keep our own output ordered before the child's
    sys.stdout.flush()
    sys.stderr.flush()
    return subprocess.run(cmd, stdout=1 if out else subprocess.PIPE, stderr=subprocess.PIPE)


def run_capture(cmd: CmdArgs) -> subprocess.CompletedProcess:
    """Run a command and return the completed process, whatever its status."""
    return _spawn(cmd)


def run_multiline(cmd: CmdArgs, *, check: bool = True, out: bool = False) -> Optional[str]:
    """Output of ``cmd`` with newlines preserved.

    None when the command failed and ``check`` is off, "" when stdout went to
    the terminal.
    """
    sp = _spawn(cmd, out=out)
    if check:
        _check_returncode(sp, cmd)
    if sp.returncode != 0:
        return None
    return "" if sp.stdout is None else sp.stdout.decode("UTF-8")


def run(cmd: CmdArgs, **kwargs) -> Optional[str]:
    """Like run_multiline, with surrounding whitespace stripped."""
    out = run_multiline(cmd, **kwargs)
    return None if out is None else out.strip()


def run_always_return(cmd: CmdArgs, **kwargs) -> str:
    out = run(cmd, **kwargs)
    assert out is not None
    return out


def remove_prefix(s: str, prefix: str) -> str:
    """Strip ``prefix`` from ``s``, dying if it is not there."""
    if not s.startswith(prefix):
        die('Invalid string "{}": expected prefix "{}"', s, prefix)
    return s[len(prefix):]
