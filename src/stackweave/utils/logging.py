"""Logging and output utilities for stackweave."""

import logging
import os
import sys

import colors  # type: ignore

_LOGGING_FORMAT = "%(asctime)s %(module)s %(levelname)s: %(message)s"

# Terminal state, set once by configure()
COLOR_STDOUT: bool = os.isatty(1)
COLOR_STDERR: bool = os.isatty(2)
IS_TERMINAL: bool = os.isatty(1) and os.isatty(2)

_LEVEL_COLORS = {
    logging.DEBUG: "green",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
}


def set_color_mode(mode: str):
    """Set color mode: 'always', 'auto', or 'never'."""
    global COLOR_STDOUT, COLOR_STDERR
    if mode == "auto":
        return
    COLOR_STDOUT = COLOR_STDERR = mode == "always"


def configure(level: int, color_mode: str = "auto"):
    """Install the log format at ``level`` and apply the color mode."""
    logging.basicConfig(format=_LOGGING_FORMAT, level=level, force=True)
    set_color_mode(color_mode)


def fmt(s: str, *args, color: bool = False, fg=None, bg=None, style=None, **kwargs) -> str:
    """Format a string with optional color."""
    s = colors.color(s, fg=fg, bg=bg, style=style) if color else s
    return s.format(*args, **kwargs)


def cout(*args, **kwargs):
    """Write colored output to stdout."""
    return sys.stdout.write(fmt(*args, color=COLOR_STDOUT, **kwargs))


def _log(level: int, *args, **kwargs):
    if logging.getLogger().isEnabledFor(level):
        logging.log(level, "%s", fmt(*args, color=COLOR_STDERR, fg=_LEVEL_COLORS[level], **kwargs))


def debug(*args, **kwargs):
    _log(logging.DEBUG, *args, **kwargs)


def info(*args, **kwargs):
    _log(logging.INFO, *args, **kwargs)


def warning(*args, **kwargs):
    _log(logging.WARNING, *args, **kwargs)


def error(*args, **kwargs):
    _log(logging.ERROR, *args, **kwargs)


class ExitException(BaseException):
    """Raised to stop the command; main() logs the message and exits with status 1."""

    def __init__(self, fmt, *args, **kwargs):
        super().__init__(fmt.format(*args, **kwargs))

    @property
    def message(self) -> str:
        return self.args[0]


def die(*args, **kwargs):
    """Stop with an error message, formatted like fmt()."""
    raise ExitException(*args, **kwargs)
