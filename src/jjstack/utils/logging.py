"""Logging and terminal output for jjstack.

Everything is logged through the ``jjstack`` logger; ``setup_logging`` is
called once by ``main`` with the command line's level and color mode.
"""

import logging
import os
import sys

import colors  # type: ignore

_LOGGING_FORMAT = "%(asctime)s %(module)s %(levelname)s: %(message)s"

LOGGER = logging.getLogger("jjstack")

_LEVEL_COLOR = {
    logging.DEBUG: "green",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
}

# Whether stdout/stderr get ANSI colors; 'auto' mode follows isatty
_color = {"stdout": os.isatty(1), "stderr": os.isatty(2)}


def set_color_mode(mode: str):
    """Set color mode: 'always', 'auto', or 'never'."""
    if mode == "auto":
        _color["stdout"] = os.isatty(1)
        _color["stderr"] = os.isatty(2)
    else:
        _color["stdout"] = _color["stderr"] = mode == "always"


def color_stdout() -> bool:
    return _color["stdout"]


def color_stderr() -> bool:
    return _color["stderr"]


def setup_logging(level: int = logging.INFO, color_mode: str = "auto"):
    """Attach a stderr handler to the jjstack logger; safe to call again."""
    set_color_mode(color_mode)
    for h in list(LOGGER.handlers):
        LOGGER.removeHandler(h)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOGGING_FORMAT))
    LOGGER.addHandler(handler)
    LOGGER.setLevel(level)
    LOGGER.propagate = False


def fmt(s: str, *args, color: bool = False, fg=None, bg=None, style=None, **kwargs) -> str:
    """Format a string with optional color."""
    s = colors.color(s, fg=fg, bg=bg, style=style) if color else s
    return s.format(*args, **kwargs)


def cout(*args, **kwargs):
    """Write colored output to stdout."""
    return sys.stdout.write(fmt(*args, color=color_stdout(), **kwargs))


def _log(level: int, *args, **kwargs):
    if not LOGGER.isEnabledFor(level):
        return
    LOGGER.log(level, "%s", fmt(*args, color=color_stderr(), fg=_LEVEL_COLOR[level], **kwargs))


def debug(*args, **kwargs):
    _log(logging.DEBUG, *args, **kwargs)


def info(*args, **kwargs):
    _log(logging.INFO, *args, **kwargs)


def warning(*args, **kwargs):
    _log(logging.WARNING, *args, **kwargs)


def error(*args, **kwargs):
    _log(logging.ERROR, *args, **kwargs)


class ExitException(BaseException):
    """Raised to end the command with an error message and exit status 1."""
    def __init__(self, fmt, *args, **kwargs):
        super().__init__(fmt.format(*args, **kwargs))


def die(*args, **kwargs):
    """Abort the current command; ``main`` logs the message and exits."""
    raise ExitException(*args, **kwargs)
