"""User interface utilities for jjstack."""

import os
import sys

import asciitree  # type: ignore

from jjstack.utils.config import get_config
from jjstack.utils.logging import cout, die


def confirm(msg: str = "Proceed?"):
    """Ask for confirmation. Skips if skip_confirm is set."""
    if get_config().skip_confirm:
        return
    if not os.isatty(0):
        die("Standard input is not a terminal, use --force option to force action")
    print()
    while True:
        cout("{} [yes/no] ", msg, fg="yellow")
        sys.stderr.flush()
        r = input().strip().lower()
        if r == "yes" or r == "y":
            break
        if r == "no" or r == "n":
            die("Not confirmed")
        cout("Please answer yes or no\n", fg="red")


# Printed upside down so trunk sits at the bottom, like `jj log`
_ASCII_TREE_BOX = {
    "UP_AND_RIGHT": "┌",
    "HORIZONTAL": "─",
    "VERTICAL": "│",
    "VERTICAL_AND_RIGHT": "├",
}
_ASCII_TREE_STYLE = asciitree.drawing.BoxStyle(gfx=_ASCII_TREE_BOX)
ASCII_TREE = asciitree.LeftAligned(draw=_ASCII_TREE_STYLE)
