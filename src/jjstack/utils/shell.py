"""Shell execution utilities for jjstack."""

import shlex
import subprocess
import sys
import time
from typing import Callable, Optional, TypeVar

from jjstack.utils.errors import CommandError, ForgeAPIError
from jjstack.utils.logging import debug, warning
from jjstack.utils.types import CmdArgs

T = TypeVar("T")

# Seconds between attempts of a retried read, multiplied by the attempt number
RETRY_BACKOFF = 0.5


def check_returncode(sp: subprocess.CompletedProcess, cmd: CmdArgs):
    """Check the return code of a subprocess and raise if non-zero."""
    rc = sp.returncode
    if rc == 0:
        return
    stderr = sp.stderr.decode("UTF-8")
    if rc < 0:
        raise CommandError(
            "Killed by signal {}: {}. Stderr was:\n{}".format(-rc, shlex.join(cmd), stderr),
            cmd, rc, stderr,
        )
    raise CommandError(
        "Exited with status {}: {}. Stderr was:\n{}".format(rc, shlex.join(cmd), stderr),
        cmd, rc, stderr,
    )


def run_completed(cmd: CmdArgs, *, timeout: Optional[float] = None,
                  input: Optional[str] = None) -> subprocess.CompletedProcess:
    """Run a command, capturing output, and return the completed process.

    The return code is not checked; a timeout raises CommandError.
    """
    debug("Running: {}", shlex.join(cmd))
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        return subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            input=input.encode("UTF-8") if input is not None else None,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CommandError("Timed out after {}s: {}".format(timeout, shlex.join(cmd)), cmd)


def run_multiline(cmd: CmdArgs, *, check: bool = True,
                  timeout: Optional[float] = None) -> Optional[str]:
    """Run a command and return its output (with newlines preserved)."""
    debug("Running: {}", shlex.join(cmd))
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        sp = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CommandError("Timed out after {}s: {}".format(timeout, shlex.join(cmd)), cmd)
    if check:
        check_returncode(sp, cmd)
    if sp.returncode != 0:
        return None
    return sp.stdout.decode("UTF-8")


def run_always_return(cmd: CmdArgs, **kwargs) -> str:
    """Run a command and always return output (asserts it's not None)."""
    out = run(cmd, **kwargs)
    assert out is not None
    return out


def run(cmd: CmdArgs, **kwargs) -> Optional[str]:
    """Run a command and return stripped output."""
    out = run_multiline(cmd, **kwargs)
    return None if out is None else out.strip()


def retry_read(fn: Callable[[], T], *, attempts: int, what: str) -> T:
    """Call a read-only function, retrying command and forge failures up to ``attempts`` extra times.

    Only use this for idempotent reads; mutations must surface their first failure.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except (CommandError, ForgeAPIError) as e:
            if attempt >= attempts:
                raise
            attempt += 1
            warning("Retrying {} ({}/{}): {}", what, attempt, attempts, str(e).splitlines()[0])
            time.sleep(RETRY_BACKOFF * attempt)
