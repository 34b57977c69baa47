"""SSH connection sharing for the many short git network calls of a sync."""

import contextlib
import os
import re
import subprocess
import time
from typing import Iterator, List, Optional

from jjstack.utils.config import get_config
from jjstack.utils.logging import die, info
from jjstack.utils.shell import run_always_return
from jjstack.utils.types import CmdArgs, MAX_SSH_MUX_LIFETIME


def get_remote_type(remote: str = "origin") -> Optional[str]:
    """Get the SSH host for a remote, or None if it is not reached over ssh."""
    out = run_always_return(CmdArgs(["git", "remote", "-v"]))
    for l in out.split("\n"):
        match = re.match(r"^{}\s+(?:ssh://)?([^/]*):(?!//).*\s+\(push\)$".format(re.escape(remote)), l)
        if match:
            return match.group(1)
    return None


def gen_ssh_mux_cmd() -> List[str]:
    """Generate SSH multiplexing command arguments."""
    return [
        "ssh",
        "-o",
        "ControlMaster=auto",
        "-o",
        f"ControlPersist={MAX_SSH_MUX_LIFETIME}",
        "-o",
        "ControlPath=~/.ssh/jjstack-%C",
    ]


def start_muxed_ssh(remote: Optional[str] = None):
    """Start a multiplexed SSH connection and route git through it."""
    config = get_config()
    if not config.share_ssh_session:
        return
    hostish = get_remote_type(remote or config.remote_name)
    if hostish is None:
        return
    info("Creating a muxed ssh connection")
    cmd = gen_ssh_mux_cmd()
    os.environ["GIT_SSH_COMMAND"] = " ".join(cmd)
    cmd += ["-MNf", hostish]
    # -f backgrounds ssh once the connection is up, so wait for that instead of using run()
    p = subprocess.Popen(cmd, stderr=subprocess.PIPE)
    while p.poll() is None:
        time.sleep(1)
    if p.returncode != 0:
        err = p.stderr.read() if p.stderr is not None else b"unknown"
        die("Failed to start ssh muxed connection, error was: {}", err.decode("utf-8").strip())


def stop_muxed_ssh(remote: Optional[str] = None):
    """Stop a multiplexed SSH connection."""
    config = get_config()
    if not config.share_ssh_session:
        return
    hostish = get_remote_type(remote or config.remote_name)
    if hostish is not None:
        cmd = gen_ssh_mux_cmd() + ["-O", "exit", hostish]
        subprocess.Popen(cmd, stderr=subprocess.DEVNULL)


@contextlib.contextmanager
def shared_ssh_session(remote: Optional[str] = None) -> Iterator[None]:
    """Keep one ssh connection open for the duration of the block."""
    start_muxed_ssh(remote)
    try:
        yield
    finally:
        stop_muxed_ssh(remote)
