"""Publishing of built commits with compare-and-swap semantics."""

from typing import Optional

from jjstack.git.abc import GitBackend
from jjstack.utils.logging import info
from jjstack.utils.types import BranchName, CommitId


class Pusher:
    """Moves remote branches only from the head observed when probing.

    A branch that moved in the meantime makes the push fail with
    NonFastForwardOrRace; nothing is retried or forced.
    """

    def __init__(self, git: GitBackend):
        self.git = git

    def push(self, branch: BranchName, expected_old: Optional[CommitId], new: CommitId) -> CommitId:
        self.git.update_ref(branch, expected_old, new)
        self.git.push(branch, expected_old)
        info("Pushed {} ({} -> {})", branch, (expected_old or "new")[:12], new[:12])
        return new
