"""Git plumbing backend driving the ``git`` CLI.

Remote branches are mirrored under a private ref namespace, never under
``refs/heads`` or ``refs/remotes``, so the user's branches, index and working
directory are left alone.
"""

import shlex
from typing import List, Optional, Sequence

from jjstack.git.abc import GitBackend
from jjstack.utils.errors import NonFastForwardOrRace
from jjstack.utils.logging import debug
from jjstack.utils.shell import check_returncode, run, run_always_return, run_completed
from jjstack.utils.types import (
    BranchName,
    CmdArgs,
    CommitId,
    NULL_COMMIT,
    PathName,
    REMOTE_MIRROR_NAMESPACE,
    TreeId,
)

_MISSING_REMOTE_REF = "couldn't find remote ref"
_LEASE_REJECTED = ("stale info", "rejected", "non-fast-forward", "fetch first")


def get_top_level_dir() -> str:
    """Root of the current git repository."""
    return run_always_return(CmdArgs(["git", "rev-parse", "--show-toplevel"]))


def mirror_ref(branch: BranchName) -> str:
    """Private ref holding the last observed remote head of a branch."""
    return "{}/{}".format(REMOTE_MIRROR_NAMESPACE, branch)


class RealGit(GitBackend):
    """Real implementation using git subprocess calls."""

    def __init__(self, *, remote: str = "origin", timeout: Optional[float] = None):
        self.remote = remote
        self.timeout = timeout

    def read_tree(self, rev: CommitId) -> TreeId:
        return TreeId(run_always_return(
            CmdArgs(["git", "rev-parse", "{}^{{tree}}".format(rev)]), timeout=self.timeout
        ))

    def create_commit(self, tree: TreeId, parents: Sequence[CommitId], message: str) -> CommitId:
        cmd = ["git", "commit-tree", tree]
        for p in parents:
            cmd += ["-p", p]
        cmd = CmdArgs(cmd)
        sp = run_completed(cmd, timeout=self.timeout, input=message)
        check_returncode(sp, cmd)
        return CommitId(sp.stdout.decode("UTF-8").strip())

    def read_ref(self, branch: BranchName) -> Optional[CommitId]:
        ref = mirror_ref(branch)
        cmd = CmdArgs([
            "git", "fetch", "--no-tags", "--no-write-fetch-head", self.remote,
            "+refs/heads/{}:{}".format(branch, ref),
        ])
        sp = run_completed(cmd, timeout=self.timeout)
        if sp.returncode != 0 and _MISSING_REMOTE_REF in sp.stderr.decode("UTF-8"):
            debug("Remote branch {} does not exist", branch)
            run(CmdArgs(["git", "update-ref", "-d", ref]), timeout=self.timeout)
            return None
        check_returncode(sp, cmd)
        return CommitId(run_always_return(CmdArgs(["git", "rev-parse", ref]), timeout=self.timeout))

    def update_ref(self, branch: BranchName, expected_old: Optional[CommitId], new: CommitId) -> None:
        cmd = CmdArgs(["git", "update-ref", mirror_ref(branch), new, expected_old or NULL_COMMIT])
        sp = run_completed(cmd, timeout=self.timeout)
        if sp.returncode != 0:
            raise NonFastForwardOrRace(
                "Local mirror of {} moved since it was probed: {}".format(
                    branch, sp.stderr.decode("UTF-8").strip()
                )
            )

    def push(self, branch: BranchName, expected_old: Optional[CommitId]) -> None:
        lease = "refs/heads/{}:{}".format(branch, expected_old or "")
        cmd = CmdArgs([
            "git", "push", "--porcelain", "--force-with-lease={}".format(lease), self.remote,
            "{}:refs/heads/{}".format(mirror_ref(branch), branch),
        ])
        sp = run_completed(cmd, timeout=self.timeout)
        if sp.returncode == 0:
            return
        output = sp.stdout.decode("UTF-8") + sp.stderr.decode("UTF-8")
        if any(marker in output for marker in _LEASE_REJECTED):
            raise NonFastForwardOrRace(
                "Push of {} rejected, the remote branch moved: {}".format(branch, shlex.join(cmd))
            )
        check_returncode(sp, cmd)

    def is_ancestor(self, ancestor: CommitId, descendant: CommitId) -> bool:
        cmd = CmdArgs(["git", "merge-base", "--is-ancestor", ancestor, descendant])
        sp = run_completed(cmd, timeout=self.timeout)
        if sp.returncode == 1:
            return False
        check_returncode(sp, cmd)
        return True

    def merge_conflicts(self, ours: CommitId, theirs: CommitId) -> List[PathName]:
        cmd = CmdArgs(["git", "merge-tree", "--write-tree", "--name-only", "--no-messages", ours, theirs])
        sp = run_completed(cmd, timeout=self.timeout)
        if sp.returncode == 0:
            return []
        if sp.returncode != 1:
            check_returncode(sp, cmd)
        # First line is the (conflicted) tree id, the rest are paths
        lines = sp.stdout.decode("UTF-8").splitlines()
        return [PathName(line) for line in lines[1:] if line]
