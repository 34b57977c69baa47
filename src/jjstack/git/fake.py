"""Fake git plumbing for testing.

FakeGit is an in-memory object store plus a dict standing in for the
remote's branches. Commit ids are derived from content, so building the
same commit twice yields the same id, like git does.
"""

import dataclasses
import hashlib
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from jjstack.git.abc import GitBackend
from jjstack.utils.errors import CommandError, NonFastForwardOrRace
from jjstack.utils.types import BranchName, CommitId, PathName, TreeId


@dataclasses.dataclass(frozen=True)
class FakeCommit:
    tree: TreeId
    parents: Tuple[CommitId, ...]
    message: str


class FakeGit(GitBackend):
    """In-memory fake of the object store and the remote.

    Args:
        commits: pre-existing commits, by id
        remote_refs: branch name to head commit on the remote
        failing_reads: branches whose ``read_ref`` raises CommandError
        failing_pushes: branches whose ``push`` raises CommandError
    """

    def __init__(
        self,
        *,
        commits: Optional[Mapping[str, FakeCommit]] = None,
        remote_refs: Optional[Mapping[str, str]] = None,
        failing_reads: Iterable[str] = (),
        failing_pushes: Iterable[str] = (),
    ) -> None:
        self.commits: Dict[CommitId, FakeCommit] = {CommitId(k): v for k, v in (commits or {}).items()}
        self.remote_refs: Dict[BranchName, CommitId] = {
            BranchName(k): CommitId(v) for k, v in (remote_refs or {}).items()
        }
        self.failing_reads: Set[BranchName] = {BranchName(b) for b in failing_reads}
        self.failing_pushes: Set[BranchName] = {BranchName(b) for b in failing_pushes}
        self._mirror: Dict[BranchName, CommitId] = {}
        self._conflicts: Dict[FrozenSet[CommitId], List[PathName]] = {}
        self.created: List[CommitId] = []
        self.pushes: List[Tuple[BranchName, CommitId]] = []
        self.read_calls: List[BranchName] = []

    def add_commit(self, tree: str, parents: Sequence[str] = (), message: str = "",
                   commit_id: Optional[str] = None) -> CommitId:
        """Seed the object store; returns the commit id."""
        commit = FakeCommit(TreeId(tree), tuple(CommitId(p) for p in parents), message)
        cid = CommitId(commit_id) if commit_id else self._hash(commit)
        self.commits[cid] = commit
        return cid

    def set_conflict(self, a: str, b: str, paths: Sequence[str]) -> None:
        """Make merging ``a`` and ``b`` (in either order) conflict on ``paths``."""
        self._conflicts[frozenset((CommitId(a), CommitId(b)))] = [PathName(p) for p in paths]

    def commit(self, rev: CommitId) -> FakeCommit:
        try:
            return self.commits[rev]
        except KeyError:
            raise CommandError("fatal: bad object {}".format(rev))

    def first_parent_history(self, rev: CommitId) -> List[CommitId]:
        """Commits reachable by first parents, newest first."""
        out = []
        cur: Optional[CommitId] = rev
        while cur is not None:
            out.append(cur)
            parents = self.commit(cur).parents
            cur = parents[0] if parents else None
        return out

    @staticmethod
    def _hash(commit: FakeCommit) -> CommitId:
        raw = "{}\0{}\0{}".format(commit.tree, ",".join(commit.parents), commit.message)
        return CommitId(hashlib.sha1(raw.encode("UTF-8")).hexdigest())

    def read_tree(self, rev: CommitId) -> TreeId:
        return self.commit(rev).tree

    def create_commit(self, tree: TreeId, parents: Sequence[CommitId], message: str) -> CommitId:
        for p in parents:
            self.commit(p)
        cid = self.add_commit(tree, parents, message)
        self.created.append(cid)
        return cid

    def read_ref(self, branch: BranchName) -> Optional[CommitId]:
        self.read_calls.append(branch)
        if branch in self.failing_reads:
            raise CommandError("fatal: unable to access remote for {}".format(branch))
        head = self.remote_refs.get(branch)
        if head is None:
            self._mirror.pop(branch, None)
        else:
            self._mirror[branch] = head
        return head

    def update_ref(self, branch: BranchName, expected_old: Optional[CommitId], new: CommitId) -> None:
        current = self._mirror.get(branch, self.remote_refs.get(branch))
        if current != expected_old:
            raise NonFastForwardOrRace(
                "Local mirror of {} is at {}, expected {}".format(branch, current, expected_old)
            )
        self.commit(new)
        self._mirror[branch] = new

    def push(self, branch: BranchName, expected_old: Optional[CommitId]) -> None:
        if branch in self.failing_pushes:
            raise CommandError("fatal: the remote end hung up unexpectedly")
        if self.remote_refs.get(branch) != expected_old:
            raise NonFastForwardOrRace("Push of {} rejected, the remote branch moved".format(branch))
        new = self._mirror[branch]
        self.remote_refs[branch] = new
        self.pushes.append((branch, new))

    def is_ancestor(self, ancestor: CommitId, descendant: CommitId) -> bool:
        seen: Set[CommitId] = set()
        todo = [descendant]
        while todo:
            cur = todo.pop()
            if cur == ancestor:
                return True
            if cur in seen:
                continue
            seen.add(cur)
            todo.extend(self.commit(cur).parents)
        return False

    def merge_conflicts(self, ours: CommitId, theirs: CommitId) -> List[PathName]:
        self.commit(ours)
        self.commit(theirs)
        return list(self._conflicts.get(frozenset((ours, theirs)), []))
