"""Abstract base class for git plumbing operations."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from jjstack.utils.types import BranchName, CommitId, PathName, TreeId


class GitBackend(ABC):
    """Abstract interface for the git object store and the remote's branches.

    All implementations (real and fake) must implement this interface. No
    method may touch the working directory or the user's local branches.
    """

    @abstractmethod
    def read_tree(self, rev: CommitId) -> TreeId:
        """Return the tree id of a commit."""
        ...

    @abstractmethod
    def create_commit(self, tree: TreeId, parents: Sequence[CommitId], message: str) -> CommitId:
        """Write a commit object without checking anything out."""
        ...

    @abstractmethod
    def read_ref(self, branch: BranchName) -> Optional[CommitId]:
        """Return the head of a branch on the remote, or None when it does not exist."""
        ...

    @abstractmethod
    def update_ref(self, branch: BranchName, expected_old: Optional[CommitId], new: CommitId) -> None:
        """Point the local mirror of a remote branch at ``new``, if it still is ``expected_old``."""
        ...

    @abstractmethod
    def push(self, branch: BranchName, expected_old: Optional[CommitId]) -> None:
        """Publish the local mirror of a branch, leasing on the remote's old value.

        Raises:
            NonFastForwardOrRace: the remote branch is not at ``expected_old``
        """
        ...

    @abstractmethod
    def is_ancestor(self, ancestor: CommitId, descendant: CommitId) -> bool:
        """Whether ``ancestor`` is reachable from ``descendant``."""
        ...

    @abstractmethod
    def merge_conflicts(self, ours: CommitId, theirs: CommitId) -> List[PathName]:
        """Paths a three-way merge of the two commits would leave conflicted."""
        ...
