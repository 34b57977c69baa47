"""Abstract base class for forge (pull request hosting) operations."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from jjstack.stack.models import PullRequest
from jjstack.utils.types import BranchName


class Forge(ABC):
    """Abstract interface for pull request operations.

    All implementations (real and fake) must implement this interface.
    Failures are raised as ForgeAPIError.
    """

    @abstractmethod
    def find_pr(self, head: BranchName) -> Optional[PullRequest]:
        """Return the PR whose head is ``head`` (any state), preferring an open one."""
        ...

    @abstractmethod
    def create_pr(
        self,
        head: BranchName,
        base: BranchName,
        title: str,
        body: str,
        *,
        reviewers: Sequence[str] = (),
        draft: bool = False,
    ) -> PullRequest:
        """Open a new PR and return it."""
        ...

    @abstractmethod
    def edit_pr(
        self,
        number: int,
        *,
        base: Optional[BranchName] = None,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        """Change the given fields of an existing PR; None leaves a field untouched."""
        ...
