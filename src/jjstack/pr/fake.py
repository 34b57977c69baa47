"""Fake forge for testing.

FakeForge keeps pull requests in memory, numbers them like GitHub does and
records every mutation so tests can assert on what was sent.
"""

import dataclasses
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from jjstack.pr.abc import Forge
from jjstack.pr.github import select_pr
from jjstack.stack.models import PRState, PullRequest
from jjstack.utils.errors import ForgeAPIError
from jjstack.utils.types import BranchName


class FakeForge(Forge):
    """In-memory fake of the PR API.

    Args:
        prs: pre-existing pull requests
        failing_heads: head branches whose lookups raise ForgeAPIError
        failing_creates: head branches whose PR creation raises ForgeAPIError
    """

    def __init__(
        self,
        *,
        prs: Iterable[PullRequest] = (),
        failing_heads: Iterable[str] = (),
        failing_creates: Iterable[str] = (),
    ) -> None:
        self.prs: Dict[int, PullRequest] = {pr.number: pr for pr in prs}
        self.failing_heads: Set[BranchName] = {BranchName(b) for b in failing_heads}
        self.failing_creates: Set[BranchName] = {BranchName(b) for b in failing_creates}
        self.created: List[PullRequest] = []
        # Every create_pr call, failed ones included
        self.create_calls: List[BranchName] = []
        self.edits: List[Tuple[int, Dict[str, str]]] = []
        self.reviewers: Dict[int, Tuple[str, ...]] = {}
        self.drafts: Set[int] = set()

    def add_pr(self, head: str, base: str, state: PRState = PRState.OPEN, **kwargs) -> PullRequest:
        """Seed a PR with the next free number."""
        pr = PullRequest(
            number=self._next_number(),
            head_branch=BranchName(head),
            base_branch=BranchName(base),
            state=state,
            **kwargs,
        )
        self.prs[pr.number] = pr
        return pr

    def set_state(self, number: int, state: PRState) -> None:
        self.prs[number] = dataclasses.replace(self.prs[number], state=state)

    def _next_number(self) -> int:
        return max(self.prs, default=0) + 1

    def find_pr(self, head: BranchName) -> Optional[PullRequest]:
        if head in self.failing_heads:
            raise ForgeAPIError("HTTP 502 while listing PRs for {}".format(head))
        return select_pr([pr for pr in self.prs.values() if pr.head_branch == head])

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
        self.create_calls.append(head)
        if head in self.failing_creates:
            raise ForgeAPIError("HTTP 422 creating PR for {}".format(head))
        if select_pr([pr for pr in self.prs.values() if pr.head_branch == head and pr.state == PRState.OPEN]):
            raise ForgeAPIError("A pull request for branch {} already exists".format(head))
        number = self._next_number()
        pr = PullRequest(
            number=number,
            head_branch=head,
            base_branch=base,
            state=PRState.OPEN,
            title=title,
            body=body,
            url="https://github.com/example/repo/pull/{}".format(number),
        )
        self.prs[number] = pr
        self.created.append(pr)
        self.reviewers[number] = tuple(reviewers)
        if draft:
            self.drafts.add(number)
        return pr

    def edit_pr(
        self,
        number: int,
        *,
        base: Optional[BranchName] = None,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        if number not in self.prs:
            raise ForgeAPIError("Could not resolve to a PullRequest with the number of {}".format(number))
        changes = {k: v for k, v in (("base_branch", base), ("title", title), ("body", body)) if v is not None}
        if not changes:
            return
        self.prs[number] = dataclasses.replace(self.prs[number], **changes)
        self.edits.append((number, changes))
