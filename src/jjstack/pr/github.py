"""GitHub PR operations for jjstack, through the ``gh`` CLI."""

import json
import logging
import re
from typing import List, Optional, Sequence

from jjstack.pr.abc import Forge
from jjstack.stack.models import PRState, PullRequest
from jjstack.utils.errors import CommandError, ForgeAPIError
from jjstack.utils.shell import run_always_return
from jjstack.utils.types import BranchName, CmdArgs

_PR_FIELDS = ["number", "state", "title", "body", "baseRefName", "headRefName", "url"]

STACK_COMMENT_START = "<!-- jjstack Stack Info -->"
STACK_COMMENT_END = "<!-- End jjstack Stack Info -->"


def parse_pr(data: dict) -> PullRequest:
    """Build a PullRequest from ``gh --json`` output."""
    return PullRequest(
        number=int(data["number"]),
        head_branch=BranchName(data["headRefName"]),
        base_branch=BranchName(data["baseRefName"]),
        state=PRState(data["state"]),
        title=data.get("title", ""),
        body=data.get("body") or "",
        url=data.get("url", ""),
    )


def select_pr(prs: List[PullRequest]) -> Optional[PullRequest]:
    """Pick the PR that represents a head branch: the open one, else the newest."""
    if not prs:
        return None
    open_prs = [pr for pr in prs if pr.state == PRState.OPEN]
    if len(open_prs) > 1:
        raise ForgeAPIError(
            "Branch {} has more than one open PR: {}".format(
                open_prs[0].head_branch, ", ".join("#{}".format(pr.number) for pr in open_prs)
            )
        )
    if open_prs:
        return open_prs[0]
    return max(prs, key=lambda pr: pr.number)


def find_reviewers(description: str) -> Optional[List[str]]:
    """Find reviewers from a ``Reviewers: a, b`` line of a change description."""
    for l in description.split("\n"):
        reviewer_match = re.match(r"^reviewers?\s*:\s*(.*)", l.strip(), re.I)
        if reviewer_match:
            reviewers = [r.strip() for r in reviewer_match.group(1).split(",") if r.strip()]
            logging.debug(f"Found the following reviewers: {', '.join(reviewers)}")
            return reviewers
    return None


def generate_stack_string(prs: Sequence[PullRequest], current: PullRequest) -> str:
    """Generate a string representation of the PR stack, bottom first."""
    stack_lines = []
    for depth, pr in enumerate(prs):
        indent = "  " * depth
        current_indicator = " ← (CURRENT PR)" if pr.number == current.number else ""
        stack_lines.append(f"{indent}- #{pr.number}{current_indicator}")

    if not stack_lines:
        return ""

    return "\n".join([
        STACK_COMMENT_START,
        "**Stack:**",
        *stack_lines,
        STACK_COMMENT_END,
    ])


def extract_stack_comment(body: str) -> str:
    """Extract existing stack comment from PR body."""
    if not body:
        return ""
    pattern = re.escape(STACK_COMMENT_START) + r".*?" + re.escape(STACK_COMMENT_END)
    match = re.search(pattern, body, re.DOTALL)
    if match:
        return match.group(0).strip()
    return ""


def with_stack_comment(body: str, stack_string: str) -> str:
    """Return ``body`` with its stack comment added or replaced."""
    existing_stack = extract_stack_comment(body)
    if existing_stack:
        return body.replace(existing_stack, stack_string)
    if body:
        return f"{body}\n\n{stack_string}"
    return stack_string


def pr_number_from_url(url: str) -> int:
    match = re.search(r"/pull/(\d+)\s*$", url)
    if match is None:
        raise ForgeAPIError("Could not find a PR number in gh output: {!r}".format(url))
    return int(match.group(1))


class GitHubForge(Forge):
    """Real implementation that calls the gh CLI."""

    def __init__(self, *, timeout: Optional[float] = None):
        self.timeout = timeout

    def _gh(self, args: List[str]) -> str:
        try:
            return run_always_return(CmdArgs(["gh"] + args), timeout=self.timeout)
        except CommandError as e:
            raise ForgeAPIError(str(e)) from e

    def find_pr(self, head: BranchName) -> Optional[PullRequest]:
        out = self._gh(["pr", "list", "--json", ",".join(_PR_FIELDS), "--state", "all", "--head", head])
        try:
            data = json.loads(out)
        except ValueError as e:
            raise ForgeAPIError("Unparseable gh output for {}: {}".format(head, e)) from e
        # gh matches --head loosely on forks, keep exact matches only
        return select_pr([parse_pr(d) for d in data if d["headRefName"] == head])

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
        cmd = ["pr", "create", "--head", head, "--base", base, "--title", title, "--body", body]
        if draft:
            cmd.append("--draft")
        if reviewers:
            logging.debug(f"Adding {len(reviewers)} reviewer(s) to the review")
            for r in reviewers:
                cmd.extend(["--reviewer", r])
        url = self._gh(cmd).splitlines()[-1].strip()
        return PullRequest(
            number=pr_number_from_url(url),
            head_branch=head,
            base_branch=base,
            state=PRState.OPEN,
            title=title,
            body=body,
            url=url,
        )

    def edit_pr(
        self,
        number: int,
        *,
        base: Optional[BranchName] = None,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        cmd = ["pr", "edit", str(number)]
        if base is not None:
            cmd.extend(["--base", base])
        if title is not None:
            cmd.extend(["--title", title])
        if body is not None:
            cmd.extend(["--body", body])
        if len(cmd) == 3:
            return
        self._gh(cmd)
