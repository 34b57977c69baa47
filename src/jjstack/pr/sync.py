"""Keeps pull requests in line with the stack after branches are pushed."""

import dataclasses
from typing import List, Sequence

from jjstack.pr.abc import Forge
from jjstack.pr.github import find_reviewers, generate_stack_string, with_stack_comment
from jjstack.stack.models import Action, Change, PRState, PullRequest
from jjstack.utils.config import JjStackConfig
from jjstack.utils.logging import cout, info
from jjstack.utils.types import BranchName


class PRSynchronizer:
    """Creates missing PRs and retargets PR bases.

    Titles and bodies are only ever written on creation; later edits made on
    the forge are left alone, except for the stack listing between markers.
    """

    def __init__(self, forge: Forge, config: JjStackConfig):
        self.forge = forge
        self.config = config

    def create(self, change: Change, branch: BranchName, base: BranchName) -> PullRequest:
        cout("Creating PR for {} onto {}\n", branch, base, fg="green")
        reviewers = find_reviewers(change.description) or []
        return self.forge.create_pr(
            branch,
            base,
            change.title,
            change.body,
            reviewers=reviewers,
            draft=self.config.draft_prs,
        )

    def sync_existing(self, action: Action) -> PullRequest:
        """Open the PR for an existing branch if it has none, or point it at the right base."""
        assert action.base_branch is not None
        if action.pr is None:
            return self.create(action.change, action.branch, action.base_branch)
        pr = action.pr
        if action.retarget_base and pr.base_branch != action.base_branch:
            cout("Retargeting PR #{} from {} onto {}\n", pr.number, pr.base_branch, action.base_branch, fg="yellow")
            self.forge.edit_pr(pr.number, base=action.base_branch)
            pr = dataclasses.replace(pr, base_branch=action.base_branch)
        return pr

    def update_stack_comments(self, prs: Sequence[PullRequest]) -> List[PullRequest]:
        """Refresh the stack listing in every open PR of the stack, bottom first."""
        if not self.config.enable_stack_comment:
            return list(prs)
        open_prs = [pr for pr in prs if pr.state == PRState.OPEN]
        updated = []
        for pr in prs:
            if pr.state != PRState.OPEN:
                updated.append(pr)
                continue
            new_body = with_stack_comment(pr.body, generate_stack_string(open_prs, pr))
            if new_body != pr.body:
                info("Updating stack comment in PR #{}", pr.number)
                self.forge.edit_pr(pr.number, body=new_body)
                pr = dataclasses.replace(pr, body=new_body)
            updated.append(pr)
        return updated
