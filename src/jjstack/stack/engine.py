"""The synchronization engine: resolve, probe, plan and apply.

Applying is strictly sequential in stack order. The first failing action
halts everything above it; actions already applied are kept, so running
again resumes from where the failure happened.
"""

import dataclasses
from typing import Dict, List, Optional

from jjstack.git.abc import GitBackend
from jjstack.jj.abc import ChangeBackend
from jjstack.pr.abc import Forge
from jjstack.pr.sync import PRSynchronizer
from jjstack.stack.builder import CommitBuilder
from jjstack.stack.models import Action, ActionKind, ActionOutcome, ApplyResult, Plan, PRState, PullRequest, Stack
from jjstack.stack.naming import short_change_id
from jjstack.stack.planner import plan_stack
from jjstack.stack.prober import probe_stack
from jjstack.stack.pusher import Pusher
from jjstack.stack.resolver import resolve_stack
from jjstack.stack.status import StatusReport, report_status
from jjstack.utils.config import JjStackConfig
from jjstack.utils.errors import JjStackError, ProbeUnknown, SyncError
from jjstack.utils.logging import cout, debug, info
from jjstack.utils.types import BranchName, CommitId


@dataclasses.dataclass
class SyncResult:
    """Outcome of syncing until convergence."""
    passes: List[ApplyResult]
    converged: bool

    @property
    def ok(self) -> bool:
        return self.converged and all(r.ok for r in self.passes)

    @property
    def failure(self):
        for r in self.passes:
            if r.failure is not None:
                return r.failure
        return None


class SyncEngine:
    """Facade tying the backends to the stack synchronization steps."""

    def __init__(self, jj: ChangeBackend, git: GitBackend, forge: Forge, config: JjStackConfig):
        self.jj = jj
        self.git = git
        self.forge = forge
        self.config = config
        self.builder = CommitBuilder(git)
        self.pusher = Pusher(git)
        self.prs = PRSynchronizer(forge, config)

    def resolve(self, revision: Optional[str] = None) -> Stack:
        return resolve_stack(
            self.jj,
            revision,
            max_depth=self.config.max_stack_depth,
            skip_empty_working_change=self.config.skip_empty_working_change,
        )

    def plan(self, stack: Stack) -> Plan:
        """Probe the remote and decide what every change needs. Never mutates anything."""
        probes = probe_stack(stack, self.git, self.forge, self.config)
        return plan_stack(stack, probes, self.config)

    def status(self, stack: Stack) -> StatusReport:
        return report_status(self.plan(stack), self.builder, BranchName(self.config.trunk_branch))

    def _base_tip(self, action: Action, heads: Dict[BranchName, CommitId]) -> CommitId:
        assert action.base_branch is not None
        tip = heads.get(action.base_branch, action.base_tip)
        if tip is None:
            raise ProbeUnknown("Head of base branch {} is unknown".format(action.base_branch),
                               action.change.change_id)
        return tip

    def _apply_one(self, action: Action, heads: Dict[BranchName, CommitId]) -> ActionOutcome:
        kind = action.kind
        change = action.change
        outcome = ActionOutcome(action=action)
        if kind == ActionKind.BLOCKED:
            blocker = action.blocker or ProbeUnknown
            raise blocker(action.reason, change.change_id)
        if kind == ActionKind.SKIP_MERGED:
            outcome.pr = action.pr
            return outcome

        assert action.base_branch is not None
        new_head: Optional[CommitId] = None
        if kind in (ActionKind.CREATE_BRANCH_AND_PR, ActionKind.REPLACE_STALE_PR):
            if action.stale_pr is not None:
                info("PR #{} was closed, replacing it with {}", action.stale_pr.number, action.branch)
            new_head = self.builder.build_initial(change, self._base_tip(action, heads))
            self.pusher.push(action.branch, None, new_head)
        elif kind == ActionKind.APPEND_COMMIT:
            assert action.expected_head is not None
            new_head = self.builder.build_append(change, action.expected_head)
            self.pusher.push(action.branch, action.expected_head, new_head)
        elif kind == ActionKind.RESTACK:
            assert action.expected_head is not None
            assert action.expected_base_tree is not None
            new_head = self.builder.build_restack(
                change, action.expected_head, self._base_tip(action, heads),
                action.base_branch, action.expected_base_tree,
            )
            self.pusher.push(action.branch, action.expected_head, new_head)
        else:
            debug("{} is up to date on {}", short_change_id(change.change_id), action.branch)

        if new_head is not None:
            heads[action.branch] = new_head
        elif action.expected_head is not None:
            heads[action.branch] = action.expected_head

        if kind in (ActionKind.CREATE_BRANCH_AND_PR, ActionKind.REPLACE_STALE_PR):
            outcome.pr = self.prs.create(change, action.branch, action.base_branch)
        else:
            outcome.pr = self.prs.sync_existing(action)
        outcome.new_head = new_head
        outcome.applied = not action.is_noop
        return outcome

    def apply(self, plan: Plan) -> ApplyResult:
        """Carry out a plan bottom-up, halting at the first failure."""
        heads: Dict[BranchName, CommitId] = {}
        outcomes: List[ActionOutcome] = []
        failed = False
        for action in plan:
            if failed:
                outcomes.append(ActionOutcome(action=action, skipped=True))
                continue
            try:
                outcomes.append(self._apply_one(action, heads))
            except JjStackError as e:
                if isinstance(e, SyncError) and e.change_id is None:
                    e.change_id = action.change.change_id
                outcomes.append(ActionOutcome(action=action, error=e))
                failed = True
        if not failed:
            self._update_stack_comments(outcomes)
        return ApplyResult(plan=plan, outcomes=outcomes)

    def _update_stack_comments(self, outcomes: List[ActionOutcome]) -> None:
        prs: List[PullRequest] = [o.pr for o in outcomes if o.pr is not None and o.pr.state == PRState.OPEN]
        if prs:
            updated = {pr.number: pr for pr in self.prs.update_stack_comments(prs)}
            for o in outcomes:
                if o.pr is not None and o.pr.number in updated:
                    o.pr = updated[o.pr.number]

    def sync(self, stack: Stack, *, plan: Optional[Plan] = None,
             max_passes: Optional[int] = None) -> SyncResult:
        """Plan and apply until the plan is converged.

        A change whose base moved during a pass is restacked in the next one,
        so a stack of n changes converges within n + 1 passes. ``plan`` is
        used for the first pass when the caller already has a fresh one.
        """
        passes: List[ApplyResult] = []
        limit = max_passes if max_passes is not None else len(stack) + 1
        for i in range(limit):
            if plan is None or i > 0:
                plan = self.plan(stack)
            result = self.apply(plan)
            passes.append(result)
            if not result.ok:
                return SyncResult(passes=passes, converged=False)
            if plan.is_converged:
                return SyncResult(passes=passes, converged=True)
            cout("Pass {} applied {} action(s)\n", i + 1, len(plan.pending()), fg="green")
        return SyncResult(passes=passes, converged=False)
