"""Reconciliation of local stack state against probed remote state.

Everything here is pure: the same stack and probe report always produce the
same plan, and nothing is read or written while planning.
"""

import dataclasses
from typing import List, Optional, Type

from jjstack.stack.models import (
    Action,
    ActionKind,
    Change,
    Plan,
    PRState,
    ProbeReport,
    ProbeResult,
    Stack,
)
from jjstack.stack.naming import branch_name
from jjstack.utils.config import JjStackConfig
from jjstack.utils.errors import EmptyDescription, ProbeUnknown, SyncError
from jjstack.utils.types import BranchName, CommitId, TreeId


@dataclasses.dataclass(frozen=True)
class BaseRef:
    """The branch a change is stacked on, as known before applying anything."""
    name: BranchName
    # None when the base branch does not exist yet, or is about to be replaced
    tip: Optional[CommitId]
    # Tree of the change the local stack builds on
    tree: TreeId


def _is_merged(result: ProbeResult) -> bool:
    entry = result.current
    return entry is not None and entry.pr is not None and entry.pr.state == PRState.MERGED


def _needs_new_branch(result: ProbeResult) -> bool:
    entry = result.current
    assert entry is not None
    return (entry.pr is not None and entry.pr.is_stale) or entry.branch is None


def base_chain(stack: Stack, probes: ProbeReport, prefix: str) -> List[Optional[BaseRef]]:
    """Expected base of every change; None from the first change whose remote state is unknown.

    Merged changes are collapsed: the change above one stacks on whatever the
    merged change was stacked on.
    """
    bases: List[Optional[BaseRef]] = []
    blocked = probes.trunk_error is not None
    name, tip = probes.trunk_branch, probes.trunk_tip
    tree = stack.trunk.tree_id
    for change in stack:
        if blocked:
            bases.append(None)
            continue
        bases.append(BaseRef(name, tip, tree))
        tree = change.tree_id
        result = probes.results.get(change.change_id)
        if result is None or result.unknown:
            blocked = True
            continue
        entry = result.current
        if entry is None:
            name, tip = branch_name(change.change_id, prefix), None
        elif _is_merged(result):
            continue
        elif _needs_new_branch(result):
            name, tip = branch_name(change.change_id, prefix, result.next_epoch), None
        else:
            assert entry.branch is not None
            name, tip = entry.name, entry.branch.head
    return bases


def _decide(change: Change, result: ProbeResult, base: BaseRef, prefix: str) -> Action:
    entry = result.current
    common = dict(change=change, base_branch=base.name, base_tip=base.tip, expected_base_tree=base.tree)

    if entry is None:
        return Action(
            kind=ActionKind.CREATE_BRANCH_AND_PR,
            branch=branch_name(change.change_id, prefix),
            reason="no branch or PR yet",
            **common,
        )

    if _is_merged(result):
        return Action(
            kind=ActionKind.SKIP_MERGED,
            branch=entry.name,
            epoch=entry.epoch,
            expected_head=entry.branch.head if entry.branch else None,
            pr=entry.pr,
            reason="PR #{} is merged".format(entry.pr.number if entry.pr else "?"),
            **common,
        )

    if _needs_new_branch(result):
        if entry.pr is not None and entry.pr.is_stale:
            reason = "PR #{} was closed without merging".format(entry.pr.number)
        else:
            reason = "branch {} is gone".format(entry.name)
        return Action(
            kind=ActionKind.REPLACE_STALE_PR,
            branch=branch_name(change.change_id, prefix, result.next_epoch),
            epoch=result.next_epoch,
            stale_pr=entry.pr,
            reason=reason,
            **common,
        )

    assert entry.branch is not None
    pr = entry.pr
    retarget = pr is not None and pr.base_branch != base.name
    if not result.contains_base:
        kind, reason = ActionKind.RESTACK, "{} moved".format(base.name)
    elif entry.head_tree != change.tree_id:
        kind, reason = ActionKind.APPEND_COMMIT, "change was amended"
    else:
        kind, reason = ActionKind.NOOP, "up to date"
    if kind == ActionKind.NOOP and retarget:
        reason = "PR base is {}".format(pr.base_branch if pr else None)
    return Action(
        kind=kind,
        branch=entry.name,
        epoch=entry.epoch,
        expected_head=entry.branch.head,
        pr=pr,
        retarget_base=retarget,
        reason=reason,
        **common,
    )


def _blocked(change: Change, reason: str, blocker: Type[SyncError]) -> Action:
    return Action(
        kind=ActionKind.BLOCKED,
        change=change,
        branch=BranchName(""),
        base_branch=None,
        reason=reason,
        blocker=blocker,
    )


def plan_stack(stack: Stack, probes: ProbeReport, config: JjStackConfig) -> Plan:
    """Decide exactly one action per change, bottom of the stack first."""
    prefix = config.branch_prefix
    actions: List[Action] = []
    blocked_by: Optional[str] = None
    blocker: Type[SyncError] = ProbeUnknown
    for change, base in zip(stack, base_chain(stack, probes, prefix)):
        if blocked_by is not None:
            actions.append(_blocked(change, blocked_by, blocker))
            continue
        result = probes.results.get(change.change_id)
        if base is None or result is None or result.unknown:
            error = probes.trunk_error or (result.error if result is not None else None)
            blocked_by = "remote state unknown: {}".format(error or "not probed")
            actions.append(_blocked(change, blocked_by, blocker))
            continue
        action = _decide(change, result, base, prefix)
        if action.needs_pr and change.is_empty_description:
            blocked_by = "change {} has no description".format(change.change_id)
            blocker = EmptyDescription
            actions.append(dataclasses.replace(action, kind=ActionKind.BLOCKED, reason=blocked_by, blocker=blocker))
            continue
        actions.append(action)
    return Plan(stack=stack, actions=tuple(actions))
