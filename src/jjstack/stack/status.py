"""Read-only per-change status of a stack."""

import dataclasses
import enum
from typing import Dict, List, Optional

from jjstack.stack.builder import CommitBuilder
from jjstack.stack.models import Action, ActionKind, Plan
from jjstack.stack.naming import short_change_id
from jjstack.utils.errors import JjStackError
from jjstack.utils.logging import fmt
from jjstack.utils.types import BranchName, ChangeId


class SyncState(enum.Enum):
    UP_TO_DATE = "up to date"
    NEEDS_UPDATE = "needs update"
    NEEDS_RESTACK = "needs restack"
    NEEDS_REPLACE = "needs replace"
    CONFLICT = "conflict"
    ERROR = "error"


# Symbol and color of each state in the rendered report
_STATE_STYLE = {
    SyncState.UP_TO_DATE: ("✓", "green"),
    SyncState.NEEDS_UPDATE: ("?", "yellow"),
    SyncState.NEEDS_RESTACK: ("↻", "yellow"),
    SyncState.NEEDS_REPLACE: ("↻", "magenta"),
    SyncState.CONFLICT: ("✗", "red"),
    SyncState.ERROR: ("!", "red"),
}


@dataclasses.dataclass(frozen=True)
class StatusEntry:
    change_id: ChangeId
    title: str
    branch_name: Optional[BranchName]
    pr_number: Optional[int]
    pr_url: Optional[str]
    remote_state: str
    sync_state: SyncState
    detail: str = ""


@dataclasses.dataclass(frozen=True)
class StatusReport:
    trunk_branch: BranchName
    entries: List[StatusEntry]

    @property
    def up_to_date(self) -> bool:
        return all(e.sync_state == SyncState.UP_TO_DATE for e in self.entries)


def _remote_state(action: Action) -> str:
    if action.kind == ActionKind.BLOCKED:
        return "unknown"
    if action.kind == ActionKind.CREATE_BRANCH_AND_PR:
        return "absent"
    if action.kind == ActionKind.REPLACE_STALE_PR:
        return "stale"
    pr = action.pr
    if pr is None:
        return "branch only"
    return pr.state.value.lower()


def _sync_state(action: Action, builder: CommitBuilder):
    kind = action.kind
    if kind == ActionKind.BLOCKED:
        return SyncState.ERROR, action.reason
    if kind == ActionKind.SKIP_MERGED:
        return SyncState.UP_TO_DATE, action.reason
    if kind == ActionKind.REPLACE_STALE_PR:
        return SyncState.NEEDS_REPLACE, action.reason
    if kind == ActionKind.RESTACK:
        if action.expected_head is None or action.base_tip is None or action.expected_base_tree is None:
            return SyncState.NEEDS_RESTACK, action.reason
        try:
            conflicts = builder.check_restack(
                action.change, action.expected_head, action.base_tip, action.expected_base_tree
            )
        except JjStackError as e:
            return SyncState.ERROR, str(e)
        if conflicts:
            return SyncState.CONFLICT, "conflicts in: {}".format(", ".join(conflicts))
        return SyncState.NEEDS_RESTACK, action.reason
    if kind == ActionKind.NOOP and action.is_noop:
        return SyncState.UP_TO_DATE, ""
    if action.needs_pr and kind == ActionKind.NOOP:
        return SyncState.NEEDS_UPDATE, "no PR yet"
    return SyncState.NEEDS_UPDATE, action.reason


def report_status(plan: Plan, builder: CommitBuilder, trunk_branch: BranchName) -> StatusReport:
    """Status of every change in ``plan``, bottom of the stack first.

    A change sitting above one that is not up to date is reported as needing
    a restack, since it will once the change below is pushed.
    """
    entries = []
    dirty_below = False
    for action in plan:
        state, detail = _sync_state(action, builder)
        if dirty_below and state == SyncState.UP_TO_DATE and action.kind != ActionKind.SKIP_MERGED:
            state, detail = SyncState.NEEDS_RESTACK, "a change below is not up to date"
        if state != SyncState.UP_TO_DATE:
            dirty_below = True
        pr = action.pr if action.kind != ActionKind.REPLACE_STALE_PR else None
        entries.append(StatusEntry(
            change_id=action.change.change_id,
            title=action.change.title,
            branch_name=action.branch or None,
            pr_number=pr.number if pr else None,
            pr_url=pr.url if pr else None,
            remote_state=_remote_state(action),
            sync_state=state,
            detail=detail,
        ))
    return StatusReport(trunk_branch=trunk_branch, entries=entries)


def format_entry(entry: StatusEntry, *, colorize: bool) -> str:
    symbol, fg = _STATE_STYLE[entry.sync_state]
    s = fmt("{} ", symbol, color=colorize, fg=fg)
    s += fmt("{}", short_change_id(entry.change_id), color=colorize, fg="cyan")
    s += " {}".format(entry.title or "(no description)")
    if entry.branch_name:
        s += fmt(" [{}]", entry.branch_name, color=colorize, fg="gray")
    if entry.pr_number is not None:
        if colorize and entry.pr_url:
            # Clickable PR link in terminals that support OSC 8
            s += fmt(" (\033]8;;{}\033\\#{}\033]8;;\033\\)", entry.pr_url, entry.pr_number,
                     color=True, fg="blue")
        elif entry.pr_url:
            s += " (#{} {})".format(entry.pr_number, entry.pr_url)
        else:
            s += fmt(" (#{})", entry.pr_number, color=colorize, fg="blue")
    if entry.sync_state != SyncState.UP_TO_DATE:
        s += fmt(" {}", entry.sync_state.value, color=colorize, fg=fg)
        if entry.detail:
            s += ": {}".format(entry.detail)
    return s


def format_report(report: StatusReport, *, colorize: bool = False) -> str:
    """Render the stack as a tree with trunk at the bottom, like ``jj log``."""
    from jjstack.utils.ui import ASCII_TREE

    tree: Dict[str, dict] = {}
    node = tree
    for entry in report.entries:
        child: Dict[str, dict] = {}
        node[format_entry(entry, colorize=colorize)] = child
        node = child
    root = {fmt("{}", report.trunk_branch, color=colorize, fg="green"): tree}
    s = ASCII_TREE(root)
    return "\n".join(reversed(s.split("\n")))
