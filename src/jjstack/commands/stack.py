"""Stack commands - status, plan, sync."""

from jjstack.git.remote import shared_ssh_session
from jjstack.stack.engine import SyncEngine
from jjstack.stack.models import Action, ActionKind, ApplyResult, Plan, Stack
from jjstack.stack.naming import short_change_id
from jjstack.stack.status import format_report
from jjstack.utils.logging import color_stdout, cout, die, error, fmt
from jjstack.utils.ui import confirm

_KIND_COLOR = {
    ActionKind.NOOP: "green",
    ActionKind.SKIP_MERGED: "green",
    ActionKind.CREATE_BRANCH_AND_PR: "cyan",
    ActionKind.APPEND_COMMIT: "yellow",
    ActionKind.RESTACK: "yellow",
    ActionKind.REPLACE_STALE_PR: "magenta",
    ActionKind.BLOCKED: "red",
}


def format_action(action: Action, *, colorize: bool) -> str:
    s = fmt("{:<8}", action.kind.value, color=colorize, fg=_KIND_COLOR[action.kind])
    s += fmt(" {}", short_change_id(action.change.change_id), color=colorize, fg="cyan")
    s += " {}".format(action.change.title or "(no description)")
    if action.kind != ActionKind.BLOCKED:
        s += fmt(" -> {} onto {}", action.branch, action.base_branch, color=colorize, fg="gray")
    extra = []
    if action.retarget_base:
        extra.append("retarget PR")
    if action.needs_pr and action.kind == ActionKind.NOOP:
        extra.append("open PR")
    if action.reason and action.kind != ActionKind.NOOP:
        extra.append(action.reason)
    if extra:
        s += " ({})".format("; ".join(extra))
    return s


def print_plan(plan: Plan):
    # Top of the stack first, like `jj log`
    for action in reversed(plan.actions):
        cout("{}\n", format_action(action, colorize=color_stdout()))


def report_failure(result: ApplyResult):
    failure = result.failure
    if failure is None:
        return
    error("{}: {}", short_change_id(failure.action.change.change_id), failure.error)
    skipped = [o for o in result.outcomes if o.skipped]
    if skipped:
        error("Not applied: {}", ", ".join(short_change_id(o.action.change.change_id) for o in skipped))
    die("Sync failed, already pushed changes are kept; run sync again once fixed")


def _nothing_to_sync(stack: Stack) -> bool:
    if stack.changes:
        return False
    cout("Nothing to sync, the working change is already in trunk\n", fg="green")
    return True


def cmd_status(engine: SyncEngine, stack: Stack, args):
    """Show the sync status of the current stack."""
    if _nothing_to_sync(stack):
        return
    with shared_ssh_session():
        report = engine.status(stack)
    print(format_report(report, colorize=color_stdout()))


def cmd_plan(engine: SyncEngine, stack: Stack, args):
    """Show what sync would do, without doing it."""
    if _nothing_to_sync(stack):
        return
    with shared_ssh_session():
        plan = engine.plan(stack)
    print_plan(plan)


def cmd_sync(engine: SyncEngine, stack: Stack, args):
    """Push the current stack and open or update its PRs."""
    if _nothing_to_sync(stack):
        return
    with shared_ssh_session():
        plan = engine.plan(stack)
        if plan.is_converged:
            cout("✓ Stack is up to date\n", fg="green")
            return
        print_plan(plan)
        if not args.force:
            confirm()
        if args.once:
            result = engine.apply(plan)
            report_failure(result)
            return
        sync_result = engine.sync(stack, plan=plan)
    for r in sync_result.passes:
        report_failure(r)
    if not sync_result.converged:
        die("Stack did not converge after {} passes", len(sync_result.passes))
    cout("✓ Stack synced\n", fg="green")
