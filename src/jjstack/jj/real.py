"""Change-tracking backend driving the ``jj`` CLI.

Assumes a colocated repository, so commit ids reported by jj can be handed
to git directly to look up their trees.
"""

from typing import Optional

from jjstack.jj.abc import ChangeBackend
from jjstack.stack.models import Change
from jjstack.utils.errors import CommandError
from jjstack.utils.shell import run_always_return
from jjstack.utils.types import ChangeId, CmdArgs, CommitId, TreeId

# Description goes last: it is free text and may contain the separator
_CHANGE_TEMPLATE = (
    'commit_id ++ "|" ++ change_id ++ "|" ++ '
    'parents.map(|p| p.change_id()).join(",") ++ "|" ++ description'
)


def parse_change_line(output: str, tree_id: TreeId) -> Change:
    """Parse the output of ``jj log`` with the change template."""
    parts = output.split("|", 3)
    if len(parts) != 4:
        raise CommandError(
            "Unexpected jj output format: expected 4 parts, got {}".format(len(parts))
        )
    commit_id, change_id, parents, description = parts
    parent_change_ids = tuple(ChangeId(p) for p in parents.split(",") if p)
    return Change(
        change_id=ChangeId(change_id.strip()),
        commit_id=CommitId(commit_id.strip()),
        parent_change_ids=parent_change_ids,
        tree_id=tree_id,
        description=description.strip(),
    )


class JujutsuBackend(ChangeBackend):
    """Real implementation that calls the jj CLI."""

    def __init__(self, *, timeout: Optional[float] = None):
        self.timeout = timeout

    def _jj_log(self, revset: str, template: str) -> str:
        return run_always_return(
            CmdArgs(["jj", "log", "--no-graph", "-r", revset, "-T", template]),
            timeout=self.timeout,
        )

    def _tree_of(self, commit_id: str) -> TreeId:
        return TreeId(run_always_return(
            CmdArgs(["git", "rev-parse", "{}^{{tree}}".format(commit_id)]), timeout=self.timeout
        ))

    def _change(self, revset: str) -> Change:
        out = run_always_return(
            CmdArgs(["jj", "log", "--no-graph", "-r", revset, "-T", _CHANGE_TEMPLATE]),
            timeout=self.timeout,
        )
        commit_id = out.split("|", 1)[0]
        return parse_change_line(out, self._tree_of(commit_id))

    def resolve_working_change(self, revision: Optional[str] = None) -> ChangeId:
        return ChangeId(self._jj_log(revision or "@", "change_id"))

    def change_info(self, change_id: ChangeId) -> Change:
        return self._change(change_id)

    def trunk_change(self) -> Change:
        return self._change("trunk()")

    def in_trunk(self, change_id: ChangeId) -> bool:
        out = self._jj_log("{} & ::trunk()".format(change_id), "change_id")
        return bool(out)
