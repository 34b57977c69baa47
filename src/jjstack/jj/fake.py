"""Fake change-tracking backend for testing.

FakeChangeBackend is an in-memory implementation that accepts pre-configured
state in its constructor.
"""

from typing import Dict, Iterable, List, Optional, Set

from jjstack.jj.abc import ChangeBackend
from jjstack.stack.models import Change
from jjstack.utils.errors import CommandError
from jjstack.utils.types import ChangeId, CommitId, TreeId


def make_change(change_id: str, parent: Optional[str], tree: str, description: str = "",
                commit_id: Optional[str] = None, parents: Iterable[str] = ()) -> Change:
    """Build a Change with terse arguments; ``parents`` overrides ``parent`` for merges."""
    parent_ids = tuple(ChangeId(p) for p in parents) or ((ChangeId(parent),) if parent else ())
    return Change(
        change_id=ChangeId(change_id),
        commit_id=CommitId(commit_id or "commit-{}-{}".format(change_id, tree)),
        parent_change_ids=parent_ids,
        tree_id=TreeId(tree),
        description=description,
    )


class FakeChangeBackend(ChangeBackend):
    """In-memory fake of the change graph.

    Args:
        changes: every known change, trunk and its ancestors included
        working: change id of the working copy change
        trunk: change id trunk points at
        trunk_ancestry: change ids considered part of trunk (trunk is always included)
    """

    def __init__(
        self,
        *,
        changes: Iterable[Change],
        working: str,
        trunk: str,
        trunk_ancestry: Optional[Iterable[str]] = None,
    ) -> None:
        self._changes: Dict[ChangeId, Change] = {c.change_id: c for c in changes}
        self._working = ChangeId(working)
        self._trunk = ChangeId(trunk)
        self._trunk_ancestry: Set[ChangeId] = {ChangeId(c) for c in (trunk_ancestry or ())}
        self._trunk_ancestry.add(self._trunk)
        self.info_calls: List[ChangeId] = []

    def update(self, change: Change) -> None:
        """Replace a change, as an amend would."""
        self._changes[change.change_id] = change

    def resolve_working_change(self, revision: Optional[str] = None) -> ChangeId:
        if revision is None or revision == "@":
            return self._working
        if ChangeId(revision) not in self._changes:
            raise CommandError("Revision \"{}\" doesn't exist".format(revision))
        return ChangeId(revision)

    def change_info(self, change_id: ChangeId) -> Change:
        self.info_calls.append(change_id)
        try:
            return self._changes[change_id]
        except KeyError:
            raise CommandError("Revision \"{}\" doesn't exist".format(change_id))

    def trunk_change(self) -> Change:
        return self.change_info(self._trunk)

    def in_trunk(self, change_id: ChangeId) -> bool:
        return change_id in self._trunk_ancestry
