"""Resolution of the linear stack between trunk and the working change."""

from typing import List, Optional

from jjstack.jj.abc import ChangeBackend
from jjstack.stack.models import Change, Stack
from jjstack.stack.naming import short_change_id
from jjstack.utils.errors import DetachedFromTrunk, NotLinearAncestry
from jjstack.utils.logging import debug, info


def _is_empty_working_change(change: Change, parent: Change) -> bool:
    # What `jj new` leaves behind: nothing described, nothing changed
    return change.is_empty_description and change.tree_id == parent.tree_id


def resolve_stack(
    backend: ChangeBackend,
    revision: Optional[str] = None,
    *,
    max_depth: int,
    skip_empty_working_change: bool = True,
) -> Stack:
    """Walk parents from ``revision`` (default: the working change) down to trunk.

    The returned stack is ordered bottom first and excludes the trunk change
    it is rooted on, which is kept as ``Stack.trunk``.

    Raises:
        NotLinearAncestry: a change of the stack has more than one parent
        DetachedFromTrunk: a root was reached, or trunk is more than ``max_depth`` changes away
    """
    top = backend.resolve_working_change(revision)
    changes: List[Change] = []
    cur = top
    while not backend.in_trunk(cur):
        if len(changes) >= max_depth:
            raise DetachedFromTrunk(
                "Trunk not found within {} changes of {}".format(max_depth, short_change_id(top)), cur
            )
        change = backend.change_info(cur)
        if len(change.parent_change_ids) > 1:
            raise NotLinearAncestry(
                "Change has {} parents, only linear stacks are supported".format(len(change.parent_change_ids)),
                change.change_id,
            )
        parent = change.parent_change_id
        if parent is None:
            raise DetachedFromTrunk("Reached a root change without meeting trunk", change.change_id)
        changes.append(change)
        cur = parent

    base = backend.change_info(cur)
    changes.reverse()

    if skip_empty_working_change and revision in (None, "@") and changes:
        parent_change = changes[-2] if len(changes) > 1 else base
        if _is_empty_working_change(changes[-1], parent_change):
            debug("Ignoring empty working change {}", short_change_id(changes[-1].change_id))
            changes.pop()

    trunk = backend.trunk_change()
    if trunk.change_id != base.change_id and changes:
        info(
            "Stack is rooted on {}, trunk is now at {}",
            short_change_id(base.change_id),
            short_change_id(trunk.change_id),
        )
    return Stack(trunk=base, changes=tuple(changes))
