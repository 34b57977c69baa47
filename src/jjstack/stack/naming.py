"""Deterministic mapping from change ids to remote branch names.

There is no local database of which branch belongs to which change: the
branch name is recomputed from the change id on every run, and the remote is
re-probed. A change whose PR was closed without merging moves to the next
epoch, which yields a fresh name that can never collide with the stale one
(hex digests never contain ``-``).
"""

import hashlib

from jjstack.utils.types import BranchName, CHANGE_ID_HASH_LENGTH, ChangeId, SHORT_CHANGE_ID_LENGTH


def change_digest(change_id: ChangeId) -> str:
    """Truncated stable hash of a change id."""
    return hashlib.sha1(change_id.encode("UTF-8")).hexdigest()[:CHANGE_ID_HASH_LENGTH]


def branch_name(change_id: ChangeId, prefix: str, epoch: int = 0) -> BranchName:
    """Remote branch name for a change at a given disambiguation epoch."""
    if epoch < 0:
        raise ValueError("epoch must be non-negative, got {}".format(epoch))
    name = prefix + change_digest(change_id)
    if epoch:
        name += "-{}".format(epoch)
    return BranchName(name)


def short_change_id(change_id: ChangeId) -> str:
    """Abbreviated change id for display."""
    return change_id[:SHORT_CHANGE_ID_LENGTH]
