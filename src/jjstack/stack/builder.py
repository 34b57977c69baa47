"""Construction of the commits pushed for each change.

Commits are written straight into the object store with the change's tree;
the working directory, index and local branches are never touched.
"""

from typing import List

from jjstack.git.abc import GitBackend
from jjstack.stack.models import Change
from jjstack.utils.errors import RestackConflict
from jjstack.utils.types import BranchName, CommitId, PathName, TreeId

UPDATED_FROM_TRAILER = "Updated-From-Change"


def append_message(change: Change) -> str:
    """Message of a follow-up commit: the description plus a trailer naming the revision."""
    return "{}\n\n{}: {} @ {}\n".format(
        change.description.rstrip(), UPDATED_FROM_TRAILER, change.change_id, change.commit_id
    )


def restack_message(change: Change, base_branch: BranchName) -> str:
    return "Restack {} onto {}\n\n{}: {} @ {}\n".format(
        change.title or change.change_id, base_branch, UPDATED_FROM_TRAILER, change.change_id, change.commit_id
    )


class CommitBuilder:
    """Builds initial, follow-up and merge commits for changes."""

    def __init__(self, git: GitBackend):
        self.git = git

    def build_initial(self, change: Change, base_tip: CommitId) -> CommitId:
        return self.git.create_commit(change.tree_id, [base_tip], change.description.rstrip() + "\n")

    def build_append(self, change: Change, head: CommitId) -> CommitId:
        return self.git.create_commit(change.tree_id, [head], append_message(change))

    def check_restack(self, change: Change, head: CommitId, base_tip: CommitId,
                      expected_base_tree: TreeId) -> List[PathName]:
        """Paths that make restacking ``head`` onto ``base_tip`` unsafe; empty when it is fine.

        Conflicts between the branch and its new base only matter when the
        base carries content the local change was not built on: otherwise the
        change's own tree already is the resolution.
        """
        conflicts = self.git.merge_conflicts(head, base_tip)
        if not conflicts:
            return []
        if self.git.read_tree(base_tip) == expected_base_tree:
            return []
        return conflicts

    def build_restack(self, change: Change, head: CommitId, base_tip: CommitId,
                      base_branch: BranchName, expected_base_tree: TreeId) -> CommitId:
        """Merge commit with the old head first and the new base second, carrying the change's tree."""
        conflicts = self.check_restack(change, head, base_tip, expected_base_tree)
        if conflicts:
            raise RestackConflict(
                "Cannot restack onto {}, conflicts in: {}".format(base_branch, ", ".join(conflicts)),
                change.change_id,
                conflicts,
            )
        return self.git.create_commit(change.tree_id, [head, base_tip], restack_message(change, base_branch))
