"""Stack data models for jjstack."""

import dataclasses
import enum
from typing import Dict, Iterator, List, Optional, Tuple, Type

from jjstack.utils.errors import SyncError
from jjstack.utils.types import BranchName, ChangeId, CommitId, TreeId


@dataclasses.dataclass(frozen=True)
class Change:
    """A node of the local stack, as reported by the change-tracking backend."""
    change_id: ChangeId
    commit_id: CommitId
    parent_change_ids: Tuple[ChangeId, ...]
    tree_id: TreeId
    description: str

    @property
    def parent_change_id(self) -> Optional[ChangeId]:
        """The single parent of a change in a linear stack."""
        return self.parent_change_ids[0] if self.parent_change_ids else None

    @property
    def title(self) -> str:
        for line in self.description.splitlines():
            if line.strip():
                return line.strip()
        return ""

    @property
    def body(self) -> str:
        lines = self.description.strip().splitlines()
        return "\n".join(lines[1:]).strip()

    @property
    def is_empty_description(self) -> bool:
        return not self.title


@dataclasses.dataclass(frozen=True)
class Stack:
    """Changes from trunk (exclusive) to the working change (inclusive)."""
    trunk: Change
    changes: Tuple[Change, ...]

    def __iter__(self) -> Iterator[Change]:
        return iter(self.changes)

    def __len__(self) -> int:
        return len(self.changes)

    def __getitem__(self, i: int) -> Change:
        return self.changes[i]


class PRState(enum.Enum):
    """Pull request states as reported by GitHub."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


@dataclasses.dataclass(frozen=True)
class PullRequest:
    """A pull request on the forge."""
    number: int
    head_branch: BranchName
    base_branch: BranchName
    state: PRState
    title: str = ""
    body: str = ""
    url: str = ""

    @property
    def is_stale(self) -> bool:
        """Closed without being merged; never reused."""
        return self.state == PRState.CLOSED


@dataclasses.dataclass(frozen=True)
class RemoteBranch:
    """A branch on the remote, with the PR base it is currently shown against."""
    name: BranchName
    head: CommitId
    base_branch: Optional[BranchName] = None


@dataclasses.dataclass(frozen=True)
class RemoteEntry:
    """What exists remotely for one (change, epoch) branch name."""
    epoch: int
    name: BranchName
    branch: Optional[RemoteBranch]
    pr: Optional[PullRequest]
    head_tree: Optional[TreeId] = None


@dataclasses.dataclass
class ProbeResult:
    """Remote state gathered for one change."""
    change_id: ChangeId
    candidates: List[RemoteEntry] = dataclasses.field(default_factory=list)
    next_epoch: int = 0
    # Whether the current head already contains the tip of its base branch
    contains_base: bool = False
    error: Optional[str] = None

    @property
    def unknown(self) -> bool:
        return self.error is not None

    @property
    def current(self) -> Optional[RemoteEntry]:
        """The most recent branch/PR pair for this change, if any."""
        return self.candidates[-1] if self.candidates else None


@dataclasses.dataclass
class ProbeReport:
    """Probe results for a whole stack."""
    trunk_branch: BranchName
    trunk_tip: Optional[CommitId]
    results: Dict[ChangeId, ProbeResult]
    trunk_error: Optional[str] = None

    def __getitem__(self, change_id: ChangeId) -> ProbeResult:
        return self.results[change_id]


class ActionKind(enum.Enum):
    """What the planner decided to do for one change."""
    NOOP = "noop"
    CREATE_BRANCH_AND_PR = "create"
    APPEND_COMMIT = "append"
    RESTACK = "restack"
    REPLACE_STALE_PR = "replace"
    SKIP_MERGED = "merged"
    BLOCKED = "blocked"


@dataclasses.dataclass(frozen=True)
class Action:
    """One planned step; everything needed to apply it without re-probing."""
    kind: ActionKind
    change: Change
    branch: BranchName
    base_branch: Optional[BranchName]
    epoch: int = 0
    # Remote head observed when probing; None when the branch does not exist yet
    expected_head: Optional[CommitId] = None
    base_tip: Optional[CommitId] = None
    # Tree the base tip should have, if the local stack was built on top of it
    expected_base_tree: Optional[TreeId] = None
    pr: Optional[PullRequest] = None
    stale_pr: Optional[PullRequest] = None
    retarget_base: bool = False
    reason: str = ""
    # For BLOCKED actions, what applying it raises
    blocker: Optional[Type[SyncError]] = None

    @property
    def needs_pr(self) -> bool:
        """A PR has to be opened when applying this action."""
        if self.kind in (ActionKind.CREATE_BRANCH_AND_PR, ActionKind.REPLACE_STALE_PR):
            return True
        if self.kind in (ActionKind.SKIP_MERGED, ActionKind.BLOCKED):
            return False
        return self.pr is None

    @property
    def is_noop(self) -> bool:
        """Applying this action would change nothing remotely."""
        if self.kind == ActionKind.SKIP_MERGED:
            return True
        return self.kind == ActionKind.NOOP and not self.retarget_base and not self.needs_pr


@dataclasses.dataclass(frozen=True)
class Plan:
    """Ordered actions, bottom of the stack first."""
    stack: Stack
    actions: Tuple[Action, ...]

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    @property
    def kinds(self) -> List[ActionKind]:
        return [a.kind for a in self.actions]

    def pending(self) -> List[Action]:
        """Actions that would mutate the remote."""
        return [a for a in self.actions if not a.is_noop]

    @property
    def is_converged(self) -> bool:
        return not self.pending()


@dataclasses.dataclass
class ActionOutcome:
    """Result of applying (or not applying) one action."""
    action: Action
    applied: bool = False
    new_head: Optional[CommitId] = None
    pr: Optional[PullRequest] = None
    error: Optional[Exception] = None
    # Not attempted because an earlier action failed
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped and (self.applied or self.action.is_noop)


@dataclasses.dataclass
class ApplyResult:
    """Per-action outcomes of applying a plan."""
    plan: Plan
    outcomes: List[ActionOutcome]

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failure(self) -> Optional[ActionOutcome]:
        for o in self.outcomes:
            if o.error is not None:
                return o
        return None
