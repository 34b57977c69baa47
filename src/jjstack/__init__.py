"""jjstack - Jujutsu changes as stacked GitHub pull requests."""

from .main import main

from .stack.engine import SyncEngine, SyncResult
from .stack.models import Action, ActionKind, Change, Plan, PRState, PullRequest, Stack
from .stack.naming import branch_name
from .stack.status import StatusReport, SyncState
from .utils.config import JjStackConfig, get_config
from .utils.errors import (
    DetachedFromTrunk, EmptyDescription, ForgeAPIError, JjStackError, NonFastForwardOrRace,
    NotLinearAncestry, ProbeUnknown, RestackConflict, SyncError
)
