"""Error taxonomy for jjstack.

Everything raised on purpose by the engine derives from ``JjStackError``.
``SyncError`` subclasses carry the change they are about so the failure can
be reported against the offending entry of the stack.
"""

from typing import Optional

from jjstack.utils.types import ChangeId, CmdArgs


class JjStackError(Exception):
    """Base class for all jjstack errors."""


class CommandError(JjStackError):
    """A subprocess exited with an error or timed out."""

    def __init__(self, message: str, cmd: Optional[CmdArgs] = None, returncode: Optional[int] = None,
                 stderr: str = ""):
        super().__init__(message)
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class SyncError(JjStackError):
    """A failure attributable to one change of the stack."""

    def __init__(self, message: str, change_id: Optional[ChangeId] = None):
        super().__init__(message)
        self.change_id = change_id

    def __str__(self) -> str:
        msg = super().__str__()
        if self.change_id is not None:
            return f"{msg} (change {self.change_id})"
        return msg


class NotLinearAncestry(SyncError):
    """The ancestry between trunk and the working change branches or merges."""


class DetachedFromTrunk(SyncError):
    """Trunk could not be reached by walking parents."""


class EmptyDescription(SyncError):
    """A change without a description cannot become a pull request."""


class ProbeUnknown(SyncError):
    """Remote state for a change (or one below it) could not be read."""


class NonFastForwardOrRace(SyncError):
    """The remote branch moved since it was probed."""


class RestackConflict(SyncError):
    """The branch and its new base cannot be merged into the change's tree."""

    def __init__(self, message: str, change_id: Optional[ChangeId] = None, paths=()):
        super().__init__(message, change_id)
        self.paths = tuple(paths)


class ForgeAPIError(SyncError):
    """The forge (GitHub) rejected or failed a request."""
