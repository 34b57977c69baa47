"""Abstract base class for change-tracking (Jujutsu) operations."""

from abc import ABC, abstractmethod
from typing import Optional

from jjstack.stack.models import Change
from jjstack.utils.types import ChangeId


class ChangeBackend(ABC):
    """Abstract interface for reading the local change graph.

    All implementations (real and fake) must implement this interface. The
    engine only ever reads through it.
    """

    @abstractmethod
    def resolve_working_change(self, revision: Optional[str] = None) -> ChangeId:
        """Return the change id of ``revision``, or of the working copy change when omitted."""
        ...

    @abstractmethod
    def change_info(self, change_id: ChangeId) -> Change:
        """Return the full Change for a change id."""
        ...

    @abstractmethod
    def trunk_change(self) -> Change:
        """Return the change trunk currently points at."""
        ...

    @abstractmethod
    def in_trunk(self, change_id: ChangeId) -> bool:
        """Whether the change is trunk or one of trunk's ancestors."""
        ...

    def parent_of(self, change_id: ChangeId) -> Optional[ChangeId]:
        """Return the single parent of a change (None for a root change)."""
        return self.change_info(change_id).parent_change_id
