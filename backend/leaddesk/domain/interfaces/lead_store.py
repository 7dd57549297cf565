"""
Lead Store Interface
Abstract CRUD facade over the remote lead backend
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from leaddesk.domain.models.lead import Lead, LeadCandidate, LeadStatus, LeadUpdate


class LeadStoreError(Exception):
    """Raised when the lead backend cannot complete an operation"""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class LeadNotFoundError(LeadStoreError):
    """Raised when an update or delete targets an unknown lead id"""

    def __init__(self, operation: str, lead_id: str):
        self.lead_id = lead_id
        super().__init__(operation, f"lead {lead_id} not found")


class LeadStore(ABC):
    """
    Abstract base class for lead backends.

    Implementations own intake validation: candidates with a bad digit
    count or a duplicate phone are persisted with status ``invalid``
    rather than rejected.
    """

    @abstractmethod
    async def fetch_all(self) -> List[Lead]:
        """All leads, most recently created first"""
        pass

    @abstractmethod
    async def insert_one(self, candidate: LeadCandidate) -> Lead:
        """Validate and persist one lead"""
        pass

    @abstractmethod
    async def insert_many(self, candidates: Sequence[LeadCandidate]) -> List[Lead]:
        """Validate and persist a batch, deduplicating within the batch too"""
        pass

    @abstractmethod
    async def update_status(self, lead_id: str, update: LeadUpdate) -> None:
        """Partial update of one lead; raises LeadNotFoundError"""
        pass

    @abstractmethod
    async def delete_one(self, lead_id: str) -> None:
        pass

    @abstractmethod
    async def delete_by_status(self, status: LeadStatus) -> int:
        """Delete every lead in a status, returning the number removed"""
        pass

    @abstractmethod
    async def reset_to_pending(self, lead_id: str) -> None:
        """Back to pending with notes, duration and timestamp cleared"""
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        pass

    @abstractmethod
    async def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def set_config(self, key: str, value: Dict[str, Any]) -> None:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name"""
        pass
