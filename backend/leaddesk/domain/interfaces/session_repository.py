"""
Session Repository Interface
Durable key-value slot holding the agent's in-flight call
"""
from abc import ABC, abstractmethod
from typing import Optional


class SessionRepository(ABC):
    """
    Recovery slot capability injected into the call session state machine.

    Payloads are the plain dicts produced by CallSession.to_recovery_dict().
    """

    @abstractmethod
    async def save(self, session_key: str, payload: dict) -> None:
        pass

    @abstractmethod
    async def load(self, session_key: str) -> Optional[dict]:
        """
        Read the slot.

        Returns None when the slot is empty or unreadable.
        """
        pass

    @abstractmethod
    async def clear(self, session_key: str) -> None:
        pass
