"""
Dialer Handoff Interface
"""
from abc import ABC, abstractmethod


class DialerHandoff(ABC):
    """
    Hands a phone number to the device's native dialer.

    Fire-and-forget: nothing about the real call is observable afterwards.
    """

    @abstractmethod
    def handoff(self, agent_id: str, phone_digits: str) -> str:
        """Trigger the dial and return the URI that was handed off"""
        pass
