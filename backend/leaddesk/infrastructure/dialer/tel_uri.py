"""
Tel URI Dialer
Builds the tel: URI the agent's device opens in its native dialer
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel

from leaddesk.domain.interfaces.dialer import DialerHandoff

logger = logging.getLogger(__name__)


class DialHandoff(BaseModel):
    """Last handoff issued to an agent's device"""
    agent_id: str
    uri: str
    issued_at: datetime


class TelUriDialer(DialerHandoff):
    """
    The server cannot place the call itself; it returns the URI and the
    console opens it. The last handoff per agent is kept for inspection.
    """

    SCHEME = "tel"

    def __init__(self):
        self._last: Dict[str, DialHandoff] = {}

    def build_uri(self, phone_digits: str) -> str:
        if not phone_digits:
            raise ValueError("Cannot dial an empty phone number")
        return f"{self.SCHEME}:{phone_digits}"

    def handoff(self, agent_id: str, phone_digits: str) -> str:
        uri = self.build_uri(phone_digits)
        self._last[agent_id] = DialHandoff(agent_id=agent_id, uri=uri, issued_at=datetime.utcnow())
        logger.debug(f"Dial handoff for agent {agent_id}: {uri}")
        return uri

    def last_handoff(self, agent_id: str) -> Optional[DialHandoff]:
        return self._last.get(agent_id)
