"""
Access PIN Service
Reads and updates the owner and agent PINs kept in the store's config table.
"""
import logging
from typing import Dict, Optional

from pydantic import BaseModel

from leaddesk.domain.interfaces.lead_store import LeadStore, LeadStoreError

logger = logging.getLogger(__name__)

PASSWORDS_KEY = "passwords"
DEFAULT_PINS = {"admin": "1234", "agent": "agent123"}


class AccessPins(BaseModel):
    admin: str
    agent: str


class AccessPinService:
    def __init__(self, store: LeadStore, defaults: Optional[Dict[str, str]] = None):
        self.store = store
        self.defaults = AccessPins(**(defaults or DEFAULT_PINS))

    async def get_pins(self) -> AccessPins:
        """Stored PINs; defaults when unset or unreadable"""
        try:
            value = await self.store.get_config(PASSWORDS_KEY)
        except LeadStoreError as e:
            logger.error(f"Could not read access PINs, using defaults: {e}")
            return self.defaults
        if not value:
            return self.defaults
        return AccessPins(
            admin=str(value.get("admin") or self.defaults.admin),
            agent=str(value.get("agent") or self.defaults.agent),
        )

    async def set_pins(self, pins: AccessPins) -> None:
        await self.store.set_config(PASSWORDS_KEY, pins.model_dump())
