"""
Settings API
Owner and agent access PINs
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from leaddesk.api.v1.dependencies import get_container, store_error
from leaddesk.core.container import ConsoleContainer
from leaddesk.domain.interfaces.lead_store import LeadStoreError
from leaddesk.domain.services.access import AccessPins

router = APIRouter(prefix="/settings", tags=["settings"])


class PinUpdate(BaseModel):
    admin: str = Field(..., min_length=4)
    agent: str = Field(..., min_length=4)


@router.get("/pins", response_model=AccessPins)
async def get_pins(container: ConsoleContainer = Depends(get_container)):
    return await container.access.get_pins()


@router.put("/pins", response_model=AccessPins)
async def update_pins(body: PinUpdate, container: ConsoleContainer = Depends(get_container)):
    pins = AccessPins(admin=body.admin, agent=body.agent)
    try:
        await container.access.set_pins(pins)
    except LeadStoreError as e:
        raise store_error(e)
    return pins
