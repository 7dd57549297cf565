"""
API Dependencies
Shared dependencies for the console container and agent identity
"""
from fastapi import Depends, Header, HTTPException, Request, status

from leaddesk.core.container import ConsoleContainer
from leaddesk.domain.interfaces.lead_store import LeadNotFoundError, LeadStoreError
from leaddesk.domain.services.call_session_machine import CallSessionMachine

DEFAULT_AGENT_ID = "default"


def get_container(request: Request) -> ConsoleContainer:
    """
    Container built at startup.
    
    Raises:
        HTTPException: 503 if startup did not complete
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Console is not initialized"
        )
    return container


def get_agent_id(x_agent_id: str = Header(DEFAULT_AGENT_ID, alias="X-Agent-Id")) -> str:
    agent_id = x_agent_id.strip()
    if not agent_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Agent-Id header must not be blank"
        )
    return agent_id


async def get_machine(
    agent_id: str = Depends(get_agent_id),
    container: ConsoleContainer = Depends(get_container),
) -> CallSessionMachine:
    """The calling agent's session state machine (recovered on first use)"""
    return await container.registry.get_machine(agent_id)


def store_error(e: LeadStoreError) -> HTTPException:
    """Map a store failure to a blocking, operation-named HTTP error"""
    if isinstance(e, LeadNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Lead store unavailable: {e}"
    )
