"""
Agent Console API
Queue views and the call session lifecycle for one agent.

The agent is identified by the X-Agent-Id header. Each agent owns a single
call session state machine; these endpoints only drive its transitions.

Flow:
    POST /agent/dial      -> tel: URI to open on the device
    POST /agent/resume    -> sent by the client when it regains the foreground
    POST /agent/submit    -> outcome form (long calls only)
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from leaddesk.api.v1.dependencies import get_agent_id, get_container, get_machine
from leaddesk.core.container import ConsoleContainer
from leaddesk.domain.models.lead import Lead
from leaddesk.domain.models.session import CallState, ResumeSignal
from leaddesk.domain.services.call_session_machine import (
    CallSessionMachine,
    EndCallResult,
    InvalidSessionTransition,
    SessionView,
)
from leaddesk.domain.services.outcome_pipeline import (
    FormRequirements,
    SubmissionResult,
    SubmissionStatus,
)
from leaddesk.domain.services.queue_selector import WorkQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["agent"])


class QueueSummary(BaseModel):
    """Queue sizes derived from the current snapshot"""
    revision: int
    counts: Dict[WorkQueue, int]
    queues: Dict[WorkQueue, List[Lead]]
    next_lead: Optional[Lead] = None


class QueueListing(BaseModel):
    revision: int
    queue: WorkQueue
    items: List[Lead]


class SessionResponse(BaseModel):
    session: SessionView
    lead: Optional[Lead] = None
    requirements: Optional[FormRequirements] = None


class DialRequest(BaseModel):
    queue: WorkQueue = WorkQueue.POOL
    lead_id: Optional[str] = None


class DialResponse(BaseModel):
    lead: Lead
    uri: str
    session: SessionView


class ResumeRequest(BaseModel):
    signal: ResumeSignal = ResumeSignal.VISIBILITY


class EndCallResponse(BaseModel):
    """Result of a resume; ``ended`` is false for repeated signals"""
    ended: bool
    result: Optional[EndCallResult] = None
    session: SessionView


class SubmitRequest(BaseModel):
    status: Optional[str] = None
    notes: str = ""
    name: Optional[str] = Field(None, description="Corrected lead name, if any")


class SubmitResponse(BaseModel):
    result: SubmissionResult
    session: SessionView


def transition_error(e: InvalidSessionTransition) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


def session_response(machine: CallSessionMachine) -> SessionResponse:
    requirements = None
    if machine.state == CallState.OUTCOME:
        requirements = machine.requirements()
    return SessionResponse(
        session=machine.view(),
        lead=machine.active_lead,
        requirements=requirements,
    )


@router.get("/queues", response_model=QueueSummary)
async def get_queues(container: ConsoleContainer = Depends(get_container)):
    """Fresh pool, interested and call-back queues plus the next pool lead"""
    snapshot = container.collection.snapshot
    return QueueSummary(
        revision=snapshot.revision,
        counts=container.selector.counts(snapshot),
        queues={queue: list(container.selector.leads(snapshot, queue)) for queue in WorkQueue},
        next_lead=container.selector.next_lead(snapshot),
    )


@router.get("/queues/{queue}", response_model=QueueListing)
async def list_queue(queue: WorkQueue, container: ConsoleContainer = Depends(get_container)):
    snapshot = container.collection.snapshot
    return QueueListing(
        revision=snapshot.revision,
        queue=queue,
        items=list(container.selector.leads(snapshot, queue)),
    )


@router.get("/session", response_model=SessionResponse)
async def get_session(machine: CallSessionMachine = Depends(get_machine)):
    """Current call state (recovered from the slot on first access)"""
    return session_response(machine)


@router.post("/dial", response_model=DialResponse)
async def dial(
    body: DialRequest,
    agent_id: str = Depends(get_agent_id),
    container: ConsoleContainer = Depends(get_container),
):
    """
    Start a call.
    
    Pool dials take the head of the fresh pool unless a lead_id is given;
    follow-up queues require the lead_id.
    """
    try:
        lead, uri = await container.registry.dial(agent_id, body.queue, body.lead_id)
    except InvalidSessionTransition as e:
        raise transition_error(e)

    machine = await container.registry.get_machine(agent_id)
    return DialResponse(lead=lead, uri=uri, session=machine.view())


@router.post("/resume", response_model=EndCallResponse)
async def resume(body: ResumeRequest, machine: CallSessionMachine = Depends(get_machine)):
    """
    End the call on foreground resume.
    
    Safe to send once per signal type; only the first one ends the call.
    """
    result = await machine.resume(body.signal)
    return EndCallResponse(ended=result is not None, result=result, session=machine.view())


@router.post("/hangup", response_model=EndCallResponse)
async def hang_up(machine: CallSessionMachine = Depends(get_machine)):
    result = await machine.hang_up()
    return EndCallResponse(ended=result is not None, result=result, session=machine.view())


@router.post("/submit", response_model=SubmitResponse)
async def submit_outcome(body: SubmitRequest, machine: CallSessionMachine = Depends(get_machine)):
    """
    Submit the outcome form.
    
    Blocked or rejected forms return 422 with the typed notes echoed back so
    the client can keep them; a failed write returns 503 and the session
    stays in outcome for a retry.
    """
    try:
        result = await machine.submit(body.status, body.notes, body.name)
    except InvalidSessionTransition as e:
        raise transition_error(e)

    if result.status in (SubmissionStatus.BLOCKED, SubmissionStatus.REJECTED):
        return JSONResponse(
            status_code=422,
            content={
                "status": result.status.value,
                "reason": result.reason,
                "notes": body.notes,
            },
        )
    if result.status == SubmissionStatus.WRITE_ERROR:
        return JSONResponse(
            status_code=503,
            content={
                "status": result.status.value,
                "reason": result.reason,
                "notes": body.notes,
            },
        )
    return SubmitResponse(result=result, session=machine.view())


@router.post("/back", response_model=SessionResponse)
async def back(machine: CallSessionMachine = Depends(get_machine)):
    """Leave the outcome form without writing anything"""
    try:
        await machine.back()
    except InvalidSessionTransition as e:
        raise transition_error(e)
    return session_response(machine)


@router.post("/reset", response_model=SessionResponse)
async def reset(machine: CallSessionMachine = Depends(get_machine)):
    try:
        await machine.reset()
    except InvalidSessionTransition as e:
        raise transition_error(e)
    return session_response(machine)
