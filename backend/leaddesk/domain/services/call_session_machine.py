"""
Call Session State Machine
Owns one agent's dial attempt from handoff to outcome.

    idle --dial--> calling --end-call--> outcome --submit/back--> idle
                   calling --end-call (short)--> idle
    any --reset--> idle

Dialing leaves the console for the device's native dialer, and the process
may be torn down meanwhile. The session is therefore written to a recovery
slot before the handoff and rebuilt from it on start. Resume signals can
arrive more than once for one physical return; only the first one seen in
``calling`` ends the call.
"""
import time
import logging
from typing import Callable, Optional

from pydantic import BaseModel

from leaddesk.domain.interfaces.dialer import DialerHandoff
from leaddesk.domain.interfaces.lead_store import LeadStoreError
from leaddesk.domain.interfaces.session_repository import SessionRepository
from leaddesk.domain.models.lead import CallOutcome, Lead, LeadStatus
from leaddesk.domain.models.session import (
    CallSession,
    CallState,
    ResumeSignal,
    format_duration,
)
from leaddesk.domain.services.intake import normalize_phone
from leaddesk.domain.services.lead_collection import LeadCollection
from leaddesk.domain.services.outcome_pipeline import (
    FormRequirements,
    OutcomeSubmissionPipeline,
    SubmissionResult,
)

logger = logging.getLogger(__name__)

SHORT_CALL_THRESHOLD_SECONDS = 10
AUTO_REJECT_NOTE = "Auto-Rejected (Under 10s)"
DEFAULT_KEY_PREFIX = "leaddesk:active_call"


def epoch_millis() -> int:
    return int(time.time() * 1000)


class InvalidSessionTransition(Exception):
    """Raised when an operation is not allowed in the current call state"""

    def __init__(self, state: CallState, operation: str, reason: str = ""):
        self.state = state
        self.operation = operation
        self.reason = reason
        message = f"Cannot {operation} while {state.value}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class EndCallResult(BaseModel):
    """What happened when the call ended"""
    lead_id: str
    elapsed_seconds: int
    duration: str
    auto_resolved: bool
    state: CallState
    written: Optional[bool] = None  # only set for auto-resolved calls


class SessionView(BaseModel):
    """Read-only view of the machine for the console"""
    agent_id: str
    state: CallState
    lead_id: Optional[str] = None
    start_time: Optional[int] = None
    elapsed_seconds: Optional[int] = None
    duration: Optional[str] = None


class CallSessionMachine:
    """
    Singleton per agent; no other component touches its session.

    The recovery slot is written on dial and rewritten on entering
    ``outcome`` (with the end time), so a restart during classification
    restores the same talk time. It is cleared on every return to idle.

    While a submission is in flight (auditor and write), every other
    transition except resume is refused.

    Args:
        agent_id: Agent this machine belongs to (part of the slot key)
        collection: Shared lead collection (for lead lookups)
        pipeline: Outcome submission pipeline
        dialer: Native dialer handoff
        repository: Recovery slot
        clock: Epoch milliseconds source
    """

    def __init__(
        self,
        agent_id: str,
        collection: LeadCollection,
        pipeline: OutcomeSubmissionPipeline,
        dialer: DialerHandoff,
        repository: SessionRepository,
        clock: Callable[[], int] = epoch_millis,
        short_call_threshold: int = SHORT_CALL_THRESHOLD_SECONDS,
        auto_reject_note: str = AUTO_REJECT_NOTE,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.agent_id = agent_id
        self.collection = collection
        self.pipeline = pipeline
        self.dialer = dialer
        self.repository = repository
        self.clock = clock
        self.short_call_threshold = short_call_threshold
        self.auto_reject_note = auto_reject_note
        self.session_key = f"{key_prefix}:{agent_id}"

        self._session: Optional[CallSession] = None
        self._end_time: Optional[int] = None
        self._submitting = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CallState:
        return self._session.state if self._session else CallState.IDLE

    @property
    def lead_id(self) -> Optional[str]:
        return self._session.lead_id if self._session else None

    @property
    def active_lead(self) -> Optional[Lead]:
        lead_id = self.lead_id
        return self.collection.get(lead_id) if lead_id else None

    @property
    def duration(self) -> Optional[str]:
        """Talk time label, fixed once the call has ended"""
        if self._session is None or self._end_time is None:
            return None
        return format_duration(self._elapsed(self._end_time))

    def _elapsed(self, now_ms: int) -> int:
        return self._session.elapsed_seconds(now_ms)

    def view(self) -> SessionView:
        if self._session is None:
            return SessionView(agent_id=self.agent_id, state=CallState.IDLE)
        end = self._end_time if self._end_time is not None else self.clock()
        return SessionView(
            agent_id=self.agent_id,
            state=self._session.state,
            lead_id=self._session.lead_id,
            start_time=self._session.start_time,
            elapsed_seconds=self._elapsed(end),
            duration=self.duration,
        )

    def requirements(self) -> FormRequirements:
        if self.state != CallState.OUTCOME:
            raise InvalidSessionTransition(self.state, "show the outcome form")
        return self.pipeline.requirements(self.duration)

    # ------------------------------------------------------------------
    # Recovery slot
    # ------------------------------------------------------------------

    def _recovery_payload(self) -> dict:
        payload = self._session.to_recovery_dict()
        if self._end_time is not None:
            payload["endTime"] = self._end_time
        return payload

    async def _persist(self) -> None:
        await self.repository.save(self.session_key, self._recovery_payload())

    async def _to_idle(self) -> None:
        self._session = None
        self._end_time = None
        await self.repository.clear(self.session_key)

    async def recover(self) -> CallState:
        """
        Rebuild the session from the recovery slot at process start.

        The dial is not replayed; it already happened before the
        interruption. A missing or unreadable slot means idle.
        """
        payload = await self.repository.load(self.session_key)
        if not payload:
            return CallState.IDLE

        try:
            session = CallSession.from_recovery_dict(payload)
            end_time = payload.get("endTime")
            end_time = int(end_time) if end_time is not None else None
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding corrupt recovery slot {self.session_key}: {e}")
            await self._to_idle()
            return CallState.IDLE

        if session.state == CallState.IDLE:
            await self._to_idle()
            return CallState.IDLE
        if session.state == CallState.OUTCOME and end_time is None:
            # Outcome without a recorded end cannot reproduce its duration
            end_time = self.clock()

        self._session = session
        self._end_time = end_time if session.state == CallState.OUTCOME else None
        logger.info(
            f"Recovered session for agent {self.agent_id}: "
            f"lead={session.lead_id} state={session.state.value}"
        )
        return session.state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def dial(self, lead: Optional[Lead]) -> str:
        """
        idle -> calling. Persists the session, then hands off to the dialer.

        Returns:
            The tel: URI handed to the dialer
        """
        self._check_not_submitting("dial")
        if self.state != CallState.IDLE:
            raise InvalidSessionTransition(self.state, "dial", "a call is already in progress")
        if lead is None:
            raise InvalidSessionTransition(self.state, "dial", "no lead selected")
        digits = normalize_phone(lead.phone)
        if not digits:
            raise InvalidSessionTransition(self.state, "dial", f"lead {lead.id} has no phone number")

        self._session = CallSession(
            lead_id=lead.id,
            start_time=self.clock(),
            state=CallState.CALLING,
        )
        self._end_time = None
        await self._persist()

        uri = self.dialer.handoff(self.agent_id, digits)
        logger.info(f"Agent {self.agent_id} dialing lead {lead.id}")
        return uri

    async def resume(self, signal: ResumeSignal) -> Optional[EndCallResult]:
        """
        Foreground-resume (or manual hang up).

        Only acts while calling; repeats for the same return are no-ops.
        """
        if self.state != CallState.CALLING:
            logger.debug(f"Ignoring {signal.value} resume in state {self.state.value}")
            return None
        return await self._end_call(signal)

    async def hang_up(self) -> Optional[EndCallResult]:
        return await self.resume(ResumeSignal.MANUAL)

    async def _end_call(self, signal: ResumeSignal) -> EndCallResult:
        # No await before the state leaves CALLING, so a second signal
        # arriving while this one is in flight sees the new state.
        end_time = self.clock()
        elapsed = self._elapsed(end_time)
        duration = format_duration(elapsed)
        lead_id = self._session.lead_id

        if elapsed >= self.short_call_threshold:
            self._session = self._session.model_copy(update={"state": CallState.OUTCOME})
            self._end_time = end_time
            logger.info(f"Call to lead {lead_id} ended via {signal.value} after {duration}")
            await self._persist()
            return EndCallResult(
                lead_id=lead_id,
                elapsed_seconds=elapsed,
                duration=duration,
                auto_resolved=False,
                state=CallState.OUTCOME,
            )

        self._session = None
        self._end_time = None
        logger.info(f"Auto-resolving short call to lead {lead_id} ({duration})")
        await self.repository.clear(self.session_key)

        outcome = CallOutcome(
            lead_id=lead_id,
            status=LeadStatus.NOT_RECEIVED,
            notes=self.auto_reject_note,
            duration=duration,
        )
        written = True
        try:
            await self.pipeline.write(outcome)
        except LeadStoreError as e:
            # Stays idle; the next refresh reconciles
            logger.error(f"Auto-resolve write for lead {lead_id} failed: {e}")
            written = False

        return EndCallResult(
            lead_id=lead_id,
            elapsed_seconds=elapsed,
            duration=duration,
            auto_resolved=True,
            state=CallState.IDLE,
            written=written,
        )

    def _check_not_submitting(self, operation: str) -> None:
        if self._submitting:
            raise InvalidSessionTransition(self.state, operation, "an outcome submission is in progress")

    async def submit(self, status: str, notes: str, name: Optional[str] = None) -> SubmissionResult:
        """outcome -> idle on success; stays in outcome otherwise"""
        self._check_not_submitting("submit an outcome")
        if self.state != CallState.OUTCOME:
            raise InvalidSessionTransition(self.state, "submit an outcome")

        session = self._session
        self._submitting = True
        try:
            result = await self.pipeline.submit(
                lead_id=session.lead_id,
                chosen_status=status,
                notes=notes,
                name=name,
                duration=self.duration,
            )
        finally:
            self._submitting = False

        if result.ok and self._session is session:
            await self._to_idle()
        return result

    async def back(self) -> None:
        """Abandon the pending classification without writing anything"""
        self._check_not_submitting("go back")
        if self.state != CallState.OUTCOME:
            raise InvalidSessionTransition(self.state, "go back")
        logger.info(f"Agent {self.agent_id} abandoned outcome for lead {self.lead_id}")
        await self._to_idle()

    async def reset(self) -> None:
        """Back to queue selection from any state"""
        self._check_not_submitting("reset")
        if self._session is not None:
            logger.info(f"Agent {self.agent_id} reset session in state {self.state.value}")
        await self._to_idle()
