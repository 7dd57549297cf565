"""
Agent Console Registry
One call session state machine per agent, sharing the lead collection.
"""
import asyncio
import logging
from typing import Callable, Dict, Optional, Tuple

from leaddesk.domain.interfaces.dialer import DialerHandoff
from leaddesk.domain.interfaces.session_repository import SessionRepository
from leaddesk.domain.models.lead import Lead
from leaddesk.domain.services.call_session_machine import (
    AUTO_REJECT_NOTE,
    DEFAULT_KEY_PREFIX,
    SHORT_CALL_THRESHOLD_SECONDS,
    CallSessionMachine,
    InvalidSessionTransition,
    epoch_millis,
)
from leaddesk.domain.services.lead_collection import LeadCollection
from leaddesk.domain.services.outcome_pipeline import OutcomeSubmissionPipeline
from leaddesk.domain.services.queue_selector import AgentQueueSelector, WorkQueue

logger = logging.getLogger(__name__)


class AgentConsoleRegistry:
    """
    Builds machines lazily and recovers each from its slot on first use.
    """

    def __init__(
        self,
        collection: LeadCollection,
        pipeline: OutcomeSubmissionPipeline,
        dialer: DialerHandoff,
        repository: SessionRepository,
        selector: AgentQueueSelector = None,
        clock: Callable[[], int] = epoch_millis,
        short_call_threshold: int = SHORT_CALL_THRESHOLD_SECONDS,
        auto_reject_note: str = AUTO_REJECT_NOTE,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.collection = collection
        self.pipeline = pipeline
        self.dialer = dialer
        self.repository = repository
        self.selector = selector or AgentQueueSelector()
        self.clock = clock
        self.short_call_threshold = short_call_threshold
        self.auto_reject_note = auto_reject_note
        self.key_prefix = key_prefix
        self._machines: Dict[str, CallSessionMachine] = {}
        self._lock = asyncio.Lock()

    async def get_machine(self, agent_id: str) -> CallSessionMachine:
        machine = self._machines.get(agent_id)
        if machine is not None:
            return machine

        async with self._lock:
            machine = self._machines.get(agent_id)
            if machine is None:
                machine = CallSessionMachine(
                    agent_id=agent_id,
                    collection=self.collection,
                    pipeline=self.pipeline,
                    dialer=self.dialer,
                    repository=self.repository,
                    clock=self.clock,
                    short_call_threshold=self.short_call_threshold,
                    auto_reject_note=self.auto_reject_note,
                    key_prefix=self.key_prefix,
                )
                await machine.recover()
                self._machines[agent_id] = machine
        return machine

    async def dial(
        self,
        agent_id: str,
        queue: WorkQueue = WorkQueue.POOL,
        lead_id: Optional[str] = None,
    ) -> Tuple[Lead, str]:
        """
        Pick the lead from a queue and start the call.

        Returns:
            (lead, tel URI)
        """
        machine = await self.get_machine(agent_id)
        lead = self.selector.pick(self.collection.snapshot, queue, lead_id)
        if lead is None:
            reason = "fresh pool is empty" if queue == WorkQueue.POOL and lead_id is None \
                else f"lead {lead_id} is not in the {queue.value} queue"
            raise InvalidSessionTransition(machine.state, "dial", reason)
        uri = await machine.dial(lead)
        return lead, uri

    def active_count(self) -> int:
        return sum(1 for m in self._machines.values() if m.lead_id is not None)
