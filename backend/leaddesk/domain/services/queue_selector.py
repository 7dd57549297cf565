"""
Agent Queue Selector
Pure views over a lead snapshot: fresh pool, interested and call-back queues.
"""
from enum import Enum
from typing import Dict, Optional, Tuple

from leaddesk.domain.models.lead import Lead, LeadSnapshot, LeadStatus


class WorkQueue(str, Enum):
    """Queues an agent can work from"""
    POOL = "pool"
    INTERESTED = "interested"
    CALL_BACK = "call_back"


QUEUE_STATUS: Dict[WorkQueue, LeadStatus] = {
    WorkQueue.POOL: LeadStatus.PENDING,
    WorkQueue.INTERESTED: LeadStatus.INTERESTED,
    WorkQueue.CALL_BACK: LeadStatus.CALL_BACK,
}


class AgentQueueSelector:
    """
    Derives work queues from whatever snapshot it is handed.

    Holds no state of its own, so counts can never drift from the
    collection they come from.
    """

    def leads(self, snapshot: LeadSnapshot, queue: WorkQueue) -> Tuple[Lead, ...]:
        """Leads in a queue, in store order"""
        return snapshot.with_status(QUEUE_STATUS[queue])

    def counts(self, snapshot: LeadSnapshot) -> Dict[WorkQueue, int]:
        return {queue: snapshot.count(status) for queue, status in QUEUE_STATUS.items()}

    def next_lead(self, snapshot: LeadSnapshot) -> Optional[Lead]:
        """Head of the fresh pool; None once the pool is exhausted"""
        pool = self.leads(snapshot, WorkQueue.POOL)
        return pool[0] if pool else None

    def pick(self, snapshot: LeadSnapshot, queue: WorkQueue, lead_id: Optional[str] = None) -> Optional[Lead]:
        """
        Resolve the lead an agent is about to dial.

        The pool always serves its head. Follow-up queues require an
        explicit choice and return None if the id is not in that queue.
        """
        if queue == WorkQueue.POOL and lead_id is None:
            return self.next_lead(snapshot)
        if lead_id is None:
            return None
        for lead in self.leads(snapshot, queue):
            if lead.id == lead_id:
                return lead
        return None
