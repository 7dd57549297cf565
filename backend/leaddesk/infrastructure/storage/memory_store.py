"""
In-Memory Lead Store
Development and test backend with the same contract as Supabase
"""
import uuid
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from leaddesk.domain.interfaces.lead_store import LeadNotFoundError, LeadStore, LeadStoreError
from leaddesk.domain.models.lead import Lead, LeadCandidate, LeadStatus, LeadUpdate
from leaddesk.domain.services.intake import LeadIntake, committed_phones

logger = logging.getLogger(__name__)


class InMemoryLeadStore(LeadStore):
    """
    Keeps rows in a dict, newest first on fetch.

    Set ``fail_next`` to an operation name to make that call raise once.
    """

    def __init__(self, intake: LeadIntake = None):
        self.intake = intake or LeadIntake()
        self._rows: Dict[str, Lead] = {}
        self._config: Dict[str, Dict[str, Any]] = {}
        self._sequence = 0
        self.fail_next: Optional[str] = None

    @property
    def name(self) -> str:
        return "memory"

    def _check_failure(self, operation: str) -> None:
        if self.fail_next == operation:
            self.fail_next = None
            raise LeadStoreError(operation, "simulated backend failure")

    def _created_at(self) -> datetime:
        # Strictly increasing so ordering is stable within one second
        self._sequence += 1
        return datetime(2024, 1, 1) + timedelta(microseconds=self._sequence)

    async def fetch_all(self) -> List[Lead]:
        self._check_failure("fetch_all")
        return sorted(
            (lead.model_copy() for lead in self._rows.values()),
            key=lambda lead: lead.created_at,
            reverse=True,
        )

    async def insert_one(self, candidate: LeadCandidate) -> Lead:
        leads = await self.insert_many([candidate])
        return leads[0]

    async def insert_many(self, candidates: Sequence[LeadCandidate]) -> List[Lead]:
        self._check_failure("insert_many")
        rows = self.intake.validate(candidates, committed_phones(self._rows.values()))
        inserted = []
        for row in rows:
            lead = Lead(id=str(uuid.uuid4()), created_at=self._created_at(), **row.to_row())
            self._rows[lead.id] = lead
            inserted.append(lead.model_copy())
        return inserted

    def _require(self, operation: str, lead_id: str) -> Lead:
        lead = self._rows.get(lead_id)
        if lead is None:
            raise LeadNotFoundError(operation, lead_id)
        return lead

    async def update_status(self, lead_id: str, update: LeadUpdate) -> None:
        self._check_failure("update_status")
        lead = self._require("update_status", lead_id)
        self._rows[lead_id] = Lead.model_validate({**lead.model_dump(), **update.to_row()})

    async def delete_one(self, lead_id: str) -> None:
        self._check_failure("delete_one")
        self._rows.pop(lead_id, None)

    async def delete_by_status(self, status: LeadStatus) -> int:
        self._check_failure("delete_by_status")
        doomed = [lead_id for lead_id, lead in self._rows.items() if lead.status == status]
        for lead_id in doomed:
            del self._rows[lead_id]
        return len(doomed)

    async def reset_to_pending(self, lead_id: str) -> None:
        self._check_failure("reset_to_pending")
        lead = self._require("reset_to_pending", lead_id)
        self._rows[lead_id] = lead.model_copy(update={
            "status": LeadStatus.PENDING,
            "notes": None,
            "duration": None,
            "timestamp": None,
        })

    async def clear_all(self) -> None:
        self._check_failure("clear_all")
        self._rows.clear()

    async def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        self._check_failure("get_config")
        value = self._config.get(key)
        return dict(value) if value is not None else None

    async def set_config(self, key: str, value: Dict[str, Any]) -> None:
        self._check_failure("set_config")
        self._config[key] = dict(value)
