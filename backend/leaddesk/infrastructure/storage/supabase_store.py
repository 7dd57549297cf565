"""
Supabase Lead Store
Lead CRUD over the Supabase `leads` and `config` tables
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from leaddesk.domain.interfaces.lead_store import LeadNotFoundError, LeadStore, LeadStoreError
from leaddesk.domain.models.lead import Lead, LeadCandidate, LeadStatus, LeadUpdate
from leaddesk.domain.services.intake import LeadIntake, committed_phones

logger = logging.getLogger(__name__)

# Never a real row id; lets clear_all issue a filtered delete
NIL_UUID = "00000000-0000-0000-0000-000000000000"


class SupabaseLeadStore(LeadStore):
    """
    Lead store backed by a Supabase project.

    The PostgREST tables do no validation of their own, so intake rules run
    here before every insert.
    """

    LEADS_TABLE = "leads"
    CONFIG_TABLE = "config"

    def __init__(self, client: Client, intake: LeadIntake = None):
        self.client = client
        self.intake = intake or LeadIntake()

    @property
    def name(self) -> str:
        return "supabase"

    def _leads(self):
        return self.client.table(self.LEADS_TABLE)

    async def fetch_all(self) -> List[Lead]:
        try:
            response = self._leads().select("*").order("created_at", desc=True).execute()
        except Exception as e:
            raise LeadStoreError("fetch_all", str(e)) from e
        return [Lead(**row) for row in (response.data or [])]

    async def insert_one(self, candidate: LeadCandidate) -> Lead:
        leads = await self.insert_many([candidate])
        return leads[0]

    async def insert_many(self, candidates: Sequence[LeadCandidate]) -> List[Lead]:
        if not candidates:
            return []

        try:
            existing = self._leads().select("phone, status").execute()
        except Exception as e:
            raise LeadStoreError("insert_many", f"duplicate check failed: {e}") from e

        existing_leads = [
            Lead(id="", phone=row.get("phone") or "", status=row.get("status") or "pending")
            for row in (existing.data or [])
        ]
        rows = self.intake.validate(candidates, committed_phones(existing_leads))

        try:
            response = self._leads().insert([row.to_row() for row in rows]).execute()
        except Exception as e:
            raise LeadStoreError("insert_many", str(e)) from e

        inserted = [Lead(**row) for row in (response.data or [])]
        logger.info(f"Inserted {len(inserted)} leads into Supabase")
        return inserted

    async def update_status(self, lead_id: str, update: LeadUpdate) -> None:
        try:
            response = self._leads().update(update.to_row()).eq("id", lead_id).execute()
        except Exception as e:
            raise LeadStoreError("update_status", str(e)) from e
        if not response.data:
            raise LeadNotFoundError("update_status", lead_id)

    async def delete_one(self, lead_id: str) -> None:
        try:
            self._leads().delete().eq("id", lead_id).execute()
        except Exception as e:
            raise LeadStoreError("delete_one", str(e)) from e

    async def delete_by_status(self, status: LeadStatus) -> int:
        try:
            response = self._leads().delete().eq("status", status.value).execute()
        except Exception as e:
            raise LeadStoreError("delete_by_status", str(e)) from e
        return len(response.data or [])

    async def reset_to_pending(self, lead_id: str) -> None:
        try:
            response = self._leads().update({
                "status": LeadStatus.PENDING.value,
                "notes": None,
                "duration": None,
                "timestamp": None,
            }).eq("id", lead_id).execute()
        except Exception as e:
            raise LeadStoreError("reset_to_pending", str(e)) from e
        if not response.data:
            raise LeadNotFoundError("reset_to_pending", lead_id)

    async def clear_all(self) -> None:
        try:
            self._leads().delete().neq("id", NIL_UUID).execute()
        except Exception as e:
            raise LeadStoreError("clear_all", str(e)) from e

    async def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.table(self.CONFIG_TABLE).select("value").eq("id", key).execute()
        except Exception as e:
            raise LeadStoreError("get_config", str(e)) from e
        if not response.data:
            return None
        return response.data[0].get("value")

    async def set_config(self, key: str, value: Dict[str, Any]) -> None:
        try:
            self.client.table(self.CONFIG_TABLE).upsert({"id": key, "value": value}).execute()
        except Exception as e:
            raise LeadStoreError("set_config", str(e)) from e
