"""
Unit tests for the Supabase lead store
Uses MagicMock chains in place of the PostgREST query builder
"""
import pytest
from unittest.mock import MagicMock

from leaddesk.domain.interfaces.lead_store import LeadNotFoundError, LeadStoreError
from leaddesk.domain.models.lead import LeadCandidate, LeadStatus, LeadUpdate
from leaddesk.infrastructure.storage.supabase_store import NIL_UUID, SupabaseLeadStore

ROW = {
    "id": "lead-1",
    "name": "Asha",
    "phone": "9876543210",
    "status": "PENDING",
    "notes": None,
    "duration": None,
    "timestamp": None,
    "created_at": "2024-05-01T10:00:00+00:00",
}


@pytest.fixture
def mock_client():
    return MagicMock()


class TestFetch:

    @pytest.mark.asyncio
    async def test_fetch_all_newest_first(self, mock_client):
        query = mock_client.table.return_value.select.return_value.order.return_value
        query.execute.return_value.data = [ROW]
        store = SupabaseLeadStore(mock_client)

        leads = await store.fetch_all()

        mock_client.table.assert_called_with("leads")
        mock_client.table.return_value.select.return_value.order.assert_called_once_with("created_at", desc=True)
        assert leads[0].status == LeadStatus.PENDING

    @pytest.mark.asyncio
    async def test_fetch_error_wrapped(self, mock_client):
        mock_client.table.return_value.select.side_effect = Exception("connection refused")
        store = SupabaseLeadStore(mock_client)

        with pytest.raises(LeadStoreError) as exc_info:
            await store.fetch_all()
        assert exc_info.value.operation == "fetch_all"


class TestInsert:

    @pytest.mark.asyncio
    async def test_insert_validates_against_existing(self, mock_client):
        table = mock_client.table.return_value
        table.select.return_value.execute.return_value.data = [
            {"phone": "9876543210", "status": "pending"},
        ]
        table.insert.return_value.execute.return_value.data = [
            {**ROW, "id": "lead-2", "phone": "9876543210", "status": "invalid"},
            {**ROW, "id": "lead-3", "phone": "9123456780", "status": "pending"},
        ]
        store = SupabaseLeadStore(mock_client)

        inserted = await store.insert_many([
            LeadCandidate(name="Copy", phone="98765 43210"),
            LeadCandidate(name="New", phone="9123456780"),
        ])

        rows = table.insert.call_args[0][0]
        assert rows[0]["status"] == "invalid"
        assert rows[0]["notes"].startswith("Duplicate phone number")
        assert rows[1]["status"] == "pending"
        assert len(inserted) == 2

    @pytest.mark.asyncio
    async def test_insert_nothing(self, mock_client):
        store = SupabaseLeadStore(mock_client)
        assert await store.insert_many([]) == []
        mock_client.table.assert_not_called()


class TestUpdates:

    @pytest.mark.asyncio
    async def test_update_status_partial_row(self, mock_client):
        table = mock_client.table.return_value
        table.update.return_value.eq.return_value.execute.return_value.data = [ROW]
        store = SupabaseLeadStore(mock_client)

        await store.update_status("lead-1", LeadUpdate(status=LeadStatus.COMPLETE, notes="sold", duration="2m 0s"))

        row = table.update.call_args[0][0]
        assert row["status"] == "complete"
        assert "name" not in row
        table.update.return_value.eq.assert_called_once_with("id", "lead-1")

    @pytest.mark.asyncio
    async def test_update_missing_row(self, mock_client):
        table = mock_client.table.return_value
        table.update.return_value.eq.return_value.execute.return_value.data = []
        store = SupabaseLeadStore(mock_client)

        with pytest.raises(LeadNotFoundError):
            await store.update_status("nope", LeadUpdate(status=LeadStatus.COMPLETE))

    @pytest.mark.asyncio
    async def test_delete_by_status_counts(self, mock_client):
        table = mock_client.table.return_value
        table.delete.return_value.eq.return_value.execute.return_value.data = [ROW, ROW]
        store = SupabaseLeadStore(mock_client)

        assert await store.delete_by_status(LeadStatus.INVALID) == 2
        table.delete.return_value.eq.assert_called_once_with("status", "invalid")

    @pytest.mark.asyncio
    async def test_clear_all_filters_nil_uuid(self, mock_client):
        table = mock_client.table.return_value
        store = SupabaseLeadStore(mock_client)

        await store.clear_all()

        table.delete.return_value.neq.assert_called_once_with("id", NIL_UUID)


class TestConfig:

    @pytest.mark.asyncio
    async def test_get_config(self, mock_client):
        query = mock_client.table.return_value.select.return_value.eq.return_value
        query.execute.return_value.data = [{"value": {"admin": "9999", "agent": "abcd"}}]
        store = SupabaseLeadStore(mock_client)

        assert await store.get_config("passwords") == {"admin": "9999", "agent": "abcd"}
        mock_client.table.assert_called_with("config")

    @pytest.mark.asyncio
    async def test_set_config_upserts(self, mock_client):
        store = SupabaseLeadStore(mock_client)
        await store.set_config("passwords", {"admin": "1", "agent": "2"})
        mock_client.table.return_value.upsert.assert_called_once_with(
            {"id": "passwords", "value": {"admin": "1", "agent": "2"}}
        )
