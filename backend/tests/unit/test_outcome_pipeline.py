"""
Unit tests for the outcome submission pipeline
"""
import pytest
from unittest.mock import AsyncMock

from conftest import seed
from leaddesk.domain.models.lead import LeadStatus
from leaddesk.domain.services.note_auditor import AuditResult
from leaddesk.domain.services.outcome_pipeline import (
    DEFAULT_REJECTION_REASON,
    NotePolicy,
    OutcomeSubmissionPipeline,
    SubmissionStatus,
)


class TestNotePolicy:
    """Tier bounds are strict"""

    @pytest.mark.parametrize("seconds,minimum", [
        (0, 0),
        (60, 0),
        (61, 5),
        (180, 5),
        (181, 20),
    ])
    def test_min_note_length(self, seconds, minimum):
        assert NotePolicy().min_note_length(seconds) == minimum

    def test_needs_audit(self):
        policy = NotePolicy()
        assert policy.needs_audit(61, "customer keen") is True
        assert policy.needs_audit(60, "customer keen") is False
        assert policy.needs_audit(120, "   ") is False

    def test_from_config(self):
        policy = NotePolicy.from_config({
            "tiers": [{"above_seconds": 30, "min_chars": 3}],
            "audit_above_seconds": 45,
        })
        assert policy.min_note_length(31) == 3
        assert policy.min_note_length(500) == 3
        assert policy.audit_above_seconds == 45


class TestCheckForm:

    def setup_method(self):
        self.pipeline = OutcomeSubmissionPipeline(collection=None, auditor=None)

    def test_outcome_required(self):
        assert self.pipeline.check_form(None, "", "0m 30s") == "Select an outcome"
        assert self.pipeline.check_form("pending", "", "0m 30s") == "Select an outcome"
        assert self.pipeline.check_form("bogus", "", "0m 30s") == "Select an outcome"

    def test_note_tier(self):
        reason = self.pipeline.check_form("complete", "ok", "1m 35s")
        assert reason == "Notes must be at least 5 characters for a 1m 35s call"
        assert self.pipeline.can_submit("complete", "sold plan", "1m 35s")

    def test_whitespace_not_counted(self):
        assert not self.pipeline.can_submit("complete", "  ab      ", "1m 35s")

    def test_short_call_needs_no_note(self):
        assert self.pipeline.can_submit("not_interested", "", "0m 40s")

    def test_requirements(self):
        requirements = self.pipeline.requirements("3m 20s")
        assert requirements.duration_seconds == 200
        assert requirements.min_note_length == 20
        assert LeadStatus.PENDING not in requirements.outcomes
        assert LeadStatus.INVALID not in requirements.outcomes
        assert len(requirements.outcomes) == 5


class TestSubmit:
    """Full gate and write"""

    @pytest.mark.asyncio
    async def test_blocked_sends_nothing(self, store, collection):
        [lead] = await seed(store, collection, ("Asha", "9876543210"))
        auditor = AsyncMock()
        pipeline = OutcomeSubmissionPipeline(collection, auditor)

        result = await pipeline.submit(lead.id, "complete", "ok", None, "2m 0s")

        assert result.status == SubmissionStatus.BLOCKED
        auditor.audit.assert_not_called()
        assert collection.revision == 1

    @pytest.mark.asyncio
    async def test_short_call_skips_audit(self, store, collection):
        [lead] = await seed(store, collection, ("Asha", "9876543210"))
        auditor = AsyncMock()
        pipeline = OutcomeSubmissionPipeline(collection, auditor)

        result = await pipeline.submit(lead.id, "not_interested", "", None, "0m 50s")

        assert result.ok
        auditor.audit.assert_not_called()
        assert collection.get(lead.id).status == LeadStatus.NOT_INTERESTED

    @pytest.mark.asyncio
    async def test_rejected_keeps_lead_untouched(self, store, collection):
        [lead] = await seed(store, collection, ("Asha", "9876543210"))
        auditor = AsyncMock()
        auditor.audit.return_value = AuditResult(is_valid=False, reason="Too generic")
        pipeline = OutcomeSubmissionPipeline(collection, auditor)

        result = await pipeline.submit(lead.id, "complete", "done deal", None, "1m 35s")

        assert result.status == SubmissionStatus.REJECTED
        assert result.reason == "Too generic"
        auditor.audit.assert_awaited_once_with("done deal", "1m 35s")
        assert collection.get(lead.id).status == LeadStatus.PENDING

    @pytest.mark.asyncio
    async def test_rejection_without_reason(self, store, collection):
        [lead] = await seed(store, collection, ("Asha", "9876543210"))
        auditor = AsyncMock()
        auditor.audit.return_value = AuditResult(is_valid=False, source="fallback")
        pipeline = OutcomeSubmissionPipeline(collection, auditor)

        result = await pipeline.submit(lead.id, "complete", "aaaaaaa", None, "1m 35s")

        assert result.reason == DEFAULT_REJECTION_REASON

    @pytest.mark.asyncio
    async def test_success_writes_outcome(self, store, collection):
        [lead] = await seed(store, collection, ("Asha", "9876543210"))
        auditor = AsyncMock()
        auditor.audit.return_value = AuditResult(is_valid=True)
        pipeline = OutcomeSubmissionPipeline(collection, auditor)

        result = await pipeline.submit(lead.id, "interested", "Wants a demo on Friday", "Asha R", "1m 35s")

        assert result.ok
        assert result.revision == collection.revision == 2
        written = collection.get(lead.id)
        assert written.status == LeadStatus.INTERESTED
        assert written.notes == "Wants a demo on Friday"
        assert written.duration == "1m 35s"
        assert written.name == "Asha R"
        assert written.timestamp is not None

    @pytest.mark.asyncio
    async def test_write_error(self, store, collection):
        [lead] = await seed(store, collection, ("Asha", "9876543210"))
        pipeline = OutcomeSubmissionPipeline(collection, AsyncMock())
        store.fail_next = "update_status"

        result = await pipeline.submit(lead.id, "not_interested", "", None, "0m 30s")

        assert result.status == SubmissionStatus.WRITE_ERROR
        assert "update_status failed" in result.reason
