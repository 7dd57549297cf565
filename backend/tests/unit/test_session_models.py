"""
Unit tests for lead and call session models
"""
from datetime import datetime

import pytest

from leaddesk.domain.models.lead import CallOutcome, Lead, LeadSnapshot, LeadStatus, LeadUpdate
from leaddesk.domain.models.session import (
    CallSession,
    CallState,
    format_duration,
    parse_duration,
)


class TestDurationLabels:
    """Talk time formatting"""

    @pytest.mark.parametrize("seconds,label", [
        (0, "0m 0s"),
        (7, "0m 7s"),
        (60, "1m 0s"),
        (95, "1m 35s"),
        (200, "3m 20s"),
    ])
    def test_format_duration(self, seconds, label):
        assert format_duration(seconds) == label

    def test_parse_duration(self):
        """Labels parse back to whole seconds"""
        assert parse_duration("3m 20s") == 200
        assert parse_duration("0m 59s") == 59

    def test_parse_duration_garbage_is_zero(self):
        assert parse_duration(None) == 0
        assert parse_duration("") == 0
        assert parse_duration("xm 5s") == 0


class TestCallSession:
    """CallSession timing and recovery payloads"""

    def test_elapsed_seconds_floors(self):
        session = CallSession(lead_id="l1", start_time=1_000)
        assert session.elapsed_seconds(10_999) == 9
        assert session.elapsed_seconds(11_000) == 10

    def test_elapsed_never_negative(self):
        """A clock that moved backwards reads as zero"""
        session = CallSession(lead_id="l1", start_time=5_000)
        assert session.elapsed_seconds(1_000) == 0

    def test_recovery_dict_shape(self):
        session = CallSession(lead_id="l1", start_time=1234, state=CallState.CALLING)
        assert session.to_recovery_dict() == {
            "startTime": 1234,
            "state": "calling",
            "leadId": "l1",
        }

    def test_from_recovery_dict(self):
        session = CallSession.from_recovery_dict({"startTime": "99", "state": "outcome", "leadId": "l9"})
        assert session.lead_id == "l9"
        assert session.start_time == 99
        assert session.state == CallState.OUTCOME

    @pytest.mark.parametrize("payload", [
        {"state": "calling", "leadId": "l1"},
        {"startTime": None, "state": "calling", "leadId": "l1"},
        {"startTime": 1, "state": "ringing", "leadId": "l1"},
    ])
    def test_from_recovery_dict_rejects_malformed(self, payload):
        with pytest.raises(ValueError):
            CallSession.from_recovery_dict(payload)


class TestLeadModels:
    """Lead row mapping"""

    def test_status_is_case_insensitive(self):
        lead = Lead(id="1", phone="9876543210", status="CALL_BACK")
        assert lead.status == LeadStatus.CALL_BACK

    def test_null_name_becomes_empty(self):
        lead = Lead(id="1", name=None, phone="9876543210")
        assert lead.name == ""

    def test_update_row_drops_blank_name(self):
        update = LeadUpdate(status=LeadStatus.COMPLETE, notes="done", duration="1m 5s", name="   ")
        row = update.to_row()
        assert "name" not in row
        assert row["status"] == "complete"
        assert row["timestamp"] is None

    def test_outcome_update_carries_trimmed_name(self):
        outcome = CallOutcome(
            lead_id="1",
            status=LeadStatus.INTERESTED,
            notes="wants a demo",
            duration="2m 0s",
            timestamp=datetime(2024, 5, 1, 12, 0, 0),
            name=" Ravi ",
        )
        row = outcome.to_update().to_row()
        assert row["name"] == "Ravi"
        assert row["timestamp"] == "2024-05-01T12:00:00"

    def test_snapshot_queries(self):
        snapshot = LeadSnapshot(revision=3, leads=(
            Lead(id="a", phone="1", status="pending"),
            Lead(id="b", phone="2", status="interested"),
            Lead(id="c", phone="3", status="pending"),
        ))
        assert snapshot.get("b").status == LeadStatus.INTERESTED
        assert snapshot.get("zzz") is None
        assert [lead.id for lead in snapshot.with_status(LeadStatus.PENDING)] == ["a", "c"]
        assert snapshot.count(LeadStatus.INVALID) == 0
