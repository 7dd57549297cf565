"""
Unit tests for the note quality auditor
Covers the remote verdict path and every fallback to the heuristic
"""
import pytest

from conftest import ScriptedProvider
from leaddesk.domain.services.note_auditor import (
    AuditorConfig,
    AuditorUnavailableError,
    NoteQualityAuditor,
    heuristic_audit,
    parse_verdict,
)


class TestHeuristicAudit:
    """Local fallback rules"""

    def test_repeated_characters_rejected(self):
        result = heuristic_audit("customer said okkkkk", "1m 30s")
        assert result.is_valid is False
        assert result.source == "fallback"
        assert result.reason is None

    def test_four_repeats_allowed(self):
        assert heuristic_audit("good call, hmmm interested", "2m 0s").is_valid is True

    def test_single_word_rejected_for_minute_calls(self):
        assert heuristic_audit("done", "1m 5s").is_valid is False

    def test_single_word_allowed_under_a_minute(self):
        assert heuristic_audit("done", "0m 45s").is_valid is True

    def test_reasonable_note_passes(self):
        assert heuristic_audit("Asked for pricing, call back Monday", "4m 10s").is_valid is True


class TestParseVerdict:

    def test_valid_verdict(self):
        result = parse_verdict('{"isValid": false, "reason": "Too generic"}')
        assert result.is_valid is False
        assert result.reason == "Too generic"
        assert result.source == "remote"

    def test_reason_optional(self):
        assert parse_verdict('{"isValid": true}').reason is None

    @pytest.mark.parametrize("text", [
        "not json",
        "[true]",
        '{"isValid": "yes"}',
        '{"isValid": true, "reason": 5}',
        "",
    ])
    def test_wrong_shape_raises(self, text):
        with pytest.raises(AuditorUnavailableError):
            parse_verdict(text)


class TestNoteQualityAuditor:
    """Remote path with fallbacks"""

    @pytest.mark.asyncio
    async def test_no_provider_uses_heuristic(self):
        auditor = NoteQualityAuditor(provider=None)
        result = await auditor.audit("aaaaaa", "2m 0s")
        assert result.is_valid is False
        assert result.source == "fallback"

    @pytest.mark.asyncio
    async def test_remote_verdict_used(self):
        provider = ScriptedProvider(answer='{"isValid": false, "reason": "Notes unrelated to the call"}')
        auditor = NoteQualityAuditor(provider=provider)

        result = await auditor.audit("Asked for pricing, call back Monday", "4m 10s")

        assert result.is_valid is False
        assert result.reason == "Notes unrelated to the call"
        assert result.source == "remote"

    @pytest.mark.asyncio
    async def test_prompt_carries_note_and_duration(self):
        provider = ScriptedProvider(answer='{"isValid": true}')
        auditor = NoteQualityAuditor(provider=provider)

        await auditor.audit("wants brochure", "1m 10s")

        call = provider.calls[0]
        assert call["response_format"] == {"type": "json_object"}
        assert "wants brochure" in call["messages"][0].content
        assert "1m 10s" in call["messages"][0].content

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self):
        provider = ScriptedProvider(error=RuntimeError("Groq LLM request failed: 500"))
        auditor = NoteQualityAuditor(provider=provider)

        result = await auditor.audit("ok", "3m 0s")

        assert result.source == "fallback"
        assert result.is_valid is False

    @pytest.mark.asyncio
    async def test_malformed_answer_falls_back(self):
        provider = ScriptedProvider(answer="Sure! The note looks fine.")
        auditor = NoteQualityAuditor(provider=provider)

        result = await auditor.audit("Asked for pricing, call back Monday", "4m 10s")

        assert result.source == "fallback"
        assert result.is_valid is True

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self):
        provider = ScriptedProvider(answer='{"isValid": false}', delay=1.0)
        auditor = NoteQualityAuditor(provider=provider, config=AuditorConfig(timeout_seconds=0.05))

        result = await auditor.audit("Asked for pricing, call back Monday", "4m 10s")

        assert result.source == "fallback"
        assert result.is_valid is True
