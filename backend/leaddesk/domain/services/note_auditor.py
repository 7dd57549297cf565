"""
Note Quality Auditor
Scores a free-text call summary against the call's talk time.

The remote classifier is asked for a single JSON object. Anything that goes
wrong on that path (timeout, provider error, malformed answer) degrades to a
local heuristic, so submission never waits on an unavailable service.
"""
import re
import json
import asyncio
import logging
from typing import Optional

from pydantic import BaseModel, Field

from leaddesk.domain.interfaces.llm_provider import LLMProvider
from leaddesk.domain.models.conversation import Message, MessageRole
from leaddesk.domain.models.session import parse_duration

logger = logging.getLogger(__name__)


class AuditorUnavailableError(Exception):
    """Raised when the remote classifier gives no usable verdict"""
    pass


class AuditorConfig(BaseModel):
    """Configuration for the note auditor"""
    timeout_seconds: float = Field(default=5.0, gt=0.0, le=30.0, description="Max wait for the remote verdict")
    temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    max_tokens: int = Field(default=120, ge=20, le=500)


class AuditResult(BaseModel):
    """Auditor verdict"""
    is_valid: bool
    reason: Optional[str] = None
    source: str = "remote"  # remote, fallback


AUDIT_SYSTEM_PROMPT = (
    "You audit CRM call notes written by call-center agents. "
    "Respond ONLY with one JSON object: "
    '{"isValid": boolean, "reason": "short explanation in Hindi/English if invalid"}'
)

AUDIT_PROMPT_TEMPLATE = """Audit this CRM call note for quality.
Duration: {duration}
Note: "{note}"

Is this note meaningful and related to a business call?
Reject if it's:
1. Gibberish (e.g. "asdfgh")
2. Highly repetitive (e.g. "ok ok ok ok ok")
3. Too generic for a long call (e.g. just saying "done" for a 5 minute call)
4. Completely unrelated text."""

# Same character five or more times in a row
REPEATED_RUN = re.compile(r"(.)\1{4,}")


def heuristic_audit(note: str, duration_label: str) -> AuditResult:
    """
    Local fallback check.

    Rejects repeated-character runs, and single-word notes once the call
    lasted at least a minute. Never produces a reason.
    """
    repetitive = bool(REPEATED_RUN.search(note))
    single_word = len(note.split()) < 2
    in_minutes = parse_duration(duration_label) >= 60
    return AuditResult(
        is_valid=not (repetitive or (single_word and in_minutes)),
        source="fallback",
    )


def parse_verdict(text: str) -> AuditResult:
    """
    Parse the classifier's answer.

    Raises:
        AuditorUnavailableError: If the answer is not exactly the expected shape
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise AuditorUnavailableError(f"Verdict is not JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("isValid"), bool):
        raise AuditorUnavailableError(f"Verdict has wrong shape: {text[:80]}")

    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        raise AuditorUnavailableError("Verdict reason is not a string")

    return AuditResult(is_valid=data["isValid"], reason=reason or None)


class NoteQualityAuditor:
    """
    Policy gate for call notes.

    The provider may be None (no API key configured); every audit then
    goes straight to the heuristic.
    """

    def __init__(self, provider: Optional[LLMProvider] = None, config: AuditorConfig = None):
        self.provider = provider
        self.config = config or AuditorConfig()

    async def audit(self, note: str, duration_label: str) -> AuditResult:
        """Judge a note; always returns a verdict"""
        if self.provider is None:
            logger.debug("No auditor provider configured, using heuristic")
            return heuristic_audit(note, duration_label)

        try:
            text = await asyncio.wait_for(
                self._ask(note, duration_label),
                timeout=self.config.timeout_seconds,
            )
            result = parse_verdict(text)
            logger.info(f"Note audit: valid={result.is_valid} (duration={duration_label})")
            return result
        except asyncio.TimeoutError:
            logger.warning(f"Note audit timed out after {self.config.timeout_seconds}s, using heuristic")
        except AuditorUnavailableError as e:
            logger.warning(f"Note audit unusable ({e}), using heuristic")
        except Exception as e:
            logger.warning(f"Note audit failed ({e}), using heuristic")

        return heuristic_audit(note, duration_label)

    async def _ask(self, note: str, duration_label: str) -> str:
        prompt = AUDIT_PROMPT_TEMPLATE.format(duration=duration_label, note=note)
        text = await self.provider.complete(
            messages=[Message(role=MessageRole.USER, content=prompt)],
            system_prompt=AUDIT_SYSTEM_PROMPT,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            response_format={"type": "json_object"},
        )
        return text.strip()
