"""
Outcome Submission Pipeline
Validates and finalizes a call result, then writes it through the lead
collection (which refetches after the write is acknowledged).

Gate order:
1. chosen status must be an outcome status
2. note length must meet the tier for the call's talk time
3. long calls with a note go through the note auditor
4. one partial update of the lead row
"""
import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from leaddesk.domain.interfaces.lead_store import LeadStoreError
from leaddesk.domain.models.lead import CallOutcome, LeadStatus, OUTCOME_STATUSES
from leaddesk.domain.models.session import parse_duration
from leaddesk.domain.services.lead_collection import LeadCollection
from leaddesk.domain.services.note_auditor import NoteQualityAuditor

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Please provide professional notes."


class NotePolicy:
    """Minimum note length by talk-time tier"""

    # (strictly above seconds, minimum characters), longest tier first
    DEFAULT_TIERS: Tuple[Tuple[int, int], ...] = ((180, 20), (60, 5))
    DEFAULT_AUDIT_ABOVE_SECONDS = 60

    def __init__(
        self,
        tiers: Optional[Sequence[Tuple[int, int]]] = None,
        audit_above_seconds: int = DEFAULT_AUDIT_ABOVE_SECONDS,
    ):
        self.tiers = sorted(tiers or self.DEFAULT_TIERS, key=lambda t: t[0], reverse=True)
        self.audit_above_seconds = audit_above_seconds

    @classmethod
    def from_config(cls, section: dict) -> "NotePolicy":
        tiers = [
            (int(tier["above_seconds"]), int(tier["min_chars"]))
            for tier in section.get("tiers", [])
        ]
        return cls(
            tiers=tiers or None,
            audit_above_seconds=int(section.get("audit_above_seconds", cls.DEFAULT_AUDIT_ABOVE_SECONDS)),
        )

    def min_note_length(self, duration_seconds: int) -> int:
        for above_seconds, min_chars in self.tiers:
            if duration_seconds > above_seconds:
                return min_chars
        return 0

    def needs_audit(self, duration_seconds: int, notes: str) -> bool:
        return duration_seconds > self.audit_above_seconds and bool(notes.strip())


class SubmissionStatus(str, Enum):
    """Pipeline result"""
    SUCCESS = "success"
    BLOCKED = "blocked"          # Form precondition not met, nothing sent anywhere
    REJECTED = "rejected"        # Auditor refused the note
    WRITE_ERROR = "write_error"  # Store write failed


class SubmissionResult(BaseModel):
    status: SubmissionStatus
    reason: Optional[str] = None
    revision: Optional[int] = None  # snapshot revision after the post-write refresh

    @property
    def ok(self) -> bool:
        return self.status == SubmissionStatus.SUCCESS


class FormRequirements(BaseModel):
    """What the outcome form must enforce for the current call"""
    duration: str
    duration_seconds: int
    min_note_length: int
    outcomes: List[LeadStatus]


class OutcomeSubmissionPipeline:
    """Validates, audits and writes call outcomes"""

    def __init__(
        self,
        collection: LeadCollection,
        auditor: NoteQualityAuditor,
        policy: NotePolicy = None,
    ):
        self.collection = collection
        self.auditor = auditor
        self.policy = policy or NotePolicy()

    def requirements(self, duration: str) -> FormRequirements:
        seconds = parse_duration(duration)
        return FormRequirements(
            duration=duration,
            duration_seconds=seconds,
            min_note_length=self.policy.min_note_length(seconds),
            outcomes=[s for s in LeadStatus if s in OUTCOME_STATUSES],
        )

    def check_form(self, chosen_status: Optional[str], notes: str, duration: str) -> Optional[str]:
        """
        Client-side gate (steps 1 and 2).

        Returns:
            None if the form may be submitted, otherwise why not
        """
        try:
            status = LeadStatus(chosen_status) if chosen_status else None
        except ValueError:
            status = None
        if status not in OUTCOME_STATUSES:
            return "Select an outcome"

        minimum = self.policy.min_note_length(parse_duration(duration))
        if len((notes or "").strip()) < minimum:
            return f"Notes must be at least {minimum} characters for a {duration} call"
        return None

    def can_submit(self, chosen_status: Optional[str], notes: str, duration: str) -> bool:
        return self.check_form(chosen_status, notes, duration) is None

    async def submit(
        self,
        lead_id: str,
        chosen_status: str,
        notes: str,
        name: Optional[str],
        duration: str,
    ) -> SubmissionResult:
        """Run the full gate and write the outcome"""
        notes = notes or ""
        blocked = self.check_form(chosen_status, notes, duration)
        if blocked:
            return SubmissionResult(status=SubmissionStatus.BLOCKED, reason=blocked)

        if self.policy.needs_audit(parse_duration(duration), notes):
            verdict = await self.auditor.audit(notes, duration)
            if not verdict.is_valid:
                logger.info(f"Outcome for lead {lead_id} rejected by note audit ({verdict.source})")
                return SubmissionResult(
                    status=SubmissionStatus.REJECTED,
                    reason=verdict.reason or DEFAULT_REJECTION_REASON,
                )

        outcome = CallOutcome(
            lead_id=lead_id,
            status=LeadStatus(chosen_status),
            notes=notes,
            duration=duration,
            name=name,
        )
        try:
            revision = await self.write(outcome)
        except LeadStoreError as e:
            return SubmissionResult(status=SubmissionStatus.WRITE_ERROR, reason=str(e))

        return SubmissionResult(status=SubmissionStatus.SUCCESS, revision=revision)

    async def write(self, outcome: CallOutcome) -> int:
        """
        Write path without the quality gate (used for system outcomes).

        Returns:
            Snapshot revision taken after the write was acknowledged

        Raises:
            LeadStoreError: If the write fails
        """
        snapshot = await self.collection.update(outcome.lead_id, outcome.to_update())
        logger.info(
            f"Outcome written: lead={outcome.lead_id} status={outcome.status.value} "
            f"duration={outcome.duration} revision={snapshot.revision}"
        )
        return snapshot.revision
