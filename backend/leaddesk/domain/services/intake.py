"""
Lead Intake Validation
Normalizes phones and classifies bad or duplicate candidates as invalid.

One rule is used for single and batch inserts: a phone is a duplicate if
any committed non-invalid lead already holds it, or if an earlier valid
candidate in the same batch does.
"""
import random
import re
import logging
from typing import Iterable, List, Optional, Sequence, Set

from pydantic import BaseModel

from leaddesk.domain.models.lead import Lead, LeadCandidate, LeadStatus

logger = logging.getLogger(__name__)

DEFAULT_PHONE_DIGITS = 10
DEFAULT_PLACEHOLDER_PREFIX = "User-"

INVALID_LENGTH_NOTE = "Invalid phone length: expected {expected} digits, got {actual}"
DUPLICATE_NOTE = "Duplicate phone number: {phone} already exists"


class IntakeRow(BaseModel):
    """Validated row ready to be persisted"""
    name: str
    phone: str
    status: LeadStatus
    notes: Optional[str] = None

    def to_row(self) -> dict:
        return {
            "name": self.name,
            "phone": self.phone,
            "status": self.status.value,
            "notes": self.notes,
        }


def normalize_phone(phone: str) -> str:
    """Strip everything but digits"""
    return re.sub(r"\D", "", phone or "")


def placeholder_name(prefix: str = DEFAULT_PLACEHOLDER_PREFIX) -> str:
    """System-assigned name for a lead entered without one"""
    return f"{prefix}{random.randint(1000, 9999)}"


def committed_phones(leads: Iterable[Lead]) -> Set[str]:
    """Phones that count for duplicate detection (invalid rows excluded)"""
    return {
        normalize_phone(lead.phone)
        for lead in leads
        if lead.status != LeadStatus.INVALID
    }


class LeadIntake:
    """Applies intake validation to candidate leads"""

    def __init__(
        self,
        phone_digits: int = DEFAULT_PHONE_DIGITS,
        placeholder_prefix: str = DEFAULT_PLACEHOLDER_PREFIX,
    ):
        self.phone_digits = phone_digits
        self.placeholder_prefix = placeholder_prefix

    def validate(
        self,
        candidates: Sequence[LeadCandidate],
        existing_phones: Set[str],
    ) -> List[IntakeRow]:
        """
        Classify every candidate.

        Args:
            candidates: Raw leads in submission order
            existing_phones: Canonical phones already committed

        Returns:
            One row per candidate, same order; rejects carry status invalid
        """
        seen = set(existing_phones)
        rows: List[IntakeRow] = []

        for candidate in candidates:
            phone = normalize_phone(candidate.phone)
            name = (candidate.name or "").strip() or placeholder_name(self.placeholder_prefix)

            if len(phone) != self.phone_digits:
                rows.append(IntakeRow(
                    name=name,
                    phone=phone,
                    status=LeadStatus.INVALID,
                    notes=INVALID_LENGTH_NOTE.format(expected=self.phone_digits, actual=len(phone)),
                ))
                continue

            if phone in seen:
                rows.append(IntakeRow(
                    name=name,
                    phone=phone,
                    status=LeadStatus.INVALID,
                    notes=DUPLICATE_NOTE.format(phone=phone),
                ))
                continue

            seen.add(phone)
            rows.append(IntakeRow(name=name, phone=phone, status=LeadStatus.PENDING))

        rejected = sum(1 for row in rows if row.status == LeadStatus.INVALID)
        if rejected:
            logger.info(f"Intake classified {rejected}/{len(rows)} candidates as invalid")
        return rows
