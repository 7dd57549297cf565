"""
Lead Domain Models
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Tuple, FrozenSet
from datetime import datetime
from enum import Enum


class LeadStatus(str, Enum):
    """Lead status"""
    PENDING = "pending"                # Not yet worked
    INTERESTED = "interested"
    CALL_BACK = "call_back"
    COMPLETE = "complete"
    NOT_RECEIVED = "not_received"
    NOT_INTERESTED = "not_interested"
    INVALID = "invalid"                # Failed intake validation


# Statuses an agent may pick on the outcome form
OUTCOME_STATUSES: FrozenSet[LeadStatus] = frozenset({
    LeadStatus.INTERESTED,
    LeadStatus.CALL_BACK,
    LeadStatus.COMPLETE,
    LeadStatus.NOT_RECEIVED,
    LeadStatus.NOT_INTERESTED,
})


class Lead(BaseModel):
    """Lead/Contact for calling"""
    id: str
    name: str = ""
    phone: str
    status: LeadStatus = LeadStatus.PENDING
    notes: Optional[str] = None
    duration: Optional[str] = None  # "<m>m <s>s"
    timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        # Rows written by older clients may carry upper-case statuses
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, value):
        return value or ""


class LeadCandidate(BaseModel):
    """Raw lead as entered by the owner, before intake validation"""
    name: Optional[str] = None
    phone: str


class LeadUpdate(BaseModel):
    """Partial update applied to a single lead row"""
    status: LeadStatus
    notes: Optional[str] = None
    duration: Optional[str] = None
    timestamp: Optional[datetime] = None
    name: Optional[str] = None

    def to_row(self) -> dict:
        """Serialize for the store, dropping a blank name"""
        row = {
            "status": self.status.value,
            "notes": self.notes,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
        if self.name and self.name.strip():
            row["name"] = self.name.strip()
        return row


class CallOutcome(BaseModel):
    """Result of finalizing a call session (write-once per submission)"""
    lead_id: str
    status: LeadStatus
    notes: str = ""
    duration: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    name: Optional[str] = None

    def to_update(self) -> LeadUpdate:
        return LeadUpdate(
            status=self.status,
            notes=self.notes,
            duration=self.duration,
            timestamp=self.timestamp,
            name=self.name,
        )


class LeadSnapshot(BaseModel):
    """
    Immutable copy of the full lead collection.

    The revision increases on every refresh, so a reader can tell whether
    the snapshot it holds was taken after a given write.
    """
    revision: int = Field(default=0, ge=0)
    leads: Tuple[Lead, ...] = ()
    fetched_at: Optional[datetime] = None

    def get(self, lead_id: str) -> Optional[Lead]:
        for lead in self.leads:
            if lead.id == lead_id:
                return lead
        return None

    def with_status(self, status: LeadStatus) -> Tuple[Lead, ...]:
        return tuple(lead for lead in self.leads if lead.status == status)

    def count(self, status: LeadStatus) -> int:
        return sum(1 for lead in self.leads if lead.status == status)
