"""Domain models"""

# Lead models
from .lead import (
    LeadStatus,
    OUTCOME_STATUSES,
    Lead,
    LeadCandidate,
    LeadUpdate,
    CallOutcome,
    LeadSnapshot,
)

# Session models
from .session import (
    CallState,
    ResumeSignal,
    CallSession,
    format_duration,
    parse_duration,
)

from .conversation import (
    MessageRole,
    Message,
)

__all__ = [
    # Lead models
    "LeadStatus",
    "OUTCOME_STATUSES",
    "Lead",
    "LeadCandidate",
    "LeadUpdate",
    "CallOutcome",
    "LeadSnapshot",
    # Session models
    "CallState",
    "ResumeSignal",
    "CallSession",
    "format_duration",
    "parse_duration",
    # LLM messages
    "MessageRole",
    "Message",
]
