"""
Session Models
Defines CallSession and CallState for the agent's in-flight dial attempt
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from enum import Enum


class CallState(str, Enum):
    """Call session state"""
    IDLE = "idle"          # No active call (initial and terminal)
    CALLING = "calling"    # Dialer handed off, timer running
    OUTCOME = "outcome"    # Awaiting classification


class ResumeSignal(str, Enum):
    """Platform signal that the agent is back in the console"""
    VISIBILITY = "visibility"   # visibility change to visible
    FOCUS = "focus"             # window focus
    MANUAL = "manual"           # explicit "hang up"


def format_duration(elapsed_seconds: int) -> str:
    """Format talk time as "<m>m <s>s"."""
    return f"{elapsed_seconds // 60}m {elapsed_seconds % 60}s"


def parse_duration(duration: Optional[str]) -> int:
    """
    Parse a "<m>m <s>s" label back to seconds.

    Unparseable labels count as zero seconds.
    """
    if not duration:
        return 0
    total = 0
    for part in duration.split():
        try:
            if part.endswith("m"):
                total += int(part[:-1]) * 60
            elif part.endswith("s"):
                total += int(part[:-1])
        except ValueError:
            return 0
    return total


class CallSession(BaseModel):
    """
    Runtime state for one dial attempt.

    Lives in memory on the agent's state machine and is mirrored into the
    recovery slot while calling.
    """
    lead_id: str = Field(..., description="Lead being called")
    start_time: int = Field(..., ge=0, description="Dial initiation, epoch milliseconds")
    state: CallState = Field(default=CallState.CALLING, description="Current session state")

    model_config = ConfigDict(use_enum_values=False)

    def elapsed_seconds(self, now_ms: int) -> int:
        """Whole seconds since dial, never negative"""
        return max(0, (now_ms - self.start_time) // 1000)

    def to_recovery_dict(self) -> dict:
        """Serialize for the recovery slot"""
        return {
            "startTime": self.start_time,
            "state": self.state.value,
            "leadId": self.lead_id,
        }

    @classmethod
    def from_recovery_dict(cls, data: dict) -> "CallSession":
        """
        Rebuild a session from the recovery slot.

        Raises:
            ValueError: If the payload is missing fields or malformed
        """
        try:
            return cls(
                lead_id=data["leadId"],
                start_time=int(data["startTime"]),
                state=CallState(data["state"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed recovery payload: {e}") from e
