"""
Conversation Domain Models
"""
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


class MessageRole(str, Enum):
    """Message role in a completion request"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """Single message sent to the LLM"""
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
