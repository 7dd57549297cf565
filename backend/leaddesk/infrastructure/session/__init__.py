"""
Recovery Slot Package
"""
from leaddesk.infrastructure.session.redis_repository import (
    InMemorySessionRepository,
    RedisSessionRepository,
)

__all__ = ["InMemorySessionRepository", "RedisSessionRepository"]
