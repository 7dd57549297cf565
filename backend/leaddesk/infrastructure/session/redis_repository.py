"""
Recovery Slot Repositories
Redis-backed slot for the agent's in-flight call, plus an in-memory variant
"""
import json
import logging
from typing import Dict, Optional

import redis.asyncio as redis

from leaddesk.domain.interfaces.session_repository import SessionRepository

logger = logging.getLogger(__name__)


class RedisSessionRepository(SessionRepository):
    """
    Stores each agent's recovery payload as JSON with a TTL.

    Redis errors are logged rather than raised: a slot that cannot be read
    is treated as "no active session", and a failed save only costs
    recoverability, not the call itself.
    """

    def __init__(self, redis_client=None, redis_url: str = "redis://localhost:6379", ttl_seconds: int = 86400):
        self._redis = redis_client
        self._redis_url = redis_url
        self.ttl_seconds = ttl_seconds

    async def initialize(self) -> None:
        """Create the Redis client if one was not injected"""
        if self._redis is not None:
            return
        self._redis = await redis.from_url(
            self._redis_url,
            encoding="utf-8",
            decode_responses=True
        )
        await self._redis.ping()
        logger.info(f"RedisSessionRepository connected to Redis: {self._redis_url}")

    async def save(self, session_key: str, payload: dict) -> None:
        try:
            await self._redis.setex(session_key, self.ttl_seconds, json.dumps(payload))
        except Exception as e:
            logger.error(f"Error saving recovery slot {session_key}: {e}")

    async def load(self, session_key: str) -> Optional[dict]:
        try:
            raw = await self._redis.get(session_key)
        except Exception as e:
            logger.error(f"Error loading recovery slot {session_key}: {e}")
            return None

        if not raw:
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning(f"Recovery slot {session_key} is not valid JSON")
            return None
        return payload if isinstance(payload, dict) else None

    async def clear(self, session_key: str) -> None:
        try:
            await self._redis.delete(session_key)
        except Exception as e:
            logger.error(f"Error clearing recovery slot {session_key}: {e}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.close()


class InMemorySessionRepository(SessionRepository):
    """Process-local slot; survives nothing but is handy in development"""

    def __init__(self):
        self._slots: Dict[str, str] = {}

    async def save(self, session_key: str, payload: dict) -> None:
        self._slots[session_key] = json.dumps(payload)

    async def load(self, session_key: str) -> Optional[dict]:
        raw = self._slots.get(session_key)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    async def clear(self, session_key: str) -> None:
        self._slots.pop(session_key, None)
