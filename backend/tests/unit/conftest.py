"""
Shared fixtures for unit tests
"""
import asyncio
from typing import List, Optional

import pytest

from leaddesk.domain.interfaces.llm_provider import LLMProvider
from leaddesk.domain.models.conversation import Message
from leaddesk.domain.models.lead import LeadCandidate
from leaddesk.domain.services.intake import LeadIntake
from leaddesk.domain.services.lead_collection import LeadCollection
from leaddesk.domain.services.note_auditor import AuditorConfig, NoteQualityAuditor
from leaddesk.domain.services.outcome_pipeline import OutcomeSubmissionPipeline
from leaddesk.infrastructure.dialer.tel_uri import TelUriDialer
from leaddesk.infrastructure.session.redis_repository import InMemorySessionRepository
from leaddesk.infrastructure.storage.memory_store import InMemoryLeadStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock the test moves by hand"""

    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class ScriptedProvider(LLMProvider):
    """LLM provider that replays a fixed answer (or raises, or stalls)"""

    def __init__(self, answer: str = "", error: Optional[Exception] = None, delay: float = 0.0):
        self.answer = answer
        self.error = error
        self.delay = delay
        self.calls: List[dict] = []

    async def initialize(self, config: dict) -> None:
        pass

    async def complete(
        self,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> str:
        self.calls.append({"messages": messages, "system_prompt": system_prompt, **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.answer

    async def cleanup(self) -> None:
        pass

    @property
    def name(self) -> str:
        return "scripted"


async def seed(store: InMemoryLeadStore, collection: LeadCollection, *rows) -> list:
    """Insert (name, phone) rows and refresh the collection"""
    leads = await store.insert_many([LeadCandidate(name=name, phone=phone) for name, phone in rows])
    await collection.refresh()
    return leads


def seed_sync(store: InMemoryLeadStore, collection: LeadCollection, *rows) -> list:
    """seed() for synchronous tests"""
    return asyncio.run(seed(store, collection, *rows))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryLeadStore(intake=LeadIntake())


@pytest.fixture
def collection(store):
    return LeadCollection(store)


@pytest.fixture
def auditor():
    """Heuristic-only auditor"""
    return NoteQualityAuditor(provider=None, config=AuditorConfig())


@pytest.fixture
def pipeline(collection, auditor):
    return OutcomeSubmissionPipeline(collection=collection, auditor=auditor)


@pytest.fixture
def dialer():
    return TelUriDialer()


@pytest.fixture
def repository():
    return InMemorySessionRepository()
