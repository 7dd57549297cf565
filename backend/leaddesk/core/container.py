"""
Application Container
Builds the object graph shared by all requests
"""
import logging
from dataclasses import dataclass
from typing import Optional

from supabase import create_client

from leaddesk.core.config import ConfigManager, Settings
from leaddesk.domain.interfaces.lead_store import LeadStore
from leaddesk.domain.interfaces.llm_provider import LLMProvider
from leaddesk.domain.interfaces.session_repository import SessionRepository
from leaddesk.domain.services.access import AccessPinService
from leaddesk.domain.services.agent_console import AgentConsoleRegistry
from leaddesk.domain.services.intake import LeadIntake
from leaddesk.domain.services.lead_collection import LeadCollection
from leaddesk.domain.services.note_auditor import AuditorConfig, NoteQualityAuditor
from leaddesk.domain.services.outcome_pipeline import NotePolicy, OutcomeSubmissionPipeline
from leaddesk.domain.services.queue_selector import AgentQueueSelector
from leaddesk.infrastructure.dialer.tel_uri import TelUriDialer
from leaddesk.infrastructure.llm.factory import LLMFactory
from leaddesk.infrastructure.session.redis_repository import (
    InMemorySessionRepository,
    RedisSessionRepository,
)
from leaddesk.infrastructure.storage.memory_store import InMemoryLeadStore
from leaddesk.infrastructure.storage.supabase_store import SupabaseLeadStore

logger = logging.getLogger(__name__)


@dataclass
class ConsoleContainer:
    """Everything the API layer needs"""
    store: LeadStore
    collection: LeadCollection
    selector: AgentQueueSelector
    pipeline: OutcomeSubmissionPipeline
    registry: AgentConsoleRegistry
    access: AccessPinService
    repository: SessionRepository
    llm_provider: Optional[LLMProvider] = None

    async def shutdown(self) -> None:
        if self.llm_provider is not None:
            await self.llm_provider.cleanup()
        if isinstance(self.repository, RedisSessionRepository):
            await self.repository.close()


def build_lead_store(settings: Settings, config: ConfigManager) -> LeadStore:
    intake = LeadIntake(
        phone_digits=config.get("intake.phone_digits", 10),
        placeholder_prefix=config.get("intake.placeholder_prefix", "User-"),
    )
    if settings.lead_store_backend == "memory":
        logger.warning("Using in-memory lead store")
        return InMemoryLeadStore(intake=intake)
    if not settings.supabase_url or not settings.supabase_service_key:
        raise RuntimeError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for the supabase lead store"
        )
    client = create_client(settings.supabase_url, settings.supabase_service_key)
    return SupabaseLeadStore(client, intake=intake)


async def build_session_repository(settings: Settings, config: ConfigManager) -> SessionRepository:
    if settings.session_backend == "memory":
        logger.warning("Using in-memory recovery slot; sessions will not survive restarts")
        return InMemorySessionRepository()
    repository = RedisSessionRepository(
        redis_url=settings.redis_url,
        ttl_seconds=config.get("recovery.ttl_seconds", 86400),
    )
    try:
        await repository.initialize()
    except Exception as e:
        logger.warning(f"Redis unavailable, using in-memory recovery slot: {e}")
        return InMemorySessionRepository()
    return repository


async def build_llm_provider(settings: Settings, config: ConfigManager) -> Optional[LLMProvider]:
    """Auditor provider, or None when no key is configured"""
    provider_name = config.get("auditor.provider", "groq")
    provider_config = dict(config.get_section(f"auditor.{provider_name}"))
    if settings.groq_api_key:
        provider_config["api_key"] = settings.groq_api_key

    provider = LLMFactory.create(provider_name)
    try:
        await provider.initialize(provider_config)
    except ValueError as e:
        logger.warning(f"Note auditor running heuristic-only: {e}")
        return None
    return provider


async def build_container(settings: Settings, config: ConfigManager) -> ConsoleContainer:
    store = build_lead_store(settings, config)
    collection = LeadCollection(store)
    selector = AgentQueueSelector()

    llm_provider = await build_llm_provider(settings, config)
    auditor = NoteQualityAuditor(
        provider=llm_provider,
        config=AuditorConfig(
            timeout_seconds=config.get("auditor.timeout_seconds", 5.0),
            temperature=config.get(f"auditor.{config.get('auditor.provider', 'groq')}.temperature", 0.0),
        ),
    )
    pipeline = OutcomeSubmissionPipeline(
        collection=collection,
        auditor=auditor,
        policy=NotePolicy.from_config(config.get_section("notes")),
    )

    repository = await build_session_repository(settings, config)
    registry = AgentConsoleRegistry(
        collection=collection,
        pipeline=pipeline,
        dialer=TelUriDialer(),
        repository=repository,
        selector=selector,
        short_call_threshold=config.get("call_session.short_call_threshold_seconds", 10),
        auto_reject_note=config.get("call_session.auto_reject_note", "Auto-Rejected (Under 10s)"),
        key_prefix=config.get("recovery.key_prefix", "leaddesk:active_call"),
    )
    access = AccessPinService(store, defaults=config.get_section("access.default_pins") or None)

    logger.info(
        f"Console container built (store={store.name}, "
        f"recovery={type(repository).__name__}, auditor={'remote' if llm_provider else 'heuristic'})"
    )
    return ConsoleContainer(
        store=store,
        collection=collection,
        selector=selector,
        pipeline=pipeline,
        registry=registry,
        access=access,
        repository=repository,
        llm_provider=llm_provider,
    )
