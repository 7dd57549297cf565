"""
Lead Storage Package
"""
from leaddesk.infrastructure.storage.memory_store import InMemoryLeadStore
from leaddesk.infrastructure.storage.supabase_store import SupabaseLeadStore

__all__ = ["InMemoryLeadStore", "SupabaseLeadStore"]
