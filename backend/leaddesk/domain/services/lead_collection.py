"""
Lead Collection
Versioned, copy-on-read view of the remote lead table.

Every mutation goes to the store first and is followed by a full refetch;
nothing is patched in place. A failed mutation still refetches so the
snapshot converges to ground truth, then the error is re-raised for the
caller to surface.
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from leaddesk.domain.interfaces.lead_store import LeadStore, LeadStoreError
from leaddesk.domain.models.lead import (
    Lead,
    LeadCandidate,
    LeadSnapshot,
    LeadStatus,
    LeadUpdate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LeadCollection:
    """Holds the latest LeadSnapshot and serializes writes with refreshes"""

    def __init__(self, store: LeadStore):
        self.store = store
        self._snapshot = LeadSnapshot()
        self._revision = 0
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> LeadSnapshot:
        return self._snapshot

    @property
    def revision(self) -> int:
        return self._snapshot.revision

    async def refresh(self) -> LeadSnapshot:
        """
        Fetch every lead and publish a new snapshot.

        Raises:
            LeadStoreError: If the fetch fails (previous snapshot is kept)
        """
        leads = await self.store.fetch_all()
        self._revision += 1
        self._snapshot = LeadSnapshot(
            revision=self._revision,
            leads=tuple(leads),
            fetched_at=datetime.utcnow(),
        )
        logger.debug(f"Lead snapshot refreshed: revision={self._revision}, leads={len(leads)}")
        return self._snapshot

    async def _mutate(self, operation: str, action: Callable[[], Awaitable[T]]) -> T:
        """Run a store write, then refresh; refresh on failure too"""
        async with self._lock:
            try:
                result = await action()
            except LeadStoreError as e:
                logger.error(f"{operation} failed: {e}")
                await self._refresh_quietly(operation)
                raise
            await self.refresh()
            return result

    async def _refresh_quietly(self, operation: str) -> None:
        try:
            await self.refresh()
        except LeadStoreError as e:
            logger.error(f"Resync after failed {operation} also failed: {e}")

    def get(self, lead_id: str) -> Optional[Lead]:
        return self._snapshot.get(lead_id)

    def search(self, query: str = "", status: Optional[LeadStatus] = None) -> List[Lead]:
        """Filter by status and case-insensitive name or phone substring"""
        needle = (query or "").strip().lower()
        results = []
        for lead in self._snapshot.leads:
            if status is not None and lead.status != status:
                continue
            if needle and needle not in lead.name.lower() and needle not in lead.phone:
                continue
            results.append(lead)
        return results

    async def add(self, candidate: LeadCandidate) -> Lead:
        return await self._mutate("insert_one", lambda: self.store.insert_one(candidate))

    async def add_many(self, candidates: Sequence[LeadCandidate]) -> List[Lead]:
        return await self._mutate("insert_many", lambda: self.store.insert_many(candidates))

    async def update(self, lead_id: str, update: LeadUpdate) -> LeadSnapshot:
        """Write one lead's outcome and return the post-write snapshot"""
        await self._mutate("update_status", lambda: self.store.update_status(lead_id, update))
        return self._snapshot

    async def delete(self, lead_id: str) -> None:
        await self._mutate("delete_one", lambda: self.store.delete_one(lead_id))

    async def delete_by_status(self, status: LeadStatus) -> int:
        return await self._mutate("delete_by_status", lambda: self.store.delete_by_status(status))

    async def recycle(self, lead_id: str) -> None:
        await self._mutate("reset_to_pending", lambda: self.store.reset_to_pending(lead_id))

    async def clear_all(self) -> None:
        await self._mutate("clear_all", self.store.clear_all)
