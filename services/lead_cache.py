"""
In-memory lead list with a guarded reload.

A reload requested while another is in flight joins it. Each fetch carries a
generation number; invalidate() bumps the generation so that a fetch started
before a write is discarded when it lands.
"""
import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from google_sheets import records_store
from utils.time_utils import now_utc


class LeadCache:
    """Holds the current lead list fetched from the record store."""

    def __init__(self, store):
        self.store = store
        self._records: List[Dict] = []
        self._loaded = False
        self._loaded_at: Optional[datetime] = None
        self._generation = 0
        self._pending: Optional[asyncio.Future] = None
        self._pending_generation = -1

    @property
    def is_loading(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def loaded_at(self) -> Optional[datetime]:
        return self._loaded_at

    def invalidate(self):
        """Mark the cached list and any in-flight fetch as stale."""
        self._generation += 1
        self._loaded = False

    async def reload(self) -> List[Dict]:
        """Fetch the lead list, joining a fetch of the current generation if one is running."""
        if self.is_loading and self._pending_generation == self._generation:
            logger.debug("Lead reload already in flight, joining it")
            await asyncio.shield(self._pending)
            return self._records

        self._generation += 1
        generation = self._generation
        pending = asyncio.ensure_future(self.store.list_leads())
        self._pending = pending
        self._pending_generation = generation

        records = await asyncio.shield(pending)
        if generation == self._generation:
            self._records = records
            self._loaded = True
            self._loaded_at = now_utc()
            logger.debug(f"Lead cache refreshed with {len(records)} records")
        else:
            logger.debug(f"Discarding stale lead list (generation {generation})")
        return self._records

    async def get_leads(self) -> List[Dict]:
        """Cached leads, fetching them first if nothing valid is loaded."""
        if not self._loaded:
            return await self.reload()
        return self._records

    def find(self, lead_id: str) -> Optional[Dict]:
        lead_id = str(lead_id).strip()
        if not lead_id:
            return None
        return next(
            (lead for lead in self._records if str(lead.get("ID", "")).strip() == lead_id),
            None,
        )


# Global instance
lead_cache = LeadCache(records_store)
