"""
Scheduler module - keeps the lead cache fresh in the background.
Uses APScheduler for task scheduling.
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from config import SHEET_POLL_INTERVAL
from database import save_sync_status


class SchedulerManager:
    """Manages background scheduler tasks."""

    def __init__(self, lead_cache):
        self.lead_cache = lead_cache
        self.scheduler = AsyncIOScheduler()
        self._running = False

    async def start(self):
        """Start the scheduler."""
        if self._running:
            return

        # Periodic refresh of the cached lead list
        self.scheduler.add_job(
            self.sync_leads,
            trigger=IntervalTrigger(seconds=SHEET_POLL_INTERVAL),
            id="sync_leads",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    async def stop(self):
        """Stop the scheduler."""
        if not self._running:
            return

        self.scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Scheduler stopped")

    async def sync_leads(self) -> int:
        """Reload the lead cache and record the outcome. Returns the row count."""
        try:
            logger.debug("Syncing leads from Google Sheets...")
            leads = await self.lead_cache.reload()
            await save_sync_status("success", rows_count=len(leads))
            return len(leads)
        except Exception as e:
            logger.error(f"Error in sync_leads job: {e}")
            await save_sync_status("error", error_message=str(e))
            return 0
