"""
APScheduler-backed auto-save.

Runs registered async callbacks periodically so editors can persist their
working copy as an "auto_save" draft without user action.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mealdrafts.infrastructure.config import get_auto_save_interval_seconds

logger = logging.getLogger(__name__)

AutoSaveCallback = Callable[[], Awaitable[object]]

JOB_PREFIX = "auto_save:"


class AutoSaveScheduler:
    """
    Manages periodic auto-save jobs keyed by a caller-chosen key.

    One job per key: registering a key again replaces its job. The scheduler
    is started lazily on first registration and must run inside an asyncio
    event loop.
    """

    def __init__(
        self,
        interval_seconds: Optional[float] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        """
        Initialize auto-save manager.

        Args:
            interval_seconds: Default interval (AUTO_SAVE_INTERVAL_SECONDS)
            scheduler: Scheduler override (for testing)
        """
        self._interval = interval_seconds or get_auto_save_interval_seconds()
        self.scheduler = scheduler or AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs
                "max_instances": 1,  # One save at a time per key
            },
        )
        self._callbacks: Dict[str, AutoSaveCallback] = {}

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start_auto_save(
        self,
        key: str,
        callback: AutoSaveCallback,
        interval_seconds: Optional[float] = None,
    ) -> None:
        """
        Register (or replace) the auto-save job for a key.

        Args:
            key: Job key (e.g., "mealPlan_current")
            callback: Async callable performing the save
            interval_seconds: Interval override for this key
        """
        self._callbacks[key] = callback
        self.scheduler.add_job(
            self._run,
            trigger=IntervalTrigger(seconds=interval_seconds or self._interval),
            args=[key],
            id=f"{JOB_PREFIX}{key}",
            name=f"Auto-save {key}",
            replace_existing=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Auto-save scheduler started")

        logger.info(f"Auto-save registered for {key}")

    def stop_auto_save(self, key: str) -> None:
        """Remove the auto-save job for a key (no-op if absent)."""
        if self._callbacks.pop(key, None) is None:
            return
        job = self.scheduler.get_job(f"{JOB_PREFIX}{key}")
        if job is not None:
            job.remove()
        logger.info(f"Auto-save stopped for {key}")

    def is_active(self, key: str) -> bool:
        return key in self._callbacks

    def active_keys(self) -> List[str]:
        return list(self._callbacks)

    async def run_auto_save_now(self, key: str) -> bool:
        """
        Trigger the auto-save callback for a key immediately.

        Returns:
            True if the callback ran without error, False otherwise
        """
        if key not in self._callbacks:
            logger.warning(f"No auto-save registered for {key}")
            return False
        return await self._run(key)

    async def _run(self, key: str) -> bool:
        callback = self._callbacks.get(key)
        if callback is None:
            return False
        try:
            await callback()
            logger.debug(f"Auto-save completed for {key}")
            return True
        except Exception as e:
            # Job stays registered; next tick runs again.
            logger.error(f"Auto-save failed for {key}: {e}", exc_info=True)
            return False

    def shutdown(self, wait: bool = False) -> None:
        """Stop every job and the scheduler.

        Under a running event loop the scheduler stops on the next loop
        iteration; `scheduler.running` stays True until then.
        """
        self._callbacks.clear()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info(f"Auto-save scheduler shutdown (wait={wait})")
