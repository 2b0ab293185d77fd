"""
Background scheduler service for periodic tasks.

Runs housekeeping inside the FastAPI process so no external cron job is
needed.
"""

import asyncio
from typing import Iterable, Optional

from app.config import settings
from app.services.cache import TaggedCache, cache_service
from app.services.rate_limit import RateLimiter
from app.utils import logger


class SchedulerService:
    """
    Background scheduler that runs periodic tasks.

    Currently handles:
    - Sweeping expired rate-limit windows so the limiter maps stay bounded
    - Sweeping expired read-cache entries
    """

    def __init__(
        self,
        sweep_interval: Optional[float] = None,
        cache: Optional[TaggedCache] = None,
    ):
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._limiters: list[RateLimiter] = []
        self._cache = cache if cache is not None else cache_service
        self.sweep_interval = sweep_interval or settings.rate_limit_sweep_interval

    async def start(self, limiters: Iterable[RateLimiter] = ()):
        """Start the background scheduler."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._limiters = list(limiters)
        self._running = True
        self._task = asyncio.create_task(self._run_scheduler())
        logger.info(
            f"Background scheduler started (sweep_interval={self.sweep_interval}s, "
            f"limiters={len(self._limiters)})"
        )

    async def stop(self):
        """Stop the background scheduler gracefully."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Background scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def _run_scheduler(self):
        """Main scheduler loop."""
        while self._running:
            try:
                await asyncio.sleep(self.sweep_interval)
            except asyncio.CancelledError:
                break

            try:
                self.sweep_rate_limiters()
            except Exception as e:
                logger.error(f"Scheduler error in rate limit sweep: {e}", exc_info=True)

            try:
                self.sweep_cache()
            except Exception as e:
                logger.error(f"Scheduler error in cache sweep: {e}", exc_info=True)

    def sweep_rate_limiters(self) -> int:
        """Drop expired windows from every registered limiter."""
        removed = sum(limiter.sweep() for limiter in self._limiters)
        if removed > 0:
            logger.debug(f"Scheduler: swept {removed} expired rate limit window(s)")
        return removed

    def sweep_cache(self) -> int:
        """Drop expired entries from the read cache."""
        removed = self._cache.sweep()
        if removed > 0:
            logger.debug(f"Scheduler: swept {removed} expired cache entries")
        return removed


# Global scheduler instance
scheduler_service = SchedulerService()
