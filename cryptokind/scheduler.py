"""
Key reset scheduler: APScheduler cron job that zeroes API key usage counts.

Runs inside the API server's event loop; started and stopped by the app
lifespan. An empty cron expression disables the job.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from cryptokind.errors import KeyStoreError
from cryptokind.keys.rotator import KeyRotator

logger = logging.getLogger(__name__)

JOB_ID = "keys:reset-usage"


class KeyResetScheduler:
    """Periodic ``KeyRotator.reset_usage`` on a crontab schedule."""

    def __init__(self, rotator: KeyRotator, cron_expr: str, timezone: str = "UTC") -> None:
        self.rotator = rotator
        self.cron_expr = cron_expr
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self._timezone = timezone

    def start(self) -> bool:
        """Register the reset job and start. Returns False when disabled or invalid."""
        if not self.cron_expr:
            logger.info("Key reset schedule disabled")
            return False

        try:
            trigger = CronTrigger.from_crontab(self.cron_expr, timezone=self._timezone)
        except ValueError as e:
            logger.error("Invalid key reset cron %r: %s", self.cron_expr, e)
            return False

        self.scheduler.add_job(
            self._reset,
            trigger=trigger,
            id=JOB_ID,
            name="reset API key usage",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )
        self.scheduler.start()
        logger.info("Key reset scheduled: %s", self.cron_expr)
        return True

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Key reset scheduler stopped")

    async def _reset(self) -> None:
        try:
            self.rotator.reset_usage()
        except KeyStoreError as e:
            logger.error("Scheduled key reset failed: %s", e)
