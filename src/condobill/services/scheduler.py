"""Service for scheduling background jobs."""

from __future__ import annotations

import logging
from datetime import date

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from condobill.core.dates import format_period
from condobill.core.errors import OperationRejected
from condobill.services.billing import BillingService

logger = logging.getLogger(__name__)

SCHEDULER_ACTOR = "scheduler"


class SchedulerService:
    """Manages scheduled tasks for the application."""

    def __init__(
        self,
        billing_service: BillingService,
        scheduler: AsyncIOScheduler,
        billing_day: int = 1,
    ):
        self._billing_service = billing_service
        self._scheduler = scheduler
        self._billing_day = billing_day

    def start(self):
        """Starts the scheduler and adds jobs."""
        logger.info("Starting scheduler...")
        self._scheduler.add_job(
            self._run_monthly_billing,
            trigger=CronTrigger(day=self._billing_day, hour=2, minute=0),
            id="monthly_billing",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Scheduler started.")

    async def _run_monthly_billing(self, today: date | None = None):
        """
        Calculates the charges of the current period.
        """
        period = format_period(today or date.today())
        logger.info(f"Starting monthly billing job for {period}.")
        try:
            result = await self._billing_service.calculate_period(
                period, actor=SCHEDULER_ACTOR, reason="scheduled run", today=today
            )
            logger.info(
                f"Monthly billing for {period}: {len(result.drafts)} charges calculated."
            )
        except OperationRejected as e:
            logger.warning(f"Monthly billing for {period} skipped: {e.message}")
        except Exception as e:
            logger.error(f"Monthly billing for {period} failed: {e}", exc_info=True)
        logger.info("Monthly billing job finished.")

    def shutdown(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped.")
