import asyncio
import logging
from datetime import date

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from condobill.core.models import Charge
from condobill.services.billing import BillingService
from condobill.services.scheduler import SchedulerService


@pytest.mark.asyncio
async def test_scheduler_runs_monthly_billing(
    billing_service: BillingService, tariffs, apartment, caplog
):
    """Smoke test: the monthly job calculates the current period."""
    scheduler_service = SchedulerService(billing_service, AsyncIOScheduler())

    with caplog.at_level(logging.INFO):
        await scheduler_service._run_monthly_billing(today=date(2025, 7, 1))

    assert await Charge.filter(period="2025-07").count() == 1
    assert "1 charges calculated" in caplog.text


@pytest.mark.asyncio
async def test_scheduler_skips_locked_period(
    billing_service: BillingService, tariffs, apartment, caplog
):
    await billing_service.lock_period("2025-07", actor="tg:1")
    scheduler_service = SchedulerService(billing_service, AsyncIOScheduler())

    with caplog.at_level(logging.WARNING):
        await scheduler_service._run_monthly_billing(today=date(2025, 7, 1))

    assert await Charge.all().count() == 0
    assert "skipped" in caplog.text


@pytest.mark.asyncio
async def test_scheduler_registers_monthly_job(billing_service: BillingService):
    scheduler = AsyncIOScheduler()
    scheduler_service = SchedulerService(billing_service, scheduler, billing_day=5)

    scheduler_service.start()
    try:
        job = scheduler.get_job("monthly_billing")
        assert job is not None
        assert "day='5'" in str(job.trigger)
    finally:
        scheduler_service.shutdown()

    # The asyncio scheduler finishes shutting down on the next loop iteration.
    await asyncio.sleep(0)
    assert not scheduler.running
