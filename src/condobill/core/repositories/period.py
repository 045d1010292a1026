"""Repository for BillingPeriod model."""

from __future__ import annotations

from tortoise import timezone

from condobill.core.models import BillingPeriod
from condobill.core.repositories.base import BaseRepository


class BillingPeriodRepository(BaseRepository[BillingPeriod]):
    """Lock state of billing periods."""

    def __init__(self) -> None:
        super().__init__(BillingPeriod)

    async def locked_periods(self) -> set[str]:
        periods = await self.model.filter(locked=True).values_list("period", flat=True)
        return set(periods)

    async def is_locked(self, period: str) -> bool:
        return await self.model.filter(period=period, locked=True).exists()

    async def set_locked(self, period: str, locked: bool, actor: str) -> BillingPeriod:
        billing_period, _ = await self.model.update_or_create(
            defaults={
                "locked": locked,
                "locked_at": timezone.now() if locked else None,
                "locked_by": actor if locked else None,
            },
            period=period,
        )
        return billing_period
