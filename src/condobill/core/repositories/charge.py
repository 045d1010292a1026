"""Repository for Charge model."""

from __future__ import annotations

from condobill.core.entities import ChargeDraft, PaymentStatus
from condobill.core.models import Charge, Unit
from condobill.core.repositories.base import BaseRepository


class ChargeRepository(BaseRepository[Charge]):
    """Charge-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Charge)

    async def for_period(self, period: str) -> list[Charge]:
        return await self.model.filter(period=period).select_related("unit")

    async def get_for_unit(self, period: str, unit_code: str) -> Charge | None:
        return (
            await self.model.filter(period=period, unit__code=unit_code)
            .select_related("unit")
            .first()
        )

    async def statuses(self, period: str) -> dict[str, PaymentStatus]:
        """Payment status of each charge of the period, by unit code."""
        return {charge.unit.code: charge.payment_status for charge in await self.for_period(period)}

    async def save_draft(self, unit: Unit, draft: ChargeDraft) -> Charge:
        """Stores a freshly computed charge as pending, replacing any previous one."""
        counts = draft.vehicle_counts
        charge, _ = await self.model.update_or_create(
            defaults={
                "owner_name": draft.owner_name,
                "area_m2": draft.area_m2,
                "service_base": draft.service.base,
                "service_vat": draft.service.vat,
                "service_total": draft.service.total,
                "car_count": counts.car,
                "car_premium_count": counts.car_premium,
                "motorbike_count": counts.motorbike,
                "bicycle_count": counts.bicycle,
                "parking_base": draft.parking.base,
                "parking_vat": draft.parking.vat,
                "parking_total": draft.parking.total,
                "water_m3": draft.water_m3,
                "water_base": draft.water.base,
                "water_vat": draft.water.vat,
                "water_total": draft.water.total,
                "adjustments": draft.adjustments,
                "total_due": draft.total_due,
                "total_paid": 0,
                "payment_confirmed": False,
                "payment_status": PaymentStatus.PENDING,
                "locked": False,
            },
            unit=unit,
            period=draft.period,
        )
        return charge

    async def delete_for_units(self, period: str, unit_codes: list[str]) -> int:
        unit_ids = await Unit.filter(code__in=unit_codes).values_list("id", flat=True)
        return await self.model.filter(period=period, unit_id__in=list(unit_ids)).delete()

    async def set_locked(self, period: str, locked: bool) -> int:
        return await self.model.filter(period=period).update(locked=locked)
