"""Repository for Adjustment model."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from condobill.core.entities import AdjustmentRecord
from condobill.core.models import Adjustment, Unit
from condobill.core.repositories.base import BaseRepository


class AdjustmentRepository(BaseRepository[Adjustment]):
    """Adjustment-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Adjustment)

    async def records_by_unit(self, period: str) -> dict[str, list[AdjustmentRecord]]:
        grouped: dict[str, list[AdjustmentRecord]] = defaultdict(list)
        adjustments = await self.model.filter(period=period).select_related("unit")
        for adj in adjustments:
            grouped[adj.unit.code].append(
                AdjustmentRecord(
                    unit_id=adj.unit.code,
                    period=adj.period,
                    amount=adj.amount,
                    description=adj.description,
                    source_period=adj.source_period,
                )
            )
        return dict(grouped)

    async def replace_carry_over(
        self,
        unit: Unit,
        period: str,
        source_period: str,
        amount: Decimal,
        description: str,
    ) -> Adjustment:
        """Writes the balance carried from ``source_period``, dropping any
        earlier carry-over from the same source."""
        await self.delete_carry_over(unit, source_period)
        return await self.model.create(
            unit=unit,
            period=period,
            amount=amount,
            description=description,
            source_period=source_period,
        )

    async def delete_carry_over(self, unit: Unit, source_period: str) -> int:
        return await self.model.filter(unit=unit, source_period=source_period).delete()

    async def has_carry_over(self, unit_codes: list[str], source_period: str) -> bool:
        return await self.model.filter(
            unit__code__in=unit_codes, source_period=source_period
        ).exists()

    async def delete_carry_overs(self, unit_codes: list[str], source_period: str) -> int:
        """Removes the balances carried from ``source_period`` for several units."""
        unit_ids = await Unit.filter(code__in=unit_codes).values_list("id", flat=True)
        return await self.model.filter(
            source_period=source_period, unit_id__in=list(unit_ids)
        ).delete()
