"""Repository for WaterReading model."""

from __future__ import annotations

from condobill.core.dates import previous_period
from condobill.core.entities import WaterReadingRecord
from condobill.core.models import WaterReading
from condobill.core.repositories.base import BaseRepository


def reading_to_record(reading: WaterReading, unit_code: str) -> WaterReadingRecord:
    return WaterReadingRecord(
        unit_id=unit_code,
        period=reading.period,
        prev_index=reading.prev_index,
        curr_index=reading.curr_index,
    )


class ReadingRepository(BaseRepository[WaterReading]):
    """Reading-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(WaterReading)

    async def get_for_period(self, unit_code: str, period: str) -> WaterReading | None:
        return await self.model.get_or_none(unit__code=unit_code, period=period)

    async def records_for_billing(self, period: str) -> list[WaterReadingRecord]:
        """Readings of the period and of the month before, which decides
        whether the period is a unit's baseline month."""
        readings = await self.model.filter(
            period__in=[period, previous_period(period)]
        ).select_related("unit")
        return [reading_to_record(r, r.unit.code) for r in readings]

    async def unit_codes_with_reading(self, period: str) -> set[str]:
        readings = await self.model.filter(period=period).select_related("unit")
        return {reading.unit.code for reading in readings}
