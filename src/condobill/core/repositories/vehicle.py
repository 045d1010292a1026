"""Repository for Vehicle model."""

from __future__ import annotations

from collections import defaultdict

from condobill.core.entities import VehicleRecord
from condobill.core.models import Vehicle
from condobill.core.repositories.base import BaseRepository


def vehicle_to_record(vehicle: Vehicle, unit_code: str) -> VehicleRecord:
    return VehicleRecord(
        vehicle_id=str(vehicle.id),
        unit_id=unit_code,
        tier=vehicle.tier,
        plate_number=vehicle.plate_number,
        start_date=vehicle.start_date,
        is_active=vehicle.is_active,
        parking_status=vehicle.parking_status,
    )


class VehicleRepository(BaseRepository[Vehicle]):
    """Vehicle-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Vehicle)

    async def records_for_unit(self, unit_code: str) -> list[VehicleRecord]:
        vehicles = await self.model.filter(unit__code=unit_code)
        return [vehicle_to_record(v, unit_code) for v in vehicles]

    async def records_by_unit(self) -> dict[str, list[VehicleRecord]]:
        """Active vehicles grouped by unit code."""
        grouped: dict[str, list[VehicleRecord]] = defaultdict(list)
        vehicles = await self.model.filter(is_active=True).select_related("unit")
        for vehicle in vehicles:
            grouped[vehicle.unit.code].append(vehicle_to_record(vehicle, vehicle.unit.code))
        return dict(grouped)
