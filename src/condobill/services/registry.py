"""Data entry for vehicles and water readings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from condobill.core.calculations import parse_unit_code, vehicle_limit_violations
from condobill.core.dates import parse_period, previous_period
from condobill.core.entities import ParkingStatus, VehicleTier
from condobill.core.errors import BillingError, InvalidInputError, InvalidReadingError
from condobill.core.models import Vehicle, WaterReading
from condobill.core.repositories.reading import ReadingRepository
from condobill.core.repositories.unit import UnitRepository, unit_to_record
from condobill.core.repositories.vehicle import VehicleRepository, vehicle_to_record

logger = logging.getLogger(__name__)


class VehicleLimitError(BillingError):
    """Raised in strict mode when a registration breaks a vehicle limit."""

    def __init__(self, violations: list[str]):
        super().__init__("; ".join(violations))
        self.violations = violations


@dataclass(frozen=True)
class VehicleRegistration:
    vehicle: Vehicle
    violations: list[str]


class RegistryService:
    """Registers vehicles and meter readings for units."""

    def __init__(
        self,
        unit_repo: UnitRepository,
        vehicle_repo: VehicleRepository,
        reading_repo: ReadingRepository,
    ):
        self._unit_repo = unit_repo
        self._vehicle_repo = vehicle_repo
        self._reading_repo = reading_repo

    async def _get_unit(self, unit_code: str):
        if parse_unit_code(unit_code) is None:
            raise InvalidInputError(f"Malformed unit code {unit_code!r}.")
        unit = await self._unit_repo.get_by_code(unit_code)
        if unit is None:
            raise BillingError(f"Unit {unit_code} not found.")
        return unit

    async def register_vehicle(
        self,
        unit_code: str,
        tier: VehicleTier,
        plate_number: str,
        start_date: date,
        name: str = "",
        parking_status: ParkingStatus | None = None,
        strict: bool = False,
    ) -> VehicleRegistration:
        """
        Adds a vehicle to a unit.

        Vehicle limits are soft: violations are logged and returned, and only
        block the registration when ``strict`` is set.
        """
        unit = await self._get_unit(unit_code)
        existing = await self._vehicle_repo.records_for_unit(unit_code)

        candidate = Vehicle(
            unit=unit,
            tier=tier,
            name=name,
            plate_number=plate_number,
            start_date=start_date,
            parking_status=parking_status,
        )
        violations = vehicle_limit_violations(
            unit_to_record(unit), existing + [vehicle_to_record(candidate, unit_code)]
        )
        if violations:
            if strict:
                raise VehicleLimitError(violations)
            for violation in violations:
                logger.warning(violation)

        await candidate.save()
        logger.info(f"Registered vehicle {plate_number} ({tier.value}) for {unit_code}.")
        return VehicleRegistration(vehicle=candidate, violations=violations)

    async def deactivate_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = await self._vehicle_repo.get(pk=vehicle_id)
        if vehicle is None:
            raise BillingError(f"Vehicle {vehicle_id} not found.")
        vehicle.is_active = False
        await vehicle.save()
        return vehicle

    async def record_reading(
        self,
        unit_code: str,
        period: str,
        curr_index: Decimal,
        prev_index: Decimal | None = None,
    ) -> WaterReading:
        """
        Stores the meter index of a unit for a period.

        The previous index defaults to the current index of the preceding
        period's reading, or to ``curr_index`` for a unit's first reading.
        """
        parse_period(period)
        unit = await self._get_unit(unit_code)

        if prev_index is None:
            previous = await self._reading_repo.get_for_period(
                unit_code, previous_period(period)
            )
            prev_index = previous.curr_index if previous else curr_index

        if curr_index < prev_index:
            raise InvalidReadingError(
                f"Index {curr_index} for unit {unit_code} in {period} is below "
                f"the previous index {prev_index}."
            )

        reading, _ = await self._reading_repo.update_or_create(
            defaults={"prev_index": prev_index, "curr_index": curr_index},
            unit=unit,
            period=period,
        )
        return reading
