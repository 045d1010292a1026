"""Repository for Unit and Owner models."""

from __future__ import annotations

from condobill.core.entities import OwnerRecord, UnitRecord
from condobill.core.models import Owner, Unit
from condobill.core.repositories.base import BaseRepository


def unit_to_record(unit: Unit) -> UnitRecord:
    return UnitRecord(
        unit_id=unit.code,
        unit_type=unit.unit_type,
        area_m2=unit.area_m2,
        status=unit.status,
        owner_id=str(unit.owner_id) if unit.owner_id else None,
    )


def owner_to_record(owner: Owner) -> OwnerRecord:
    return OwnerRecord(
        owner_id=str(owner.id), name=owner.name, phone=owner.phone, email=owner.email
    )


class UnitRepository(BaseRepository[Unit]):
    """Unit-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Unit)

    async def get_by_code(self, code: str) -> Unit | None:
        return await self.model.get_or_none(code=code)

    async def get_by_codes(self, codes: list[str]) -> dict[str, Unit]:
        units = await self.model.filter(code__in=codes)
        return {unit.code: unit for unit in units}

    async def list_records(self) -> list[UnitRecord]:
        """All units as plain records, ordered by code."""
        units = await self.model.all().order_by("code")
        return [unit_to_record(unit) for unit in units]


class OwnerRepository(BaseRepository[Owner]):
    """Owner-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Owner)

    async def records_by_id(self) -> dict[str, OwnerRecord]:
        owners = await self.model.all()
        return {str(owner.id): owner_to_record(owner) for owner in owners}
