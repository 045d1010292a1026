"""Repository for the tariff tables."""

from __future__ import annotations

from condobill.core.entities import (
    ParkingTariffEntry,
    ServiceTariffEntry,
    TariffSet,
    WaterTariffEntry,
)
from condobill.core.models import ParkingTariff, ServiceTariff, WaterTariff


class TariffRepository:
    """Loads the service, parking and water tables together."""

    async def load_tariff_set(self) -> TariffSet:
        service = await ServiceTariff.all()
        parking = await ParkingTariff.all()
        water = await WaterTariff.all().order_by("from_m3")
        return TariffSet(
            service=tuple(
                ServiceTariffEntry(
                    category=t.category,
                    price_per_m2=t.price_per_m2,
                    vat_percent=t.vat_percent,
                    valid_from=t.valid_from,
                    valid_to=t.valid_to,
                )
                for t in service
            ),
            parking=tuple(
                ParkingTariffEntry(
                    tier=t.tier,
                    price_per_unit=t.price_per_unit,
                    vat_percent=t.vat_percent,
                    valid_from=t.valid_from,
                    valid_to=t.valid_to,
                )
                for t in parking
            ),
            water=tuple(
                WaterTariffEntry(
                    from_m3=t.from_m3,
                    to_m3=t.to_m3,
                    unit_price=t.unit_price,
                    vat_percent=t.vat_percent,
                    valid_from=t.valid_from,
                    valid_to=t.valid_to,
                )
                for t in water
            ),
        )
