"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from tortoise import Tortoise

from condobill.core.cache import TTLCache
from condobill.core.db import build_config, init_db
from condobill.core.entities import (
    OccupancyStatus,
    ParkingTariffTier,
    ServiceCategory,
    UnitType,
)
from condobill.core.models import (
    Owner,
    ParkingTariff,
    ServiceTariff,
    Unit,
    WaterTariff,
)
from condobill.core.repositories.activity import ActivityLogRepository
from condobill.core.repositories.adjustment import AdjustmentRepository
from condobill.core.repositories.charge import ChargeRepository
from condobill.core.repositories.period import BillingPeriodRepository
from condobill.core.repositories.reading import ReadingRepository
from condobill.core.repositories.tariff import TariffRepository
from condobill.core.repositories.unit import OwnerRepository, UnitRepository
from condobill.core.repositories.vehicle import VehicleRepository
from condobill.services.billing import BillingService

TARIFFS_FROM = date(2024, 1, 1)


@pytest_asyncio.fixture(scope="function", autouse=True)
async def db_session():
    """
    Provides a clean in-memory SQLite database for each test function.
    """
    await init_db(
        build_config("sqlite://:memory:", with_migrations=False),
        generate_schemas=True,
    )

    yield

    await Tortoise.close_connections()


@pytest.fixture
def billing_service() -> BillingService:
    """Provides a BillingService instance with real repositories."""
    return BillingService(
        unit_repo=UnitRepository(),
        owner_repo=OwnerRepository(),
        vehicle_repo=VehicleRepository(),
        reading_repo=ReadingRepository(),
        tariff_repo=TariffRepository(),
        adjustment_repo=AdjustmentRepository(),
        charge_repo=ChargeRepository(),
        period_repo=BillingPeriodRepository(),
        activity_repo=ActivityLogRepository(),
        tariff_cache=TTLCache(ttl_seconds=300),
    )


@pytest_asyncio.fixture
async def tariffs():
    """Service, parking and water tables used across the integration tests."""
    await ServiceTariff.create(
        category=ServiceCategory.APARTMENT,
        price_per_m2=Decimal("16500"),
        vat_percent=Decimal("10"),
        valid_from=TARIFFS_FROM,
    )
    await ServiceTariff.create(
        category=ServiceCategory.KIOSK,
        price_per_m2=Decimal("30000"),
        vat_percent=Decimal("10"),
        valid_from=TARIFFS_FROM,
    )
    for tier, price in [
        (ParkingTariffTier.CAR, "1200000"),
        (ParkingTariffTier.CAR_PREMIUM, "1500000"),
        (ParkingTariffTier.MOTO_1_2, "100000"),
        (ParkingTariffTier.MOTO_3_4, "150000"),
        (ParkingTariffTier.BICYCLE, "30000"),
    ]:
        await ParkingTariff.create(
            tier=tier,
            price_per_unit=Decimal(price),
            vat_percent=Decimal("8"),
            valid_from=TARIFFS_FROM,
        )
    for lower, upper, price in [
        ("0", "10", "5973"),
        ("10", "20", "7052"),
        ("20", "30", "8669"),
        ("30", None, "15929"),
    ]:
        await WaterTariff.create(
            from_m3=Decimal(lower),
            to_m3=Decimal(upper) if upper else None,
            unit_price=Decimal(price),
            vat_percent=Decimal("5"),
            valid_from=TARIFFS_FROM,
        )


@pytest_asyncio.fixture
async def apartment() -> Unit:
    """Owner-occupied apartment 0903 of 75 m²."""
    owner = await Owner.create(name="Nguyen Van A", phone="0900000000")
    return await Unit.create(
        code="0903",
        unit_type=UnitType.APARTMENT,
        area_m2=Decimal("75"),
        status=OccupancyStatus.OWNER,
        owner=owner,
    )
