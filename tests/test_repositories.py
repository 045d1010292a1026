from datetime import date
from decimal import Decimal

import pytest

from condobill.core.entities import ParkingStatus, VehicleTier
from condobill.core.models import Adjustment, Vehicle, WaterReading
from condobill.core.repositories.activity import ActivityLogRepository
from condobill.core.repositories.adjustment import AdjustmentRepository
from condobill.core.repositories.period import BillingPeriodRepository
from condobill.core.repositories.reading import ReadingRepository
from condobill.core.repositories.tariff import TariffRepository
from condobill.core.repositories.unit import OwnerRepository, UnitRepository
from condobill.core.repositories.vehicle import VehicleRepository


@pytest.mark.asyncio
async def test_unit_owner_crud(apartment):
    unit_repo = UnitRepository()
    owner_repo = OwnerRepository()

    await unit_repo.create(code="K01", area_m2=Decimal("10"))
    records = await unit_repo.list_records()
    assert [r.unit_id for r in records] == ["0903", "K01"]

    owners = await owner_repo.records_by_id()
    assert owners[records[0].owner_id].name == "Nguyen Van A"
    assert records[1].owner_id is None

    deleted = await unit_repo.delete((await unit_repo.get_by_code("K01")).id)
    assert deleted == 1


@pytest.mark.asyncio
async def test_vehicle_records_keep_only_active(apartment):
    await Vehicle.create(
        unit=apartment,
        tier=VehicleTier.MOTORBIKE,
        plate_number="29B-1",
        start_date=date(2025, 1, 1),
        parking_status=ParkingStatus.MAIN_SLOT,
    )
    await Vehicle.create(
        unit=apartment,
        tier=VehicleTier.CAR,
        plate_number="29A-1",
        start_date=date(2025, 1, 1),
        is_active=False,
    )

    grouped = await VehicleRepository().records_by_unit()

    assert [v.plate_number for v in grouped["0903"]] == ["29B-1"]
    assert grouped["0903"][0].parking_status == ParkingStatus.MAIN_SLOT


@pytest.mark.asyncio
async def test_readings_for_billing_include_previous_period(apartment):
    for period in ("2025-05", "2025-06", "2025-07"):
        await WaterReading.create(
            unit=apartment, period=period, prev_index=Decimal("0"), curr_index=Decimal("1")
        )

    records = await ReadingRepository().records_for_billing("2025-07")

    assert sorted(r.period for r in records) == ["2025-06", "2025-07"]


@pytest.mark.asyncio
async def test_replace_carry_over_keeps_one_per_source(apartment):
    repo = AdjustmentRepository()
    await repo.replace_carry_over(apartment, "2025-08", "2025-07", Decimal("100"), "carry")
    await repo.replace_carry_over(apartment, "2025-08", "2025-07", Decimal("250"), "carry")
    await Adjustment.create(unit=apartment, period="2025-08", amount=Decimal("-10"), description="x")

    grouped = await repo.records_by_unit("2025-08")

    assert sorted(a.amount for a in grouped["0903"]) == [Decimal("-10"), Decimal("250")]
    assert await repo.delete_carry_over(apartment, "2025-07") == 1


@pytest.mark.asyncio
async def test_period_lock_state():
    repo = BillingPeriodRepository()
    period = await repo.set_locked("2025-07", True, "tg:1")
    assert period.locked_by == "tg:1"
    assert period.locked_at is not None
    assert await repo.locked_periods() == {"2025-07"}

    await repo.set_locked("2025-07", False, "tg:1")
    assert not await repo.is_locked("2025-07")
    assert await repo.locked_periods() == set()


@pytest.mark.asyncio
async def test_tariff_set_is_empty_without_rows():
    tariff_set = await TariffRepository().load_tariff_set()
    assert tariff_set.service == ()
    assert tariff_set.water == ()


@pytest.mark.asyncio
async def test_activity_log_counts_units():
    repo = ActivityLogRepository()
    entry = await repo.record(
        "tg:1", "delete_charges", "Deleted", period="2025-07", unit_ids=["0903", "1204"]
    )
    assert entry.count == 2
    assert entry.module == "billing"
    assert [e.id for e in await repo.for_period("2025-07")] == [entry.id]
