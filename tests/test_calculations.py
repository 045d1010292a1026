"""Tests for core calculation functions."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import pytest

from condobill.core.calculations import (
    apply_vat,
    calculate_parking_fee,
    calculate_service_fee,
    calculate_water_fee,
    calculate_water_usage,
    compute_charge,
    parse_unit_code,
    sort_unit_ids,
    split_usage_by_bracket,
    transfer_reference,
    vehicle_limit_violations,
)
from condobill.core.entities import (
    AdjustmentRecord,
    OccupancyStatus,
    OwnerRecord,
    ParkingStatus,
    ParkingTariffEntry,
    ParkingTariffTier,
    ServiceCategory,
    ServiceTariffEntry,
    TariffSet,
    UnitRecord,
    UnitType,
    VehicleRecord,
    VehicleTier,
    WaterReadingRecord,
    WaterTariffEntry,
)
from condobill.core.errors import InvalidInputError, InvalidReadingError

PERIOD = "2025-07"
SINCE = date(2024, 1, 1)

WATER_BRACKETS = (
    WaterTariffEntry(Decimal("0"), Decimal("10"), Decimal("5973"), Decimal("5"), SINCE),
    WaterTariffEntry(Decimal("10"), Decimal("20"), Decimal("7052"), Decimal("5"), SINCE),
    WaterTariffEntry(Decimal("20"), Decimal("30"), Decimal("8669"), Decimal("5"), SINCE),
    WaterTariffEntry(Decimal("30"), None, Decimal("15929"), Decimal("5"), SINCE),
)

TARIFFS = TariffSet(
    service=(
        ServiceTariffEntry(ServiceCategory.APARTMENT, Decimal("16500"), Decimal("10"), SINCE),
        ServiceTariffEntry(ServiceCategory.KIOSK, Decimal("30000"), Decimal("10"), SINCE),
    ),
    parking=(
        ParkingTariffEntry(ParkingTariffTier.CAR, Decimal("1200000"), Decimal("8"), SINCE),
        ParkingTariffEntry(ParkingTariffTier.CAR_PREMIUM, Decimal("1500000"), Decimal("8"), SINCE),
        ParkingTariffEntry(ParkingTariffTier.MOTO_1_2, Decimal("100000"), Decimal("8"), SINCE),
        ParkingTariffEntry(ParkingTariffTier.MOTO_3_4, Decimal("150000"), Decimal("8"), SINCE),
        ParkingTariffEntry(ParkingTariffTier.BICYCLE, Decimal("30000"), Decimal("8"), SINCE),
    ),
    water=WATER_BRACKETS,
)

APARTMENT = UnitRecord(
    unit_id="0903",
    unit_type=UnitType.APARTMENT,
    area_m2=Decimal("75"),
    status=OccupancyStatus.OWNER,
    owner_id="owner-1",
)
KIOSK = UnitRecord(
    unit_id="K05",
    unit_type=UnitType.KIOSK,
    area_m2=Decimal("12"),
    status=OccupancyStatus.BUSINESS,
)
OWNER = OwnerRecord(owner_id="owner-1", name="Nguyen Van A")


def vehicle(tier: VehicleTier, n: int = 1, **kwargs) -> VehicleRecord:
    defaults = dict(
        vehicle_id=f"v{n}",
        unit_id="0903",
        tier=tier,
        plate_number=f"29A-{n:05d}",
        start_date=date(2025, 1, 1),
    )
    defaults.update(kwargs)
    return VehicleRecord(**defaults)


def test_worked_example_total_due():
    """75 m² owner apartment, one car, 18 m³ of water and a 50,000 credit."""
    draft = compute_charge(
        unit=APARTMENT,
        owner=OWNER,
        vehicles=[vehicle(VehicleTier.CAR)],
        adjustments=[AdjustmentRecord("0903", PERIOD, Decimal("-50000"), "Credit")],
        tariffs=TARIFFS,
        period=PERIOD,
        water_m3=Decimal("18"),
    )

    assert draft.service.total == Decimal("1361250.00")
    assert draft.parking.total == Decimal("1296000.00")
    assert draft.water.base == Decimal("116146.00")
    assert draft.water.total == Decimal("121953.30")
    assert draft.adjustments == Decimal("-50000")
    assert draft.total_due == Decimal("2729203")
    assert draft.owner_name == "Nguyen Van A"
    assert draft.vehicle_counts.car == 1
    assert draft.warnings == ()


def test_total_due_is_rounded_sum_of_components():
    draft = compute_charge(
        APARTMENT, OWNER, [], [], TARIFFS, PERIOD, water_m3=Decimal("7.3")
    )
    expected = (draft.service.total + draft.parking.total + draft.water.total).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    assert draft.total_due == expected


def test_apply_vat_rounds_half_up_to_cents():
    fee = apply_vat(Decimal("10.005"), Decimal("0"))
    assert fee.base == Decimal("10.01")
    assert fee.total == Decimal("10.01")


def test_service_fee_uses_kiosk_category():
    fee, warnings = calculate_service_fee(KIOSK, TARIFFS, PERIOD)
    assert fee.base == Decimal("360000.00")
    assert fee.vat == Decimal("36000.00")
    assert warnings == []


def test_service_fee_picks_latest_active_version():
    newer = ServiceTariffEntry(
        ServiceCategory.APARTMENT, Decimal("18000"), Decimal("10"), date(2025, 7, 1)
    )
    expired = ServiceTariffEntry(
        ServiceCategory.APARTMENT,
        Decimal("99999"),
        Decimal("10"),
        date(2025, 3, 1),
        valid_to=date(2025, 6, 30),
    )
    tariffs = TariffSet(service=TARIFFS.service + (newer, expired))

    fee, _ = calculate_service_fee(APARTMENT, tariffs, PERIOD)

    assert fee.base == Decimal("1350000.00")


def test_missing_service_tariff_degrades_to_zero_with_warning():
    business = UnitRecord("1204", UnitType.APARTMENT, Decimal("60"), OccupancyStatus.BUSINESS)

    fee, warnings = calculate_service_fee(business, TARIFFS, PERIOD)

    assert fee.total == Decimal("0")
    assert len(warnings) == 1
    assert "business_apartment" in warnings[0]


def test_motorbike_quota_splits_prices():
    """Five motorbikes: two at the first price, three at the second."""
    bikes = [vehicle(VehicleTier.MOTORBIKE, n) for n in range(5)]

    fee, counts, _ = calculate_parking_fee(bikes, TARIFFS, PERIOD)

    assert counts.motorbike == 5
    assert fee.base == Decimal("650000.00")  # 2 * 100000 + 3 * 150000


def test_ebikes_share_the_motorbike_quota():
    vehicles = [
        vehicle(VehicleTier.MOTORBIKE, 1),
        vehicle(VehicleTier.EBIKE, 2),
        vehicle(VehicleTier.EBIKE, 3),
    ]

    fee, counts, _ = calculate_parking_fee(vehicles, TARIFFS, PERIOD)

    assert counts.motorbike == 3
    assert fee.base == Decimal("350000.00")


def test_parking_skips_ineligible_vehicles():
    vehicles = [
        vehicle(VehicleTier.CAR, 1),
        vehicle(VehicleTier.CAR, 2, is_active=False),
        vehicle(VehicleTier.CAR, 3, start_date=date(2025, 8, 1)),
        vehicle(VehicleTier.CAR, 4, parking_status=ParkingStatus.WAITLISTED),
        vehicle(VehicleTier.BICYCLE, 5, start_date=date(2025, 7, 31)),
    ]

    fee, counts, _ = calculate_parking_fee(vehicles, TARIFFS, PERIOD)

    assert counts.car == 1
    assert counts.bicycle == 1
    assert fee.base == Decimal("1230000.00")


def test_parking_missing_tier_zeroes_component():
    tariffs = TariffSet(
        parking=tuple(t for t in TARIFFS.parking if t.tier != ParkingTariffTier.CAR_PREMIUM)
    )
    vehicles = [vehicle(VehicleTier.CAR, 1), vehicle(VehicleTier.CAR_PREMIUM, 2)]

    fee, counts, warnings = calculate_parking_fee(vehicles, tariffs, PERIOD)

    assert fee.total == Decimal("0")
    assert counts.car_premium == 1
    assert "car_premium" in warnings[0]


def test_parking_without_vehicles_is_zero():
    fee, counts, warnings = calculate_parking_fee([], TARIFFS, PERIOD)
    assert fee.total == Decimal("0")
    assert counts.car == 0
    assert warnings == []


@pytest.mark.parametrize(
    "consumption",
    [Decimal("0"), Decimal("5"), Decimal("10"), Decimal("18"), Decimal("30"), Decimal("47.5")],
)
def test_bracket_split_covers_consumption(consumption):
    parts = split_usage_by_bracket(consumption, WATER_BRACKETS)
    assert sum((used for _, used in parts), Decimal("0")) == consumption


def test_last_bracket_absorbs_remainder_when_closed():
    brackets = WATER_BRACKETS[:2]
    parts = split_usage_by_bracket(Decimal("25"), brackets)
    assert [used for _, used in parts] == [Decimal("10"), Decimal("15")]


def test_kiosk_water_uses_business_rate():
    fee, _ = calculate_water_fee(KIOSK, Decimal("12"), TARIFFS, PERIOD)
    assert fee.base == Decimal("191148.00")  # 12 * 15929
    assert fee.total == Decimal("200705.40")


def test_business_apartment_water_uses_business_rate():
    business = UnitRecord("1204", UnitType.APARTMENT, Decimal("60"), OccupancyStatus.BUSINESS)
    fee, _ = calculate_water_fee(business, Decimal("5"), TARIFFS, PERIOD)
    assert fee.base == Decimal("79645.00")


def test_water_fee_rejects_negative_consumption():
    with pytest.raises(InvalidInputError):
        calculate_water_fee(APARTMENT, Decimal("-1"), TARIFFS, PERIOD)


def test_water_fee_without_tariff_warns():
    fee, warnings = calculate_water_fee(APARTMENT, Decimal("5"), TariffSet(), PERIOD)
    assert fee.total == Decimal("0")
    assert len(warnings) == 1


def test_water_usage_needs_previous_period_reading():
    readings = [WaterReadingRecord("0903", "2025-07", Decimal("100"), Decimal("118"))]
    assert calculate_water_usage(readings, "0903", PERIOD) == Decimal("0")

    readings.append(WaterReadingRecord("0903", "2025-06", Decimal("90"), Decimal("100")))
    assert calculate_water_usage(readings, "0903", PERIOD) == Decimal("18")


def test_water_usage_rejects_backwards_reading():
    readings = [
        WaterReadingRecord("0903", "2025-06", Decimal("90"), Decimal("100")),
        WaterReadingRecord("0903", "2025-07", Decimal("100"), Decimal("95")),
    ]
    with pytest.raises(InvalidReadingError):
        calculate_water_usage(readings, "0903", PERIOD)


def test_missing_owner_is_a_warning():
    draft = compute_charge(APARTMENT, None, [], [], TARIFFS, PERIOD)
    assert draft.owner_name == ""
    assert any("no owner" in w for w in draft.warnings)


def test_negative_total_is_not_clamped():
    draft = compute_charge(
        APARTMENT,
        OWNER,
        [],
        [AdjustmentRecord("0903", PERIOD, Decimal("-5000000"))],
        TARIFFS,
        PERIOD,
    )
    assert draft.total_due < 0


def test_vehicle_limit_for_owner_occupied_unit():
    cars = [vehicle(VehicleTier.CAR, 1), vehicle(VehicleTier.CAR, 2)]
    assert len(vehicle_limit_violations(APARTMENT, cars)) == 1

    rented = UnitRecord("0904", UnitType.APARTMENT, Decimal("75"), OccupancyStatus.RENT)
    assert vehicle_limit_violations(rented, cars) == []

    premium = [vehicle(VehicleTier.CAR, 1), vehicle(VehicleTier.CAR_PREMIUM, 2)]
    assert vehicle_limit_violations(APARTMENT, premium) == []


@pytest.mark.parametrize(
    "code, expected",
    [
        ("0903", (9, 3)),
        ("202", (2, 2)),
        ("1204", (12, 4)),
        ("K05", (99, 5)),
        ("k12", (99, 12)),
        ("12", None),
        ("A903", None),
        ("", None),
    ],
)
def test_parse_unit_code(code, expected):
    assert parse_unit_code(code) == expected


def test_sort_unit_ids_puts_kiosks_last():
    assert sort_unit_ids(["K01", "1204", "202", "0903", "junk"]) == [
        "202",
        "0903",
        "1204",
        "K01",
        "junk",
    ]


def test_transfer_reference():
    assert transfer_reference("0903", "2025-07") == "0903 T07"
    assert transfer_reference("0903", "2025-07", "CH{unit_id}-{month}") == "CH0903-07"
    assert transfer_reference("0903", "2025-07", "no placeholders") == "0903 T07"
