"""Core business logic for fee calculations.

Every function here is pure: it takes plain records and tariff tables
already loaded into memory and returns new values. Monetary line items are
kept to the cent; the amount due is rounded to a whole currency unit only
once, when the components are added up.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from condobill.core.dates import period_bounds, previous_period
from condobill.core.entities import (
    ZERO,
    AdjustmentRecord,
    ChargeDraft,
    FeeBreakdown,
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
    VehicleCounts,
    VehicleRecord,
    VehicleTier,
    WaterReadingRecord,
    WaterTariffEntry,
)
from condobill.core.errors import InvalidInputError, InvalidReadingError

CENT = Decimal("0.01")
WHOLE = Decimal("1")

# Motorbikes (and e-bikes) beyond this count per unit use the MOTO_3_4 price.
MOTO_QUOTA = 2

DEFAULT_TRANSFER_TEMPLATE = "{unit_id} T{month}"


def round_money(value: Decimal, exponent: Decimal = CENT) -> Decimal:
    """Rounds half-up to the given exponent (cents by default)."""
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def apply_vat(net: Decimal, vat_percent: Decimal) -> FeeBreakdown:
    """Adds VAT on top of a net amount."""
    vat = net * vat_percent / Decimal("100")
    return FeeBreakdown(
        base=round_money(net),
        vat=round_money(vat),
        total=round_money(net + vat),
    )


# --- Tariff lookup ---


def is_tariff_active(
    entry: ServiceTariffEntry | ParkingTariffEntry | WaterTariffEntry, period: str
) -> bool:
    """An entry applies if it started by the end of the period and has not
    expired before the period starts."""
    start, end = period_bounds(period)
    return entry.valid_from <= end and (
        entry.valid_to is None or entry.valid_to >= start
    )


def _latest_active(entries: Iterable, period: str):
    active = [entry for entry in entries if is_tariff_active(entry, period)]
    return max(active, key=lambda entry: entry.valid_from, default=None)


def find_service_tariff(
    tariffs: TariffSet, category: ServiceCategory, period: str
) -> ServiceTariffEntry | None:
    return _latest_active(
        (t for t in tariffs.service if t.category == category), period
    )


def find_parking_tariff(
    tariffs: TariffSet, tier: ParkingTariffTier, period: str
) -> ParkingTariffEntry | None:
    return _latest_active((t for t in tariffs.parking if t.tier == tier), period)


def active_water_brackets(tariffs: TariffSet, period: str) -> list[WaterTariffEntry]:
    """Returns the brackets in force for the period, ascending by lower bound.

    When two versions of the same bracket overlap the period, the newer wins.
    """
    by_lower_bound: dict[Decimal, WaterTariffEntry] = {}
    for entry in tariffs.water:
        if not is_tariff_active(entry, period):
            continue
        current = by_lower_bound.get(entry.from_m3)
        if current is None or entry.valid_from > current.valid_from:
            by_lower_bound[entry.from_m3] = entry
    return [by_lower_bound[key] for key in sorted(by_lower_bound)]


def service_category_for(unit: UnitRecord) -> ServiceCategory:
    if unit.unit_type == UnitType.KIOSK:
        return ServiceCategory.KIOSK
    if unit.status == OccupancyStatus.BUSINESS:
        return ServiceCategory.BUSINESS_APARTMENT
    return ServiceCategory.APARTMENT


# --- Service fee ---


def calculate_service_fee(
    unit: UnitRecord, tariffs: TariffSet, period: str
) -> tuple[FeeBreakdown, list[str]]:
    """Area times the per-m² price of the unit's service category, plus VAT."""
    category = service_category_for(unit)
    tariff = find_service_tariff(tariffs, category, period)
    if tariff is None:
        return FeeBreakdown(), [
            f"No active service tariff '{category.value}' for {period}; "
            f"service fee of unit {unit.unit_id} billed as 0."
        ]
    return apply_vat(unit.area_m2 * tariff.price_per_m2, tariff.vat_percent), []


# --- Parking fee ---


def eligible_vehicles(
    vehicles: Iterable[VehicleRecord], period: str
) -> list[VehicleRecord]:
    """Vehicles billed for the period: active, registered by the end of the
    month and not waiting for a parking slot."""
    _, end = period_bounds(period)
    return [
        vehicle
        for vehicle in vehicles
        if vehicle.is_active
        and vehicle.start_date <= end
        and vehicle.parking_status != ParkingStatus.WAITLISTED
    ]


def count_vehicles(vehicles: Iterable[VehicleRecord]) -> VehicleCounts:
    tiers = [vehicle.tier for vehicle in vehicles]
    return VehicleCounts(
        car=tiers.count(VehicleTier.CAR),
        car_premium=tiers.count(VehicleTier.CAR_PREMIUM),
        motorbike=tiers.count(VehicleTier.MOTORBIKE) + tiers.count(VehicleTier.EBIKE),
        bicycle=tiers.count(VehicleTier.BICYCLE),
    )


def parking_quantities(counts: VehicleCounts) -> dict[ParkingTariffTier, int]:
    """Number of billable places per parking tariff tier."""
    return {
        ParkingTariffTier.CAR: counts.car,
        ParkingTariffTier.CAR_PREMIUM: counts.car_premium,
        ParkingTariffTier.MOTO_1_2: min(MOTO_QUOTA, counts.motorbike),
        ParkingTariffTier.MOTO_3_4: max(0, counts.motorbike - MOTO_QUOTA),
        ParkingTariffTier.BICYCLE: counts.bicycle,
    }


def calculate_parking_fee(
    vehicles: Iterable[VehicleRecord], tariffs: TariffSet, period: str
) -> tuple[FeeBreakdown, VehicleCounts, list[str]]:
    """Sums per-tier parking prices for eligible vehicles, then adds VAT.

    The whole component is zero when a tier that has vehicles has no
    active tariff. VAT comes from the first configured parking tier.
    """
    counts = count_vehicles(eligible_vehicles(vehicles, period))
    net = ZERO
    vat_percent: Decimal | None = None
    missing: list[str] = []

    for tier, quantity in parking_quantities(counts).items():
        tariff = find_parking_tariff(tariffs, tier, period)
        if tariff is not None and vat_percent is None:
            vat_percent = tariff.vat_percent
        if quantity == 0:
            continue
        if tariff is None:
            missing.append(tier.value)
            continue
        net += quantity * tariff.price_per_unit

    if missing:
        return FeeBreakdown(), counts, [
            f"No active parking tariff for {', '.join(missing)} in {period}; "
            "parking fee billed as 0."
        ]
    return apply_vat(net, vat_percent or ZERO), counts, []


# --- Water fee ---


def calculate_water_usage(
    readings: Iterable[WaterReadingRecord], unit_id: str, period: str
) -> Decimal:
    """Consumption in m³ of a unit for the period.

    The first month a unit has readings only establishes its base index, so
    consumption is 0 unless a reading for the preceding period also exists.
    """
    by_period = {r.period: r for r in readings if r.unit_id == unit_id}
    current = by_period.get(period)
    if current is None or previous_period(period) not in by_period:
        return ZERO
    if current.curr_index < current.prev_index:
        raise InvalidReadingError(
            f"Reading for unit {unit_id} in {period} goes backwards "
            f"({current.prev_index} -> {current.curr_index})."
        )
    return current.curr_index - current.prev_index


def split_usage_by_bracket(
    consumption: Decimal, brackets: Sequence[WaterTariffEntry]
) -> list[tuple[WaterTariffEntry, Decimal]]:
    """Distributes consumption over ascending brackets.

    The last bracket absorbs whatever is left, so the parts always add up to
    the consumption.
    """
    parts: list[tuple[WaterTariffEntry, Decimal]] = []
    remaining = consumption
    last = len(brackets) - 1
    for index, bracket in enumerate(brackets):
        if remaining <= 0:
            break
        if bracket.to_m3 is None or index == last:
            used = remaining
        else:
            used = min(remaining, bracket.to_m3 - bracket.from_m3)
        parts.append((bracket, used))
        remaining -= used
    return parts


def calculate_water_fee(
    unit: UnitRecord, consumption: Decimal, tariffs: TariffSet, period: str
) -> tuple[FeeBreakdown, list[str]]:
    """Progressive bracket billing for apartments, flat business rate (the
    open-ended top bracket) for kiosks and business units.

    VAT is applied once, using the first bracket's percent.
    """
    if consumption < 0:
        raise InvalidInputError(
            f"Negative water consumption {consumption} for unit {unit.unit_id}."
        )
    if consumption == 0:
        return FeeBreakdown(), []

    brackets = active_water_brackets(tariffs, period)
    if not brackets:
        return FeeBreakdown(), [
            f"No active water tariff for {period}; "
            f"water fee of unit {unit.unit_id} billed as 0."
        ]

    if unit.is_business:
        business_rate = brackets[-1]
        return apply_vat(consumption * business_rate.unit_price, business_rate.vat_percent), []

    net = sum(
        (used * bracket.unit_price for bracket, used in split_usage_by_bracket(consumption, brackets)),
        ZERO,
    )
    return apply_vat(net, brackets[0].vat_percent), []


# --- Charge ---


def compute_charge(
    unit: UnitRecord,
    owner: OwnerRecord | None,
    vehicles: Iterable[VehicleRecord],
    adjustments: Iterable[AdjustmentRecord],
    tariffs: TariffSet,
    period: str,
    water_m3: Decimal = ZERO,
) -> ChargeDraft:
    """
    Computes the bill of one unit for one period.

    Args:
        unit: The unit being billed.
        owner: Its owner; a missing owner only produces a warning.
        vehicles: The unit's vehicles; eligibility is decided here.
        adjustments: Manual credits/debits already filtered to unit and period.
        tariffs: All tariff tables.
        period: Target period, ``YYYY-MM``.
        water_m3: Water consumed in the period, already validated.

    Returns:
        A ChargeDraft whose ``warnings`` list any data-integrity gaps.
    """
    warnings: list[str] = []
    if owner is None:
        warnings.append(f"Unit {unit.unit_id} has no owner on record.")

    service, service_warnings = calculate_service_fee(unit, tariffs, period)
    parking, counts, parking_warnings = calculate_parking_fee(vehicles, tariffs, period)
    water, water_warnings = calculate_water_fee(unit, water_m3, tariffs, period)
    warnings += service_warnings + parking_warnings + water_warnings

    adjustments_total = sum((adj.amount for adj in adjustments), ZERO)
    total_due = round_money(
        service.total + parking.total + water.total + adjustments_total, WHOLE
    )

    return ChargeDraft(
        period=period,
        unit_id=unit.unit_id,
        owner_name=owner.name if owner else "",
        area_m2=unit.area_m2,
        service=service,
        parking=parking,
        water=water,
        vehicle_counts=counts,
        water_m3=water_m3,
        adjustments=adjustments_total,
        total_due=total_due,
        warnings=tuple(warnings),
    )


# --- Data-entry rules ---


def vehicle_limit_violations(
    unit: UnitRecord, vehicles: Iterable[VehicleRecord]
) -> list[str]:
    """Soft registration rules checked at data entry, never when billing.

    Owner-occupied units may keep at most one active non-premium car.
    """
    violations: list[str] = []
    if unit.status == OccupancyStatus.OWNER:
        cars = [v for v in vehicles if v.is_active and v.tier == VehicleTier.CAR]
        if len(cars) > 1:
            violations.append(
                f"Owner-occupied unit {unit.unit_id} has {len(cars)} active cars; "
                "at most 1 is allowed."
            )
    return violations


# --- Unit codes ---

_APARTMENT_CODE_RE = re.compile(r"^\d{3,4}$")
_KIOSK_PREFIX = "k"


def parse_unit_code(code: str) -> tuple[int, int] | None:
    """Splits a unit code into (floor, number).

    ``"0903"`` -> (9, 3), ``"202"`` -> (2, 2). Kiosks (``"K05"``) are put on
    floor 99 so they sort after every apartment. Returns None for anything
    else.
    """
    text = str(code).strip()
    if text.lower().startswith(_KIOSK_PREFIX):
        digits = re.search(r"\d+", text)
        return 99, int(digits.group(0)) if digits else 0
    if not _APARTMENT_CODE_RE.match(text):
        return None
    split = 1 if len(text) == 3 else 2
    return int(text[:split]), int(text[split:])


def sort_unit_ids(unit_ids: Iterable[str]) -> list[str]:
    def key(unit_id: str):
        parsed = parse_unit_code(unit_id)
        return (parsed or (999, 999)) + (unit_id,)

    return sorted(unit_ids, key=key)


def transfer_reference(
    unit_id: str, period: str, template: str = DEFAULT_TRANSFER_TEMPLATE
) -> str:
    """Memo text residents put on a bank transfer, e.g. ``"0903 T07"``."""
    if "{unit_id}" not in template or "{month}" not in template:
        template = DEFAULT_TRANSFER_TEMPLATE
    month = period.split("-")[1]
    return template.format(unit_id=unit_id, month=month, period=period)
