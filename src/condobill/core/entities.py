"""Plain records consumed and produced by the fee calculations.

These are decoupled from the ORM so the calculation core can run over
data loaded from anywhere.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")


class UnitType(str, enum.Enum):
    APARTMENT = "apartment"
    KIOSK = "kiosk"


class OccupancyStatus(str, enum.Enum):
    OWNER = "owner"
    RENT = "rent"
    BUSINESS = "business"


class ServiceCategory(str, enum.Enum):
    """Applicability key of the service tariff table."""

    APARTMENT = "apartment"
    BUSINESS_APARTMENT = "business_apartment"
    KIOSK = "kiosk"


class VehicleTier(str, enum.Enum):
    CAR = "car"
    CAR_PREMIUM = "car_premium"
    MOTORBIKE = "motorbike"
    EBIKE = "ebike"  # billed together with motorbikes
    BICYCLE = "bicycle"


class ParkingTariffTier(str, enum.Enum):
    """Applicability key of the parking tariff table."""

    CAR = "car"
    CAR_PREMIUM = "car_premium"
    MOTO_1_2 = "moto_1_2"
    MOTO_3_4 = "moto_3_4"
    BICYCLE = "bicycle"


class ParkingStatus(str, enum.Enum):
    MAIN_SLOT = "main_slot"
    TEMPORARY_SLOT = "temporary_slot"
    WAITLISTED = "waitlisted"  # no slot yet, not billed


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    RECONCILING = "reconciling"
    PAID_TM = "paid_tm"  # cash
    PAID_CK = "paid_ck"  # bank transfer


PAID_STATUSES = frozenset({PaymentStatus.PAID_TM, PaymentStatus.PAID_CK})
PRESERVED_STATUSES = PAID_STATUSES | {PaymentStatus.RECONCILING}


@dataclass(frozen=True)
class UnitRecord:
    unit_id: str
    unit_type: UnitType
    area_m2: Decimal
    status: OccupancyStatus
    owner_id: str | None = None

    @property
    def is_business(self) -> bool:
        """Kiosks and business-occupied apartments pay business rates."""
        return (
            self.unit_type == UnitType.KIOSK
            or self.status == OccupancyStatus.BUSINESS
        )


@dataclass(frozen=True)
class OwnerRecord:
    owner_id: str
    name: str
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class VehicleRecord:
    vehicle_id: str
    unit_id: str
    tier: VehicleTier
    plate_number: str
    start_date: date
    is_active: bool = True
    parking_status: ParkingStatus | None = None


@dataclass(frozen=True)
class WaterReadingRecord:
    unit_id: str
    period: str
    prev_index: Decimal
    curr_index: Decimal


@dataclass(frozen=True)
class AdjustmentRecord:
    unit_id: str
    period: str
    amount: Decimal
    description: str = ""
    source_period: str | None = None


@dataclass(frozen=True)
class ServiceTariffEntry:
    category: ServiceCategory
    price_per_m2: Decimal
    vat_percent: Decimal
    valid_from: date
    valid_to: date | None = None


@dataclass(frozen=True)
class ParkingTariffEntry:
    tier: ParkingTariffTier
    price_per_unit: Decimal
    vat_percent: Decimal
    valid_from: date
    valid_to: date | None = None


@dataclass(frozen=True)
class WaterTariffEntry:
    from_m3: Decimal
    to_m3: Decimal | None  # None for the open-ended last bracket
    unit_price: Decimal
    vat_percent: Decimal
    valid_from: date
    valid_to: date | None = None


@dataclass(frozen=True)
class TariffSet:
    service: tuple[ServiceTariffEntry, ...] = ()
    parking: tuple[ParkingTariffEntry, ...] = ()
    water: tuple[WaterTariffEntry, ...] = ()


@dataclass(frozen=True)
class FeeBreakdown:
    base: Decimal = ZERO
    vat: Decimal = ZERO
    total: Decimal = ZERO


@dataclass(frozen=True)
class VehicleCounts:
    car: int = 0
    car_premium: int = 0
    motorbike: int = 0  # motorbikes and e-bikes together
    bicycle: int = 0


@dataclass(frozen=True)
class ChargeDraft:
    """Computed bill for one unit and one period, before it is stored."""

    period: str
    unit_id: str
    owner_name: str
    area_m2: Decimal
    service: FeeBreakdown
    parking: FeeBreakdown
    water: FeeBreakdown
    vehicle_counts: VehicleCounts
    water_m3: Decimal
    adjustments: Decimal
    total_due: Decimal
    warnings: tuple[str, ...] = field(default=())
