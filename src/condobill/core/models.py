"""Domain models for the condobill application."""

from __future__ import annotations

import uuid

from tortoise import fields, models

from condobill.core.entities import (
    OccupancyStatus,
    ParkingStatus,
    ParkingTariffTier,
    PaymentStatus,
    ServiceCategory,
    UnitType,
    VehicleTier,
)


class BaseModel(models.Model):
    """Abstract base model with common fields."""

    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True


class Owner(BaseModel):
    """Represents the owner (or main contact) of a unit."""

    name = fields.CharField(max_length=255)
    phone = fields.CharField(max_length=32, default="")
    email = fields.CharField(max_length=255, default="")
    units: fields.ReverseRelation[Unit]

    def __str__(self) -> str:
        return self.name


class Unit(BaseModel):
    """Represents an apartment or a kiosk."""

    code = fields.CharField(max_length=16, unique=True)  # e.g. "0903", "K05"
    unit_type = fields.CharEnumField(UnitType, default=UnitType.APARTMENT)
    area_m2 = fields.DecimalField(max_digits=8, decimal_places=2)
    status = fields.CharEnumField(OccupancyStatus, default=OccupancyStatus.OWNER)
    owner: fields.ForeignKeyNullableRelation[Owner] = fields.ForeignKeyField(
        "models.Owner", related_name="units", null=True, on_delete=fields.SET_NULL
    )

    vehicles: fields.ReverseRelation[Vehicle]
    water_readings: fields.ReverseRelation[WaterReading]
    adjustments: fields.ReverseRelation[Adjustment]
    charges: fields.ReverseRelation[Charge]

    def __str__(self) -> str:
        return f"{self.code} ({self.unit_type.value})"


class Vehicle(BaseModel):
    """Represents a vehicle registered to a unit."""

    tier = fields.CharEnumField(VehicleTier)
    name = fields.CharField(max_length=255, default="")
    plate_number = fields.CharField(max_length=32)
    start_date = fields.DateField()
    is_active = fields.BooleanField(default=True)
    parking_status = fields.CharEnumField(ParkingStatus, null=True)
    unit: fields.ForeignKeyRelation[Unit] = fields.ForeignKeyField(
        "models.Unit", related_name="vehicles"
    )

    def __str__(self) -> str:
        return f"{self.plate_number} ({self.tier.value})"


class WaterReading(BaseModel):
    """Represents a water meter reading for a specific period."""

    period = fields.CharField(max_length=7)  # YYYY-MM
    prev_index = fields.DecimalField(max_digits=12, decimal_places=2)
    curr_index = fields.DecimalField(max_digits=12, decimal_places=2)
    unit: fields.ForeignKeyRelation[Unit] = fields.ForeignKeyField(
        "models.Unit", related_name="water_readings"
    )

    class Meta:
        unique_together = ("unit", "period")

    def __str__(self) -> str:
        return f"Reading for {self.unit_id} on {self.period}: {self.curr_index}"


class ServiceTariff(BaseModel):
    """Per-m² service price of a service category."""

    category = fields.CharEnumField(ServiceCategory)
    price_per_m2 = fields.DecimalField(max_digits=12, decimal_places=2)
    vat_percent = fields.DecimalField(max_digits=5, decimal_places=2)
    valid_from = fields.DateField()
    valid_to = fields.DateField(null=True)

    def __str__(self) -> str:
        end = self.valid_to or "now"
        return f"Service {self.category.value}: {self.price_per_m2} ({self.valid_from} to {end})"


class ParkingTariff(BaseModel):
    """Monthly price of one parking place of a tier."""

    tier = fields.CharEnumField(ParkingTariffTier)
    price_per_unit = fields.DecimalField(max_digits=12, decimal_places=2)
    vat_percent = fields.DecimalField(max_digits=5, decimal_places=2)
    valid_from = fields.DateField()
    valid_to = fields.DateField(null=True)

    def __str__(self) -> str:
        end = self.valid_to or "now"
        return f"Parking {self.tier.value}: {self.price_per_unit} ({self.valid_from} to {end})"


class WaterTariff(BaseModel):
    """One consumption bracket of the progressive water price."""

    from_m3 = fields.DecimalField(max_digits=10, decimal_places=2)
    to_m3 = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    vat_percent = fields.DecimalField(max_digits=5, decimal_places=2)
    valid_from = fields.DateField()
    valid_to = fields.DateField(null=True)

    def __str__(self) -> str:
        upper = self.to_m3 if self.to_m3 is not None else "∞"
        return f"Water [{self.from_m3}-{upper}]: {self.unit_price}"


class Adjustment(BaseModel):
    """A manual credit (negative) or debit on a unit's bill for a period."""

    period = fields.CharField(max_length=7)
    amount = fields.DecimalField(max_digits=14, decimal_places=2)
    description = fields.CharField(max_length=255)
    source_period = fields.CharField(
        max_length=7,
        null=True,
        description="Period whose payment difference produced this adjustment",
    )
    unit: fields.ForeignKeyRelation[Unit] = fields.ForeignKeyField(
        "models.Unit", related_name="adjustments"
    )

    def __str__(self) -> str:
        return f"Adjustment {self.amount} for {self.unit_id} in {self.period}"


class Charge(BaseModel):
    """The bill of a unit for a period."""

    period = fields.CharField(max_length=7)
    owner_name = fields.CharField(max_length=255, default="")
    area_m2 = fields.DecimalField(max_digits=8, decimal_places=2)

    service_base = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    service_vat = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    service_total = fields.DecimalField(max_digits=14, decimal_places=2, default=0)

    car_count = fields.IntField(default=0)
    car_premium_count = fields.IntField(default=0)
    motorbike_count = fields.IntField(default=0)
    bicycle_count = fields.IntField(default=0)
    parking_base = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    parking_vat = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    parking_total = fields.DecimalField(max_digits=14, decimal_places=2, default=0)

    water_m3 = fields.DecimalField(max_digits=10, decimal_places=2, default=0)
    water_base = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    water_vat = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    water_total = fields.DecimalField(max_digits=14, decimal_places=2, default=0)

    adjustments = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_due = fields.DecimalField(max_digits=14, decimal_places=2)
    total_paid = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    payment_confirmed = fields.BooleanField(default=False)
    payment_status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.PENDING)
    locked = fields.BooleanField(default=False)

    unit: fields.ForeignKeyRelation[Unit] = fields.ForeignKeyField(
        "models.Unit", related_name="charges"
    )

    class Meta:
        unique_together = ("unit", "period")

    def __str__(self) -> str:
        return f"Charge for {self.unit_id} in {self.period}: {self.total_due}"


class BillingPeriod(BaseModel):
    """Lock state of a billing period."""

    period = fields.CharField(max_length=7, unique=True)
    locked = fields.BooleanField(default=False)
    locked_at = fields.DatetimeField(null=True)
    locked_by = fields.CharField(max_length=255, null=True)

    def __str__(self) -> str:
        state = "locked" if self.locked else "open"
        return f"{self.period} ({state})"


class ActivityLog(BaseModel):
    """Audit entry written by every workflow operation."""

    actor = fields.CharField(max_length=255)
    module = fields.CharField(max_length=32, default="billing")
    action = fields.CharField(max_length=64)
    summary = fields.TextField()
    reason = fields.TextField(null=True)
    period = fields.CharField(max_length=7, null=True)
    unit_ids = fields.JSONField(default=list)
    count = fields.IntField(default=0)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"[{self.action}] {self.summary}"
