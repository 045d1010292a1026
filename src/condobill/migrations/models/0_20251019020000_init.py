from tortoise import BaseDBAsyncClient


async def upgrade(db: BaseDBAsyncClient) -> str:
    return """
        CREATE TABLE IF NOT EXISTS "owner" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "name" VARCHAR(255) NOT NULL,
    "phone" VARCHAR(32) NOT NULL DEFAULT '',
    "email" VARCHAR(255) NOT NULL DEFAULT ''
);
COMMENT ON TABLE "owner" IS 'Represents the owner (or main contact) of a unit.';
CREATE TABLE IF NOT EXISTS "unit" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "code" VARCHAR(16) NOT NULL UNIQUE,
    "unit_type" VARCHAR(9) NOT NULL DEFAULT 'apartment',
    "area_m2" DECIMAL(8,2) NOT NULL,
    "status" VARCHAR(8) NOT NULL DEFAULT 'owner',
    "owner_id" UUID REFERENCES "owner" ("id") ON DELETE SET NULL
);
COMMENT ON COLUMN "unit"."unit_type" IS 'APARTMENT: apartment\nKIOSK: kiosk';
COMMENT ON COLUMN "unit"."status" IS 'OWNER: owner\nRENT: rent\nBUSINESS: business';
COMMENT ON TABLE "unit" IS 'Represents an apartment or a kiosk.';
CREATE TABLE IF NOT EXISTS "vehicle" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "tier" VARCHAR(11) NOT NULL,
    "name" VARCHAR(255) NOT NULL DEFAULT '',
    "plate_number" VARCHAR(32) NOT NULL,
    "start_date" DATE NOT NULL,
    "is_active" BOOL NOT NULL DEFAULT True,
    "parking_status" VARCHAR(14),
    "unit_id" UUID NOT NULL REFERENCES "unit" ("id") ON DELETE CASCADE
);
COMMENT ON COLUMN "vehicle"."tier" IS 'CAR: car\nCAR_PREMIUM: car_premium\nMOTORBIKE: motorbike\nEBIKE: ebike\nBICYCLE: bicycle';
COMMENT ON COLUMN "vehicle"."parking_status" IS 'MAIN_SLOT: main_slot\nTEMPORARY_SLOT: temporary_slot\nWAITLISTED: waitlisted';
COMMENT ON TABLE "vehicle" IS 'Represents a vehicle registered to a unit.';
CREATE TABLE IF NOT EXISTS "waterreading" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "period" VARCHAR(7) NOT NULL,
    "prev_index" DECIMAL(12,2) NOT NULL,
    "curr_index" DECIMAL(12,2) NOT NULL,
    "unit_id" UUID NOT NULL REFERENCES "unit" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_waterreadin_unit_id_5c1f0e" UNIQUE ("unit_id", "period")
);
COMMENT ON TABLE "waterreading" IS 'Represents a water meter reading for a specific period.';
CREATE TABLE IF NOT EXISTS "servicetariff" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "category" VARCHAR(18) NOT NULL,
    "price_per_m2" DECIMAL(12,2) NOT NULL,
    "vat_percent" DECIMAL(5,2) NOT NULL,
    "valid_from" DATE NOT NULL,
    "valid_to" DATE
);
COMMENT ON COLUMN "servicetariff"."category" IS 'APARTMENT: apartment\nBUSINESS_APARTMENT: business_apartment\nKIOSK: kiosk';
COMMENT ON TABLE "servicetariff" IS 'Per-m² service price of a service category.';
CREATE TABLE IF NOT EXISTS "parkingtariff" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "tier" VARCHAR(11) NOT NULL,
    "price_per_unit" DECIMAL(12,2) NOT NULL,
    "vat_percent" DECIMAL(5,2) NOT NULL,
    "valid_from" DATE NOT NULL,
    "valid_to" DATE
);
COMMENT ON COLUMN "parkingtariff"."tier" IS 'CAR: car\nCAR_PREMIUM: car_premium\nMOTO_1_2: moto_1_2\nMOTO_3_4: moto_3_4\nBICYCLE: bicycle';
COMMENT ON TABLE "parkingtariff" IS 'Monthly price of one parking place of a tier.';
CREATE TABLE IF NOT EXISTS "watertariff" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "from_m3" DECIMAL(10,2) NOT NULL,
    "to_m3" DECIMAL(10,2),
    "unit_price" DECIMAL(12,2) NOT NULL,
    "vat_percent" DECIMAL(5,2) NOT NULL,
    "valid_from" DATE NOT NULL,
    "valid_to" DATE
);
COMMENT ON TABLE "watertariff" IS 'One consumption bracket of the progressive water price.';
CREATE TABLE IF NOT EXISTS "adjustment" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "period" VARCHAR(7) NOT NULL,
    "amount" DECIMAL(14,2) NOT NULL,
    "description" VARCHAR(255) NOT NULL,
    "source_period" VARCHAR(7),
    "unit_id" UUID NOT NULL REFERENCES "unit" ("id") ON DELETE CASCADE
);
COMMENT ON COLUMN "adjustment"."source_period" IS 'Period whose payment difference produced this adjustment';
COMMENT ON TABLE "adjustment" IS 'A manual credit (negative) or debit on a unit''s bill for a period.';
CREATE TABLE IF NOT EXISTS "charge" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "period" VARCHAR(7) NOT NULL,
    "owner_name" VARCHAR(255) NOT NULL DEFAULT '',
    "area_m2" DECIMAL(8,2) NOT NULL,
    "service_base" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "service_vat" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "service_total" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "car_count" INT NOT NULL DEFAULT 0,
    "car_premium_count" INT NOT NULL DEFAULT 0,
    "motorbike_count" INT NOT NULL DEFAULT 0,
    "bicycle_count" INT NOT NULL DEFAULT 0,
    "parking_base" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "parking_vat" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "parking_total" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "water_m3" DECIMAL(10,2) NOT NULL DEFAULT 0,
    "water_base" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "water_vat" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "water_total" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "adjustments" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "total_due" DECIMAL(14,2) NOT NULL,
    "total_paid" DECIMAL(14,2) NOT NULL DEFAULT 0,
    "payment_confirmed" BOOL NOT NULL DEFAULT False,
    "payment_status" VARCHAR(11) NOT NULL DEFAULT 'pending',
    "locked" BOOL NOT NULL DEFAULT False,
    "unit_id" UUID NOT NULL REFERENCES "unit" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_charge_unit_id_8e2b61" UNIQUE ("unit_id", "period")
);
COMMENT ON COLUMN "charge"."payment_status" IS 'PENDING: pending\nRECONCILING: reconciling\nPAID_TM: paid_tm\nPAID_CK: paid_ck';
COMMENT ON TABLE "charge" IS 'The bill of a unit for a period.';
CREATE TABLE IF NOT EXISTS "billingperiod" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "period" VARCHAR(7) NOT NULL UNIQUE,
    "locked" BOOL NOT NULL DEFAULT False,
    "locked_at" TIMESTAMPTZ,
    "locked_by" VARCHAR(255)
);
COMMENT ON TABLE "billingperiod" IS 'Lock state of a billing period.';
CREATE TABLE IF NOT EXISTS "activitylog" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "actor" VARCHAR(255) NOT NULL,
    "module" VARCHAR(32) NOT NULL DEFAULT 'billing',
    "action" VARCHAR(64) NOT NULL,
    "summary" TEXT NOT NULL,
    "reason" TEXT,
    "period" VARCHAR(7),
    "unit_ids" JSONB NOT NULL,
    "count" INT NOT NULL DEFAULT 0
);
COMMENT ON TABLE "activitylog" IS 'Audit entry written by every workflow operation.';
CREATE TABLE IF NOT EXISTS "aerich" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "version" VARCHAR(255) NOT NULL,
    "app" VARCHAR(100) NOT NULL,
    "content" JSONB NOT NULL
);"""


async def downgrade(db: BaseDBAsyncClient) -> str:
    return """
        """
