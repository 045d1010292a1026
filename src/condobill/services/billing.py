"""Service responsible for the billing workflow of a period."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from tortoise.transactions import in_transaction

from condobill.core.cache import TTLCache
from condobill.core.calculations import (
    active_water_brackets,
    calculate_water_usage,
    compute_charge,
    find_parking_tariff,
    find_service_tariff,
    service_category_for,
    sort_unit_ids,
)
from condobill.core.dates import next_period, parse_period
from condobill.core.entities import (
    PAID_STATUSES,
    ZERO,
    ChargeDraft,
    ParkingTariffTier,
    PaymentStatus,
    TariffSet,
)
from condobill.core.errors import (
    ChargeNotFoundError,
    ConfirmationRequiredError,
    InvalidInputError,
    OperationRejected,
    PeriodLockedError,
)
from condobill.core.models import BillingPeriod, Charge
from condobill.core.repositories.activity import ActivityLogRepository
from condobill.core.repositories.adjustment import AdjustmentRepository
from condobill.core.repositories.charge import ChargeRepository
from condobill.core.repositories.period import BillingPeriodRepository
from condobill.core.repositories.reading import ReadingRepository
from condobill.core.repositories.tariff import TariffRepository
from condobill.core.repositories.unit import OwnerRepository, UnitRepository
from condobill.core.repositories.vehicle import VehicleRepository
from condobill.core.workflow import (
    PAYMENT_METHODS,
    carry_over_amount,
    ensure_period_open,
    ensure_transition,
    select_units_to_calculate,
)

logger = logging.getLogger(__name__)

TARIFF_CACHE_KEY = "tariffs"


@dataclass(frozen=True)
class CalculationResult:
    """Outcome of calculating a period."""

    period: str
    drafts: list[ChargeDraft]
    preserved: tuple[str, ...]  # units whose paid/reconciling charge was kept

    @property
    def warnings(self) -> list[str]:
        return [w for draft in self.drafts for w in draft.warnings]


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of applying bank-statement matches to a period."""

    applied: dict[str, Decimal] = field(default_factory=dict)
    unknown_units: tuple[str, ...] = ()
    skipped_confirmed: tuple[str, ...] = ()

    @property
    def total_applied(self) -> Decimal:
        return sum(self.applied.values(), ZERO)


@dataclass(frozen=True)
class PeriodSummary:
    """Collection progress of a period."""

    period: str
    charge_count: int
    paid_count: int
    reconciling_count: int
    total_due: Decimal
    total_paid: Decimal

    @property
    def outstanding(self) -> Decimal:
        return self.total_due - self.total_paid

    @property
    def progress(self) -> float:
        """Share of charges confirmed paid, in percent."""
        if not self.charge_count:
            return 0.0
        return round(self.paid_count * 100 / self.charge_count, 1)


class BillingService:
    """Orchestrates charge calculation, period locks and payment states.

    Every mutating operation first checks that the period is neither locked
    nor in the future, then writes all of its rows in a single transaction.
    Refusals are raised as ``OperationRejected`` subclasses.
    """

    def __init__(
        self,
        unit_repo: UnitRepository,
        owner_repo: OwnerRepository,
        vehicle_repo: VehicleRepository,
        reading_repo: ReadingRepository,
        tariff_repo: TariffRepository,
        adjustment_repo: AdjustmentRepository,
        charge_repo: ChargeRepository,
        period_repo: BillingPeriodRepository,
        activity_repo: ActivityLogRepository,
        tariff_cache: TTLCache,
        carry_over_balance: bool = True,
    ):
        self._unit_repo = unit_repo
        self._owner_repo = owner_repo
        self._vehicle_repo = vehicle_repo
        self._reading_repo = reading_repo
        self._tariff_repo = tariff_repo
        self._adjustment_repo = adjustment_repo
        self._charge_repo = charge_repo
        self._period_repo = period_repo
        self._activity_repo = activity_repo
        self._tariff_cache = tariff_cache
        self._carry_over_balance = carry_over_balance

    # --- Helpers ---

    async def load_tariffs(self) -> TariffSet:
        tariffs = self._tariff_cache.get(TARIFF_CACHE_KEY)
        if tariffs is None:
            tariffs = await self._tariff_repo.load_tariff_set()
            self._tariff_cache.set(TARIFF_CACHE_KEY, tariffs)
        return tariffs

    def invalidate_tariffs(self) -> None:
        """Must be called after any tariff table edit."""
        self._tariff_cache.invalidate(TARIFF_CACHE_KEY)

    async def _ensure_open(self, period: str, today: date | None = None) -> None:
        locked = await self._period_repo.locked_periods()
        try:
            ensure_period_open(period, locked, today)
        except OperationRejected as e:
            logger.warning(f"Rejected operation on {period}: {e.message}")
            raise

    async def _ensure_next_open(self, period: str) -> None:
        """Carried balances are written into the following period."""
        following = next_period(period)
        if await self._period_repo.is_locked(following):
            logger.warning(f"Rejected carry-over from {period}: {following} is locked")
            raise PeriodLockedError(following)

    async def _get_charge(self, period: str, unit_id: str) -> Charge:
        charge = await self._charge_repo.get_for_unit(period, unit_id)
        if charge is None:
            raise ChargeNotFoundError(period, unit_id)
        return charge

    # --- Calculation ---

    async def calculate_period(
        self,
        period: str,
        actor: str,
        reason: str | None = None,
        today: date | None = None,
    ) -> CalculationResult:
        """
        Computes and stores the charges of every unit for a period.

        Charges already paid or awaiting reconciliation are left untouched;
        every other unit gets a fresh pending charge.

        Returns:
            The drafts that were stored and the units that were preserved.
        """
        await self._ensure_open(period, today)

        units = await self._unit_repo.list_records()
        existing = await self._charge_repo.statuses(period)
        to_calculate = select_units_to_calculate(units, existing)
        calculated_ids = {unit.unit_id for unit in to_calculate}
        preserved = tuple(
            sort_unit_ids(u.unit_id for u in units if u.unit_id not in calculated_ids)
        )

        tariffs = await self.load_tariffs()
        owners = await self._owner_repo.records_by_id()
        vehicles = await self._vehicle_repo.records_by_unit()
        readings = await self._reading_repo.records_for_billing(period)
        adjustments = await self._adjustment_repo.records_by_unit(period)

        drafts = [
            compute_charge(
                unit=unit,
                owner=owners.get(unit.owner_id) if unit.owner_id else None,
                vehicles=vehicles.get(unit.unit_id, []),
                adjustments=adjustments.get(unit.unit_id, []),
                tariffs=tariffs,
                period=period,
                water_m3=calculate_water_usage(readings, unit.unit_id, period),
            )
            for unit in to_calculate
        ]

        unit_models = await self._unit_repo.get_by_codes(list(calculated_ids))
        async with in_transaction():
            for draft in drafts:
                await self._charge_repo.save_draft(unit_models[draft.unit_id], draft)
            await self._activity_repo.record(
                actor,
                "calculate_charges",
                f"Calculated charges for {period}: {len(drafts)} units",
                period=period,
                unit_ids=[draft.unit_id for draft in drafts],
                reason=reason,
            )

        result = CalculationResult(period=period, drafts=drafts, preserved=preserved)
        for warning in result.warnings:
            logger.warning(warning)
        logger.info(
            f"Calculated {len(drafts)} charges for {period}, "
            f"preserved {len(preserved)}."
        )
        return result

    # --- Period lock ---

    async def lock_period(
        self, period: str, actor: str, reason: str | None = None
    ) -> BillingPeriod:
        """Freezes every charge of the period. Locking twice is a no-op."""
        parse_period(period)
        async with in_transaction():
            billing_period = await self._period_repo.set_locked(period, True, actor)
            await self._charge_repo.set_locked(period, True)
            await self._activity_repo.record(
                actor, "lock_period", f"Locked period {period}", period=period, reason=reason
            )
        logger.info(f"Period {period} locked by {actor}.")
        return billing_period

    async def unlock_period(
        self,
        period: str,
        actor: str,
        confirm: bool = False,
        reason: str | None = None,
    ) -> BillingPeriod:
        """Reopens a locked period. Requires ``confirm=True``."""
        parse_period(period)
        if not confirm:
            raise ConfirmationRequiredError(period)
        async with in_transaction():
            billing_period = await self._period_repo.set_locked(period, False, actor)
            await self._charge_repo.set_locked(period, False)
            await self._activity_repo.record(
                actor, "unlock_period", f"Unlocked period {period}", period=period, reason=reason
            )
        logger.info(f"Period {period} unlocked by {actor}.")
        return billing_period

    async def is_locked(self, period: str) -> bool:
        return await self._period_repo.is_locked(period)

    # --- Payments ---

    async def record_payment(
        self,
        period: str,
        unit_id: str,
        amount: Decimal,
        method: PaymentStatus | str,
        actor: str,
        reason: str | None = None,
    ) -> Charge:
        """
        Confirms a payment in cash (``paid_tm``) or by transfer (``paid_ck``).

        When the amount differs from what was due, the difference is carried
        to the next period as an adjustment.
        """
        try:
            method = PaymentStatus(method)
        except ValueError:
            raise InvalidInputError(f"'{method}' is not a payment method.") from None
        if method not in PAYMENT_METHODS:
            raise InvalidInputError(f"'{method.value}' is not a payment method.")
        if not amount.is_finite():
            raise InvalidInputError(f"Payment amount must be a number: {amount}.")
        if amount < 0:
            raise InvalidInputError(f"Payment amount cannot be negative: {amount}.")

        await self._ensure_open(period)
        charge = await self._get_charge(period, unit_id)
        ensure_transition(charge.payment_status, method, unit_id=unit_id)
        difference = carry_over_amount(charge.total_due, amount)
        if self._carry_over_balance and (
            difference != 0
            or await self._adjustment_repo.has_carry_over([unit_id], period)
        ):
            await self._ensure_next_open(period)

        async with in_transaction():
            charge.total_paid = amount
            charge.payment_status = method
            charge.payment_confirmed = True
            await charge.save()

            if self._carry_over_balance:
                if difference != 0:
                    await self._adjustment_repo.replace_carry_over(
                        charge.unit,
                        period=next_period(period),
                        source_period=period,
                        amount=difference,
                        description=f"Balance carried from {period}",
                    )
                else:
                    await self._adjustment_repo.delete_carry_over(charge.unit, period)

            await self._activity_repo.record(
                actor,
                "confirm_payment",
                f"Confirmed payment of {amount} ({method.value}) for {unit_id}",
                period=period,
                unit_ids=[unit_id],
                reason=reason,
            )
        logger.info(f"Payment {amount} ({method.value}) recorded for {unit_id} in {period}.")
        return charge

    async def reconcile_from_statement(
        self,
        period: str,
        matches: Mapping[str, Decimal],
        actor: str,
        reason: str | None = None,
    ) -> ReconciliationResult:
        """
        Applies amounts matched from an imported bank statement.

        Matched charges move to ``reconciling`` and still need a confirmed
        payment. Confirmed charges are never downgraded and units without a
        charge in the period are reported back.
        """
        for unit_id, amount in matches.items():
            if not amount.is_finite() or amount <= 0:
                raise InvalidInputError(
                    f"Statement amount for {unit_id} must be positive: {amount}."
                )

        await self._ensure_open(period)
        charges = {c.unit.code: c for c in await self._charge_repo.for_period(period)}

        applied: dict[str, Decimal] = {}
        unknown: list[str] = []
        skipped: list[str] = []
        for unit_id, amount in matches.items():
            charge = charges.get(unit_id)
            if charge is None:
                unknown.append(unit_id)
            elif charge.payment_status in PAID_STATUSES:
                skipped.append(unit_id)
            else:
                applied[unit_id] = amount

        if applied:
            async with in_transaction():
                for unit_id, amount in applied.items():
                    charge = charges[unit_id]
                    ensure_transition(
                        charge.payment_status, PaymentStatus.RECONCILING, unit_id=unit_id
                    )
                    charge.total_paid = amount
                    charge.payment_status = PaymentStatus.RECONCILING
                    charge.payment_confirmed = False
                    await charge.save()
                result = ReconciliationResult(
                    applied=applied,
                    unknown_units=tuple(sort_unit_ids(unknown)),
                    skipped_confirmed=tuple(sort_unit_ids(skipped)),
                )
                await self._activity_repo.record(
                    actor,
                    "import_bank_statement",
                    f"Reconciled {len(applied)} transactions, total {result.total_applied}",
                    period=period,
                    unit_ids=list(applied),
                    reason=reason,
                )
        else:
            result = ReconciliationResult(
                unknown_units=tuple(sort_unit_ids(unknown)),
                skipped_confirmed=tuple(sort_unit_ids(skipped)),
            )

        logger.info(
            f"Statement for {period}: {len(applied)} applied, "
            f"{len(unknown)} unknown, {len(skipped)} already confirmed."
        )
        return result

    async def undo_payment(
        self, period: str, unit_id: str, actor: str, reason: str | None = None
    ) -> Charge:
        """Returns a paid charge to ``pending`` and drops its carried balance."""
        await self._ensure_open(period)
        charge = await self._get_charge(period, unit_id)
        ensure_transition(charge.payment_status, PaymentStatus.PENDING, unit_id=unit_id)
        if await self._adjustment_repo.has_carry_over([unit_id], period):
            await self._ensure_next_open(period)

        async with in_transaction():
            charge.total_paid = ZERO
            charge.payment_status = PaymentStatus.PENDING
            charge.payment_confirmed = False
            await charge.save()
            await self._adjustment_repo.delete_carry_over(charge.unit, period)
            await self._activity_repo.record(
                actor,
                "undo_payment",
                f"Reverted payment of {unit_id}",
                period=period,
                unit_ids=[unit_id],
                reason=reason,
            )
        logger.info(f"Payment of {unit_id} in {period} reverted.")
        return charge

    async def delete_charges(
        self,
        period: str,
        unit_ids: list[str],
        actor: str,
        reason: str | None = None,
    ) -> int:
        """Removes the period's charges of the given units and their carried balances."""
        await self._ensure_open(period)
        if await self._adjustment_repo.has_carry_over(unit_ids, period):
            await self._ensure_next_open(period)
        async with in_transaction():
            deleted = await self._charge_repo.delete_for_units(period, unit_ids)
            await self._adjustment_repo.delete_carry_overs(unit_ids, period)
            await self._activity_repo.record(
                actor,
                "delete_charges",
                f"Deleted {deleted} charges of {period}",
                period=period,
                unit_ids=unit_ids,
                reason=reason,
            )
        logger.info(f"Deleted {deleted} charges of {period}.")
        return deleted

    # --- Reports ---

    async def period_summary(self, period: str) -> PeriodSummary:
        charges = await self._charge_repo.for_period(period)
        paid = [c for c in charges if c.payment_status in PAID_STATUSES]
        return PeriodSummary(
            period=period,
            charge_count=len(charges),
            paid_count=len(paid),
            reconciling_count=sum(
                1 for c in charges if c.payment_status == PaymentStatus.RECONCILING
            ),
            total_due=sum((c.total_due for c in charges), ZERO),
            total_paid=sum((c.total_paid for c in paid), ZERO),
        )

    async def completeness_check(self, period: str) -> list[str]:
        """Returns human-readable list of missing data for the period.

        Checks:
        1. Every unit has an owner.
        2. A service tariff exists for every service category in use.
        3. Parking and water tariffs are configured.
        4. Every unit has a water reading for the period.
        """
        units = await self._unit_repo.list_records()
        tariffs = await self.load_tariffs()
        with_reading = await self._reading_repo.unit_codes_with_reading(period)

        issues: list[str] = []
        for unit_id in sort_unit_ids(u.unit_id for u in units if u.owner_id is None):
            issues.append(f"Unit {unit_id} has no owner.")

        categories = sorted({service_category_for(u) for u in units}, key=lambda c: c.value)
        for category in categories:
            if find_service_tariff(tariffs, category, period) is None:
                issues.append(f"No active service tariff '{category.value}' for {period}.")

        for tier in ParkingTariffTier:
            if find_parking_tariff(tariffs, tier, period) is None:
                issues.append(f"No active parking tariff '{tier.value}' for {period}.")

        if not active_water_brackets(tariffs, period):
            issues.append(f"No active water tariff for {period}.")

        missing = sort_unit_ids(u.unit_id for u in units if u.unit_id not in with_reading)
        if missing:
            issues.append(f"No water reading for {period}: {', '.join(missing)}.")

        return issues
