"""Payment-state rules of a billing period.

The async service calls these guards before touching storage, so the same
rules hold no matter where charges are kept.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from datetime import date
from decimal import Decimal

from condobill.core.dates import is_future_period, parse_period
from condobill.core.entities import PRESERVED_STATUSES, PaymentStatus, UnitRecord
from condobill.core.errors import (
    FuturePeriodError,
    InvalidTransitionError,
    PeriodLockedError,
)

# Allowed moves of a single charge. Removal is handled separately: any
# charge can be deleted while its period is unlocked.
TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PAID_TM, PaymentStatus.PAID_CK, PaymentStatus.RECONCILING}
    ),
    PaymentStatus.RECONCILING: frozenset(
        {PaymentStatus.PAID_TM, PaymentStatus.PAID_CK, PaymentStatus.RECONCILING}
    ),
    PaymentStatus.PAID_TM: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.PAID_CK: frozenset({PaymentStatus.PENDING}),
}

PAYMENT_METHODS = frozenset({PaymentStatus.PAID_TM, PaymentStatus.PAID_CK})


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(
    current: PaymentStatus, target: PaymentStatus, *, unit_id: str | None = None
) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value, unit_id=unit_id)


def ensure_period_open(
    period: str, locked_periods: Collection[str], today: date | None = None
) -> None:
    """Rejects changes to a locked or future period."""
    parse_period(period)
    if period in locked_periods:
        raise PeriodLockedError(period)
    if is_future_period(period, today):
        raise FuturePeriodError(period)


def is_preserved(status: PaymentStatus) -> bool:
    """Charges already collected or awaiting confirmation are never recomputed."""
    return status in PRESERVED_STATUSES


def select_units_to_calculate(
    units: Iterable[UnitRecord], existing: Mapping[str, PaymentStatus]
) -> list[UnitRecord]:
    """Drops units whose existing charge for the period must be preserved.

    Args:
        units: All billable units.
        existing: Payment status of the period's current charges, by unit id.
    """
    return [
        unit
        for unit in units
        if unit.unit_id not in existing or not is_preserved(existing[unit.unit_id])
    ]


def carry_over_amount(total_due: Decimal, total_paid: Decimal) -> Decimal:
    """Balance moved to the next period: positive when underpaid."""
    return total_due - total_paid
