"""Tests for payment-state rules and period guards."""

from datetime import date
from decimal import Decimal

import pytest

from condobill.core.entities import OccupancyStatus, PaymentStatus, UnitRecord, UnitType
from condobill.core.errors import (
    FuturePeriodError,
    InvalidInputError,
    InvalidTransitionError,
    OperationRejected,
    PeriodLockedError,
)
from condobill.core.workflow import (
    can_transition,
    carry_over_amount,
    ensure_period_open,
    ensure_transition,
    select_units_to_calculate,
)

TODAY = date(2025, 7, 15)


@pytest.mark.parametrize(
    "current, target, allowed",
    [
        (PaymentStatus.PENDING, PaymentStatus.PAID_TM, True),
        (PaymentStatus.PENDING, PaymentStatus.PAID_CK, True),
        (PaymentStatus.PENDING, PaymentStatus.RECONCILING, True),
        (PaymentStatus.RECONCILING, PaymentStatus.PAID_CK, True),
        (PaymentStatus.RECONCILING, PaymentStatus.RECONCILING, True),
        (PaymentStatus.RECONCILING, PaymentStatus.PENDING, False),
        (PaymentStatus.PAID_TM, PaymentStatus.PENDING, True),
        (PaymentStatus.PAID_CK, PaymentStatus.PAID_TM, False),
        (PaymentStatus.PAID_CK, PaymentStatus.RECONCILING, False),
        (PaymentStatus.PENDING, PaymentStatus.PENDING, False),
    ],
)
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_ensure_transition_raises_rejection():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(PaymentStatus.PAID_TM, PaymentStatus.PAID_CK, unit_id="0903")

    assert exc_info.value.code == "invalid_transition"
    assert "0903" in exc_info.value.message


def test_locked_period_is_rejected():
    with pytest.raises(PeriodLockedError) as exc_info:
        ensure_period_open("2025-06", {"2025-06"}, today=TODAY)
    assert exc_info.value.period == "2025-06"


def test_future_period_is_rejected():
    with pytest.raises(FuturePeriodError):
        ensure_period_open("2025-08", set(), today=TODAY)


def test_current_and_past_periods_are_open():
    ensure_period_open("2025-07", set(), today=TODAY)
    ensure_period_open("2024-12", {"2025-06"}, today=TODAY)


def test_rejections_share_a_base_class():
    for error in (PeriodLockedError("2025-06"), FuturePeriodError("2025-08")):
        assert isinstance(error, OperationRejected)


def test_malformed_period_is_invalid_input():
    with pytest.raises(InvalidInputError):
        ensure_period_open("2025-13", set(), today=TODAY)


def test_select_units_keeps_paid_and_reconciling():
    units = [
        UnitRecord(code, UnitType.APARTMENT, Decimal("50"), OccupancyStatus.OWNER)
        for code in ("0101", "0102", "0103", "0104", "0105")
    ]
    existing = {
        "0101": PaymentStatus.PENDING,
        "0102": PaymentStatus.PAID_TM,
        "0103": PaymentStatus.PAID_CK,
        "0104": PaymentStatus.RECONCILING,
    }

    selected = select_units_to_calculate(units, existing)

    assert [u.unit_id for u in selected] == ["0101", "0105"]


def test_carry_over_amount():
    assert carry_over_amount(Decimal("1000"), Decimal("800")) == Decimal("200")
    assert carry_over_amount(Decimal("1000"), Decimal("1200")) == Decimal("-200")
