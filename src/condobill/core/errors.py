"""Domain exceptions."""

from __future__ import annotations


class BillingError(Exception):
    """Base exception for billing errors."""


class OperationRejected(BillingError):
    """A workflow operation refused to proceed.

    Rejections are recoverable: the caller shows ``message`` and carries on.
    ``code`` is a stable identifier for programmatic checks.
    """

    code = "rejected"

    def __init__(self, message: str, *, period: str | None = None):
        super().__init__(message)
        self.message = message
        self.period = period


class PeriodLockedError(OperationRejected):
    code = "period_locked"

    def __init__(self, period: str):
        super().__init__(
            f"Billing period {period} is locked. Unlock it before making changes.",
            period=period,
        )


class FuturePeriodError(OperationRejected):
    code = "future_period"

    def __init__(self, period: str):
        super().__init__(
            f"Billing period {period} is in the future.", period=period
        )


class InvalidTransitionError(OperationRejected):
    code = "invalid_transition"

    def __init__(self, current: str, target: str, *, unit_id: str | None = None):
        subject = f"Charge for unit {unit_id}" if unit_id else "Charge"
        super().__init__(f"{subject} cannot move from '{current}' to '{target}'.")
        self.current = current
        self.target = target
        self.unit_id = unit_id


class ConfirmationRequiredError(OperationRejected):
    code = "confirmation_required"

    def __init__(self, period: str):
        super().__init__(
            f"Unlocking period {period} must be confirmed.", period=period
        )


class ChargeNotFoundError(OperationRejected):
    code = "charge_not_found"

    def __init__(self, period: str, unit_id: str):
        super().__init__(
            f"No charge for unit {unit_id} in period {period}.", period=period
        )
        self.unit_id = unit_id


class InvalidInputError(ValueError):
    """Input that should have been validated upstream (negative usage, bad codes)."""


class InvalidReadingError(InvalidInputError):
    """A water meter reading whose current index is below the previous one."""


class StatementFormatError(BillingError):
    """A bank statement file without recognisable columns."""
