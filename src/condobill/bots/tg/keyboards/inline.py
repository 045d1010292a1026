"""Inline keyboard builders."""

from aiogram.filters.callback_data import CallbackData


class SelectPeriodCallback(CallbackData, prefix="period"):
    """Callback data for selecting a billing period."""

    action: str  # e.g. 'calc', 'lock', 'summary', 'statement'
    period: str  # YYYY-MM


class ConfirmUnlockCallback(CallbackData, prefix="unlock"):
    """Second step of unlocking a period."""

    period: str
    confirm: bool
