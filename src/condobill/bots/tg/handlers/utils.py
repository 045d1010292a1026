from __future__ import annotations

from datetime import date

from aiogram.types import InlineKeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder
from dateutil.relativedelta import relativedelta

from condobill.bots.tg.keyboards.inline import SelectPeriodCallback
from condobill.core.dates import format_period, format_period_for_display


def get_period_keyboard(action: str, months: int = 6) -> InlineKeyboardBuilder:
    """
    Builds an inline keyboard with buttons for the last months.

    Future periods are never offered.

    Args:
        action: The action to be encoded in the callback data (e.g., 'calc').
        months: How many months to offer, including the current one.

    Returns:
        An InlineKeyboardBuilder with the period buttons.
    """
    builder = InlineKeyboardBuilder()
    today = date.today()

    for i in range(months):
        period = format_period(today - relativedelta(months=i))
        callback_data = SelectPeriodCallback(action=action, period=period).pack()
        builder.row(
            InlineKeyboardButton(
                text=format_period_for_display(period), callback_data=callback_data
            )
        )

    return builder
