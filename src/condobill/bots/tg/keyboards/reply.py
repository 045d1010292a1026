"""Reply keyboard builders."""

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup
from aiogram.utils.keyboard import ReplyKeyboardBuilder

CALCULATE_BUTTON = "🧮 Tính phí"
SUMMARY_BUTTON = "📊 Tổng hợp"
LOCK_BUTTON = "🔒 Khoá kỳ"
UNLOCK_BUTTON = "🔓 Mở khoá kỳ"
STATEMENT_BUTTON = "🏦 Nhập sao kê"


def get_main_menu() -> ReplyKeyboardMarkup:
    """Builds the main menu reply keyboard."""
    builder = ReplyKeyboardBuilder()
    builder.row(
        KeyboardButton(text=CALCULATE_BUTTON),
        KeyboardButton(text=SUMMARY_BUTTON),
    )
    builder.row(
        KeyboardButton(text=LOCK_BUTTON),
        KeyboardButton(text=UNLOCK_BUTTON),
    )
    builder.row(KeyboardButton(text=STATEMENT_BUTTON))
    return builder.as_markup(resize_keyboard=True)
