"""Handlers for period calculation, locking and statement import."""

from __future__ import annotations

import tempfile
from pathlib import Path

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardButton, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from condobill.bots.tg.handlers.utils import get_period_keyboard
from condobill.bots.tg.keyboards.inline import ConfirmUnlockCallback, SelectPeriodCallback
from condobill.bots.tg.keyboards.reply import (
    CALCULATE_BUTTON,
    LOCK_BUTTON,
    STATEMENT_BUTTON,
    SUMMARY_BUTTON,
    UNLOCK_BUTTON,
)
from condobill.bots.tg.states import StatementImport
from condobill.core.dates import format_period_for_display
from condobill.core.errors import BillingError, InvalidInputError, OperationRejected
from condobill.core.repositories.unit import UnitRepository
from condobill.services.billing import BillingService
from condobill.services.statements import load_statement

router = Router(name=__name__)


async def _ask_period(message: Message, action: str, prompt: str) -> None:
    builder = get_period_keyboard(action)
    await message.answer(prompt, reply_markup=builder.as_markup())


@router.message(Command("calc"))
@router.message(F.text == CALCULATE_BUTTON)
async def handle_calc_command(message: Message) -> None:
    await _ask_period(message, "calc", "Chọn kỳ cần tính phí:")


@router.message(Command("summary"))
@router.message(F.text == SUMMARY_BUTTON)
async def handle_summary_command(message: Message) -> None:
    await _ask_period(message, "summary", "Chọn kỳ cần tổng hợp:")


@router.message(Command("lock"))
@router.message(F.text == LOCK_BUTTON)
async def handle_lock_command(message: Message) -> None:
    await _ask_period(message, "lock", "Chọn kỳ cần khoá:")


@router.message(Command("unlock"))
@router.message(F.text == UNLOCK_BUTTON)
async def handle_unlock_command(message: Message) -> None:
    await _ask_period(message, "unlock", "Chọn kỳ cần mở khoá:")


@router.message(F.text == STATEMENT_BUTTON)
async def handle_statement_command(message: Message) -> None:
    await _ask_period(message, "statement", "Chọn kỳ để đối soát sao kê:")


@router.callback_query(SelectPeriodCallback.filter(F.action == "calc"))
async def handle_period_for_calc(
    query: CallbackQuery,
    callback_data: SelectPeriodCallback,
    billing_service: BillingService,
    actor: str,
):
    """Calculates the charges of every unit for the selected month."""
    if not isinstance(query.message, Message):
        return
    await query.answer()
    period = callback_data.period

    issues = await billing_service.completeness_check(period)
    if issues:
        await query.message.answer(
            "⚠️ <b>Thiếu dữ liệu:</b>\n" + "\n".join(f"• {issue}" for issue in issues)
        )

    try:
        result = await billing_service.calculate_period(period, actor=actor)
    except OperationRejected as e:
        await query.message.edit_text(f"⛔ {e.message}")
        return
    except InvalidInputError as e:
        await query.message.edit_text(f"❌ {e}")
        return

    text = (
        f"✅ Đã tính phí {format_period_for_display(period)} "
        f"cho {len(result.drafts)} căn."
    )
    if result.preserved:
        text += f"\nGiữ nguyên {len(result.preserved)} căn đã thanh toán/đang đối soát."
    await query.message.edit_text(text)


@router.callback_query(SelectPeriodCallback.filter(F.action == "summary"))
async def handle_period_for_summary(
    query: CallbackQuery,
    callback_data: SelectPeriodCallback,
    billing_service: BillingService,
):
    if not isinstance(query.message, Message):
        return
    await query.answer()

    summary = await billing_service.period_summary(callback_data.period)
    locked = await billing_service.is_locked(callback_data.period)
    await query.message.edit_text(
        f"<b>{format_period_for_display(summary.period)}</b>"
        f"{' 🔒' if locked else ''}\n"
        f"Số căn: {summary.charge_count}\n"
        f"Đã thanh toán: {summary.paid_count} ({summary.progress}%)\n"
        f"Đang đối soát: {summary.reconciling_count}\n"
        f"Tổng phải thu: {summary.total_due:,.0f}\n"
        f"Đã thu: {summary.total_paid:,.0f}\n"
        f"Còn lại: {summary.outstanding:,.0f}"
    )


@router.callback_query(SelectPeriodCallback.filter(F.action == "lock"))
async def handle_period_for_lock(
    query: CallbackQuery,
    callback_data: SelectPeriodCallback,
    billing_service: BillingService,
    actor: str,
):
    if not isinstance(query.message, Message):
        return
    await query.answer()
    await billing_service.lock_period(callback_data.period, actor=actor)
    await query.message.edit_text(
        f"🔒 Đã khoá {format_period_for_display(callback_data.period)}."
    )


@router.callback_query(SelectPeriodCallback.filter(F.action == "unlock"))
async def handle_period_for_unlock(query: CallbackQuery, callback_data: SelectPeriodCallback):
    """Asks for an explicit confirmation before unlocking."""
    if not isinstance(query.message, Message):
        return
    await query.answer()

    period = callback_data.period
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(
            text="✅ Mở khoá",
            callback_data=ConfirmUnlockCallback(period=period, confirm=True).pack(),
        ),
        InlineKeyboardButton(
            text="❌ Huỷ",
            callback_data=ConfirmUnlockCallback(period=period, confirm=False).pack(),
        ),
    )
    await query.message.edit_text(
        f"Mở khoá {format_period_for_display(period)}? "
        "Các khoản phí của kỳ sẽ có thể bị thay đổi.",
        reply_markup=builder.as_markup(),
    )


@router.callback_query(ConfirmUnlockCallback.filter())
async def handle_unlock_confirmation(
    query: CallbackQuery,
    callback_data: ConfirmUnlockCallback,
    billing_service: BillingService,
    actor: str,
):
    if not isinstance(query.message, Message):
        return
    await query.answer()
    if not callback_data.confirm:
        await query.message.edit_text("Đã huỷ.")
        return

    await billing_service.unlock_period(
        callback_data.period, actor=actor, confirm=True
    )
    await query.message.edit_text(
        f"🔓 Đã mở khoá {format_period_for_display(callback_data.period)}."
    )


@router.callback_query(SelectPeriodCallback.filter(F.action == "statement"))
async def handle_period_for_statement(
    query: CallbackQuery, callback_data: SelectPeriodCallback, state: FSMContext
):
    if not isinstance(query.message, Message):
        return
    await query.answer()
    await state.update_data(period=callback_data.period)
    await state.set_state(StatementImport.waiting_for_file)
    await query.message.edit_text("Gửi file sao kê (.xlsx, .xls hoặc .csv):")


@router.message(StatementImport.waiting_for_file, F.document)
async def handle_statement_file(
    message: Message,
    state: FSMContext,
    bot: Bot,
    billing_service: BillingService,
    actor: str,
):
    """Parses the uploaded statement and marks matched charges as reconciling."""
    data = await state.get_data()
    await state.clear()
    period = data["period"]

    suffix = Path(message.document.file_name or "statement.xlsx").suffix
    unit_ids = {unit.unit_id for unit in await UnitRepository().list_records()}

    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / f"statement{suffix}"
        await bot.download(message.document, destination=path)
        try:
            statement = load_statement(path, unit_ids)
        except BillingError as e:
            await message.answer(f"❌ Lỗi khi đọc file sao kê: {e}")
            return

    try:
        result = await billing_service.reconcile_from_statement(
            period, statement.to_matches(), actor=actor, reason=message.document.file_name
        )
    except OperationRejected as e:
        await message.answer(f"⛔ {e.message}")
        return

    lines = [
        f"Đối soát {len(result.applied)} căn, tổng {result.total_applied:,.0f}.",
    ]
    if statement.unmatched:
        lines.append(f"{len(statement.unmatched)} giao dịch không khớp mã căn.")
    if result.unknown_units:
        lines.append(f"Không có phí trong kỳ: {', '.join(result.unknown_units)}")
    if result.skipped_confirmed:
        lines.append(f"Đã thanh toán, bỏ qua: {', '.join(result.skipped_confirmed)}")
    await message.answer("\n".join(lines))
