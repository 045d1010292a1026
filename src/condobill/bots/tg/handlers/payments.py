"""Handlers for payments of single units."""

from __future__ import annotations

import tempfile
from datetime import date
from decimal import Decimal, InvalidOperation

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import FSInputFile, Message

from condobill.core.dates import format_period
from condobill.core.entities import PaymentStatus
from condobill.core.errors import InvalidInputError, OperationRejected
from condobill.core.repositories.charge import ChargeRepository
from condobill.services.billing import BillingService
from condobill.services.export import ExportService

router = Router(name=__name__)

METHODS = {"tm": PaymentStatus.PAID_TM, "ck": PaymentStatus.PAID_CK}


def _period_arg(args: list[str], index: int) -> str:
    return args[index] if len(args) > index else format_period(date.today())


@router.message(Command("pay"))
async def handle_pay(
    message: Message,
    command: CommandObject,
    billing_service: BillingService,
    actor: str,
):
    """/pay <unit> <amount> <tm|ck> [YYYY-MM]"""
    args = (command.args or "").split()
    if len(args) < 3 or args[2].lower() not in METHODS:
        await message.answer("Cú pháp: /pay &lt;căn&gt; &lt;số tiền&gt; &lt;tm|ck&gt; [YYYY-MM]")
        return
    try:
        amount = Decimal(args[1].replace(".", "").replace(",", ""))
    except InvalidOperation:
        await message.answer("Số tiền không hợp lệ.")
        return

    unit_id, method = args[0], METHODS[args[2].lower()]
    try:
        charge = await billing_service.record_payment(
            _period_arg(args, 3), unit_id, amount, method, actor=actor
        )
    except (OperationRejected, InvalidInputError) as e:
        await message.answer(f"⛔ {e}")
        return

    text = f"✅ Đã xác nhận {amount:,.0f} cho căn {unit_id}."
    if charge.total_paid != charge.total_due:
        text += (
            f"\nChênh lệch {charge.total_due - charge.total_paid:,.0f} "
            "được chuyển sang kỳ sau."
        )
    await message.answer(text)


@router.message(Command("undo"))
async def handle_undo(
    message: Message,
    command: CommandObject,
    billing_service: BillingService,
    actor: str,
):
    """/undo <unit> [YYYY-MM]"""
    args = (command.args or "").split()
    if not args:
        await message.answer("Cú pháp: /undo &lt;căn&gt; [YYYY-MM]")
        return
    try:
        await billing_service.undo_payment(_period_arg(args, 1), args[0], actor=actor)
    except (OperationRejected, InvalidInputError) as e:
        await message.answer(f"⛔ {e}")
        return
    await message.answer(f"↩️ Đã huỷ thanh toán của căn {args[0]}.")


@router.message(Command("notice"))
async def handle_notice(
    message: Message, command: CommandObject, export_service: ExportService
):
    """/notice <unit> [YYYY-MM]"""
    args = (command.args or "").split()
    if not args:
        await message.answer("Cú pháp: /notice &lt;căn&gt; [YYYY-MM]")
        return

    period = _period_arg(args, 1)
    charge = await ChargeRepository().get_for_unit(period, args[0])
    if charge is None:
        await message.answer(f"Không có phí của căn {args[0]} kỳ {period}.")
        return

    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as temp_file:
        output_path = await export_service.generate_pdf_notice(charge, temp_file.name)
    await message.answer_document(
        FSInputFile(output_path, filename=f"{args[0]}_{period}.pdf"),
        caption=f"Thông báo phí căn {args[0]}",
    )
