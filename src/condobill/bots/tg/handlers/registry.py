"""Handlers for meter readings and vehicle registration."""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from condobill.core.dates import format_period
from condobill.core.entities import VehicleTier
from condobill.core.errors import BillingError, InvalidInputError
from condobill.services.registry import RegistryService

router = Router(name=__name__)

TIERS = ", ".join(tier.value for tier in VehicleTier)


@router.message(Command("reading"))
async def handle_reading(
    message: Message, command: CommandObject, registry_service: RegistryService
):
    """/reading <unit> <index> [YYYY-MM]"""
    args = (command.args or "").split()
    if len(args) < 2:
        await message.answer("Cú pháp: /reading &lt;căn&gt; &lt;chỉ số&gt; [YYYY-MM]")
        return
    try:
        curr_index = Decimal(args[1].replace(",", "."))
    except InvalidOperation:
        await message.answer("Chỉ số không hợp lệ.")
        return

    period = args[2] if len(args) > 2 else format_period(date.today())
    try:
        reading = await registry_service.record_reading(args[0], period, curr_index)
    except (BillingError, InvalidInputError) as e:
        await message.answer(f"⛔ {e}")
        return

    consumption = reading.curr_index - reading.prev_index
    await message.answer(
        f"✅ Căn {args[0]} kỳ {period}: {reading.prev_index} → {reading.curr_index} "
        f"({consumption} m³)."
    )


@router.message(Command("vehicle"))
async def handle_vehicle(
    message: Message, command: CommandObject, registry_service: RegistryService
):
    """/vehicle <unit> <tier> <plate>"""
    args = (command.args or "").split()
    if len(args) < 3:
        await message.answer(f"Cú pháp: /vehicle &lt;căn&gt; &lt;loại&gt; &lt;biển số&gt;\nLoại: {TIERS}")
        return
    try:
        tier = VehicleTier(args[1].lower())
    except ValueError:
        await message.answer(f"Loại xe không hợp lệ. Chọn một trong: {TIERS}")
        return

    try:
        registration = await registry_service.register_vehicle(
            args[0], tier, args[2].upper(), date.today()
        )
    except (BillingError, InvalidInputError) as e:
        await message.answer(f"⛔ {e}")
        return

    text = f"✅ Đã đăng ký xe {args[2].upper()} cho căn {args[0]}."
    if registration.violations:
        text += "\n⚠️ " + "\n⚠️ ".join(registration.violations)
    await message.answer(text)
