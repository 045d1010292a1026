"""Common command handlers."""

from aiogram.filters import Command, CommandStart
from aiogram import Router
from aiogram.types import Message

from condobill.bots.tg.keyboards.reply import get_main_menu

router = Router(name=__name__)

HELP_TEXT = (
    "Bot quản lý phí chung cư.\n\n"
    "/calc – tính phí cho kỳ\n"
    "/summary – tổng hợp thu phí\n"
    "/lock, /unlock – khoá / mở khoá kỳ\n"
    "/pay &lt;căn&gt; &lt;số tiền&gt; &lt;tm|ck&gt; [YYYY-MM] – xác nhận thanh toán\n"
    "/undo &lt;căn&gt; [YYYY-MM] – huỷ thanh toán\n"
    "/notice &lt;căn&gt; [YYYY-MM] – thông báo phí (PDF)\n"
    "/reading &lt;căn&gt; &lt;chỉ số&gt; [YYYY-MM] – nhập chỉ số nước\n"
    "/vehicle &lt;căn&gt; &lt;loại&gt; &lt;biển số&gt; – đăng ký xe"
)


@router.message(CommandStart())
async def handle_start(message: Message) -> None:
    await message.answer(HELP_TEXT, reply_markup=get_main_menu())


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    """Handler for the /help command."""
    await message.answer(HELP_TEXT, reply_markup=get_main_menu())
