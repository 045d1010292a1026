"""Main entry point for the Telegram bot."""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from tortoise import Tortoise

from condobill.bots.tg.handlers import billing, common, payments, registry
from condobill.bots.tg.middlewares.access import AdminAccessMiddleware
from condobill.config import settings
from condobill.core.cache import TTLCache
from condobill.core.db import init_db
from condobill.core.repositories.activity import ActivityLogRepository
from condobill.core.repositories.adjustment import AdjustmentRepository
from condobill.core.repositories.charge import ChargeRepository
from condobill.core.repositories.period import BillingPeriodRepository
from condobill.core.repositories.reading import ReadingRepository
from condobill.core.repositories.tariff import TariffRepository
from condobill.core.repositories.unit import OwnerRepository, UnitRepository
from condobill.core.repositories.vehicle import VehicleRepository
from condobill.services.billing import BillingService
from condobill.services.export import ExportService
from condobill.services.registry import RegistryService
from condobill.services.scheduler import SchedulerService

logger = logging.getLogger(__name__)


def build_billing_service() -> BillingService:
    return BillingService(
        unit_repo=UnitRepository(),
        owner_repo=OwnerRepository(),
        vehicle_repo=VehicleRepository(),
        reading_repo=ReadingRepository(),
        tariff_repo=TariffRepository(),
        adjustment_repo=AdjustmentRepository(),
        charge_repo=ChargeRepository(),
        period_repo=BillingPeriodRepository(),
        activity_repo=ActivityLogRepository(),
        tariff_cache=TTLCache(settings.TARIFF_CACHE_TTL_SECONDS),
        carry_over_balance=settings.CARRY_OVER_BALANCE,
    )


async def on_startup(dispatcher: Dispatcher, bot: Bot):
    """Actions on bot startup."""
    logger.info("Initializing database...")
    await init_db()
    logger.info("Database initialized.")

    billing_service = build_billing_service()
    dispatcher["billing_service"] = billing_service
    dispatcher["export_service"] = ExportService(
        building_name=settings.BUILDING_NAME,
        transfer_template=settings.TRANSFER_TEMPLATE,
    )
    dispatcher["registry_service"] = RegistryService(
        unit_repo=UnitRepository(),
        vehicle_repo=VehicleRepository(),
        reading_repo=ReadingRepository(),
    )
    logger.info("Services injected into dispatcher.")

    scheduler_service = SchedulerService(
        billing_service, AsyncIOScheduler(), billing_day=settings.BILLING_DAY
    )
    scheduler_service.start()
    dispatcher["scheduler_service"] = scheduler_service

    logger.info("Deleting webhook and dropping pending updates...")
    await bot.delete_webhook(drop_pending_updates=True)
    logger.info("Bot started.")


async def on_shutdown(dispatcher: Dispatcher, bot: Bot):
    """Actions on bot shutdown."""
    scheduler_service = dispatcher.get("scheduler_service")
    if scheduler_service is not None:
        scheduler_service.shutdown()

    logger.info("Closing connections...")
    await Tortoise.close_connections()
    await bot.session.close()
    logger.info("Connections closed.")


async def main():
    """Initializes and starts the bot."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger.info("Starting bot initialization...")

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode="HTML"),
    )
    dp = Dispatcher()

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    dp.message.outer_middleware(AdminAccessMiddleware())
    dp.callback_query.outer_middleware(AdminAccessMiddleware())

    dp.include_router(common.router)
    dp.include_router(billing.router)
    dp.include_router(payments.router)
    dp.include_router(registry.router)

    await dp.start_polling(bot, dispatcher=dp)


def run():
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Bot stopped manually.")


if __name__ == "__main__":
    run()
