"""Middleware restricting the bot to building administrators."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from condobill.config import settings

logger = logging.getLogger(__name__)


class AdminAccessMiddleware(BaseMiddleware):
    """
    Drops updates from users outside ``ADMIN_IDS``.

    Admin updates get an ``actor`` entry ("tg:<user id>") that handlers pass
    to the billing service for the activity log.
    """

    def __init__(self, admin_ids: list[int] | None = None):
        self._admin_ids = set(settings.ADMIN_IDS if admin_ids is None else admin_ids)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        user = data.get("event_from_user")
        if user is None or user.id not in self._admin_ids:
            if user is not None:
                logger.info(f"Ignoring update from non-admin user {user.id}.")
            return None

        data["actor"] = f"tg:{user.id}"
        return await handler(event, data)
