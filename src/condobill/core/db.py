"""Tortoise-ORM configuration shared by the bot, aerich and the tests."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from tortoise import Tortoise

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://db.sqlite3")
MODEL_MODULES = ["condobill.core.models"]


def build_config(db_url: str = DATABASE_URL, with_migrations: bool = True) -> dict:
    """Tortoise config for ``db_url``; aerich's own table only when migrating."""
    models = MODEL_MODULES + (["aerich.models"] if with_migrations else [])
    return {
        "connections": {"default": db_url},
        "apps": {
            "models": {
                "models": models,
                "default_connection": "default",
            },
        },
    }


TORTOISE_ORM = build_config()


async def init_db(config: dict | None = None, generate_schemas: bool = False) -> None:
    await Tortoise.init(config=config or TORTOISE_ORM)
    if generate_schemas:
        await Tortoise.generate_schemas(safe=True)
