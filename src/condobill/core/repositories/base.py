"""Base repository shared by the per-model repositories."""

from __future__ import annotations

from typing import Generic, Type, TypeVar
from uuid import UUID

from tortoise.models import Model

ModelType = TypeVar("ModelType", bound=Model)


class BaseRepository(Generic[ModelType]):
    """Primary-key CRUD over one Tortoise model.

    Subclasses add the queries that convert rows into core records.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, pk: UUID | str) -> ModelType | None:
        return await self.model.get_or_none(id=pk)

    async def create(self, **kwargs) -> ModelType:
        return await self.model.create(**kwargs)

    async def update_or_create(
        self, defaults: dict | None = None, **lookup
    ) -> tuple[ModelType, bool]:
        """Updates the row matching ``lookup`` with ``defaults``, creating it if absent."""
        return await self.model.update_or_create(defaults=defaults, **lookup)

    async def delete(self, pk: UUID | str) -> int:
        """Returns the number of rows removed (0 or 1)."""
        return await self.model.filter(id=pk).delete()
