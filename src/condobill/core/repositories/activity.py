"""Repository for ActivityLog model."""

from __future__ import annotations

from collections.abc import Sequence

from condobill.core.models import ActivityLog
from condobill.core.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Audit trail of workflow operations."""

    def __init__(self) -> None:
        super().__init__(ActivityLog)

    async def record(
        self,
        actor: str,
        action: str,
        summary: str,
        *,
        period: str | None = None,
        unit_ids: Sequence[str] = (),
        reason: str | None = None,
        module: str = "billing",
    ) -> ActivityLog:
        return await self.model.create(
            actor=actor,
            module=module,
            action=action,
            summary=summary,
            reason=reason,
            period=period,
            unit_ids=list(unit_ids),
            count=len(unit_ids),
        )

    async def for_period(self, period: str) -> list[ActivityLog]:
        return await self.model.filter(period=period).order_by("-created_at")
