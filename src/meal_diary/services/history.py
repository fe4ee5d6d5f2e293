"""Meal history operations for the dashboard."""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from meal_diary.domain.meals import MealRecord
from meal_diary.services.analysis import AnalysisGateway

DEFAULT_HISTORY_LIMIT = 1000

_logger = logging.getLogger(__name__)


@dataclass
class MealHistoryService:
    """List, delete and copy persisted meals."""

    gateway: AnalysisGateway
    timezone_name: str = "UTC"

    async def recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[MealRecord]:
        """Return recent meals, newest first."""
        meals = await self.gateway.list_recent(limit)
        return sorted(meals, key=lambda meal: meal.eaten_at, reverse=True)

    async def delete(self, meal_id: int | str) -> None:
        """Delete a meal."""
        await self.gateway.delete(meal_id)
        _logger.info("Deleted meal %s", meal_id)

    async def duplicate_to_day(
        self, meal_id: int | str, day: date, now: datetime | None = None
    ) -> MealRecord:
        """Copy a meal to ``day``, keeping the current local time of day."""
        tz = ZoneInfo(self.timezone_name)
        current = (now or datetime.now(tz=UTC)).astimezone(tz)
        new_eaten_at = datetime.combine(day, current.timetz().replace(microsecond=0))
        record = await self.gateway.duplicate(meal_id, new_eaten_at)
        _logger.info("Duplicated meal %s as %s", meal_id, record.id)
        return record
