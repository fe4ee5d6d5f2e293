"""Dashboard statistics over persisted meals."""

from dataclasses import dataclass
from datetime import date, timedelta
from zoneinfo import ZoneInfo

from meal_diary.domain.meals import MealRecord
from meal_diary.domain.stats import ChartPoint, DaySummary
from meal_diary.services.analysis import AnalysisGateway

WEEKDAY_NAMES = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
DECEMBER = 12


@dataclass
class StatsService:
    """Service for daily totals and weekly/monthly chart series."""

    gateway: AnalysisGateway
    timezone_name: str = "UTC"

    async def get_day(self, day: date) -> DaySummary:
        """Return meals and totals for ``day``."""
        meals = await self._fetch(day, day)
        tz = ZoneInfo(self.timezone_name)
        eaten = [meal for meal in meals if _local_day(meal, tz) == day]
        eaten.sort(key=lambda meal: meal.eaten_at)
        point = _aggregate("day", eaten)
        return DaySummary(
            day=day,
            meals=eaten,
            total_kcal=point.kcal,
            carbs=point.carbs,
            protein=point.protein,
            fat=point.fat,
        )

    async def get_week(self, anchor: date) -> list[ChartPoint]:
        """Return one point per day of the Monday-based week containing ``anchor``."""
        start = _week_start(anchor)
        end = start + timedelta(days=6)
        meals = await self._fetch(start, end)
        tz = ZoneInfo(self.timezone_name)
        points = []
        for offset, name in enumerate(WEEKDAY_NAMES):
            day = start + timedelta(days=offset)
            points.append(
                _aggregate(name, [meal for meal in meals if _local_day(meal, tz) == day])
            )
        return points

    async def get_month(self, anchor: date) -> list[ChartPoint]:
        """Return one point per Monday-based week touching the month of ``anchor``."""
        month_start = anchor.replace(day=1)
        if month_start.month == DECEMBER:
            next_month = month_start.replace(year=month_start.year + 1, month=1)
        else:
            next_month = month_start.replace(month=month_start.month + 1)
        month_end = next_month - timedelta(days=1)
        fetch_start = _week_start(month_start)
        fetch_end = _week_start(month_end) + timedelta(days=6)
        meals = await self._fetch(fetch_start, fetch_end)
        tz = ZoneInfo(self.timezone_name)

        points = []
        week_start = fetch_start
        index = 1
        while week_start <= month_end:
            week_end = week_start + timedelta(days=6)
            weekly = [
                meal for meal in meals if week_start <= _local_day(meal, tz) <= week_end
            ]
            points.append(_aggregate(f"W{index}", weekly))
            week_start += timedelta(days=7)
            index += 1
        return points

    async def _fetch(self, start: date, end: date) -> list[MealRecord]:
        # The backend buckets by its own date; local days can straddle it.
        return await self.gateway.list_range(
            start - timedelta(days=1), end + timedelta(days=1)
        )


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _local_day(meal: MealRecord, tz: ZoneInfo) -> date:
    eaten_at = meal.eaten_at
    if eaten_at.tzinfo is None:
        return eaten_at.date()
    return eaten_at.astimezone(tz).date()


def _aggregate(name: str, meals: list[MealRecord]) -> ChartPoint:
    point = ChartPoint(name=name, kcal=0, carbs=0, protein=0, fat=0)
    for meal in meals:
        macros = meal.macros
        point = ChartPoint(
            name=name,
            kcal=point.kcal + meal.total_kcal,
            carbs=point.carbs + (macros.carbs if macros else 0),
            protein=point.protein + (macros.protein if macros else 0),
            fat=point.fat + (macros.fat if macros else 0),
        )
    return point

