"""Domain models for dashboard statistics."""

from dataclasses import dataclass
from datetime import date

from meal_diary.domain.meals import MealRecord


@dataclass(frozen=True)
class DaySummary:
    """Meals and totals for a single day."""

    day: date
    meals: list[MealRecord]
    total_kcal: float
    carbs: float
    protein: float
    fat: float


@dataclass(frozen=True)
class ChartPoint:
    """One bar of a weekly or monthly chart."""

    name: str
    kcal: float
    carbs: float
    protein: float
    fat: float
