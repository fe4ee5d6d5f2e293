"""Domain models for meal analysis and logging."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class MealType(StrEnum):
    """Meal slot reported by the analysis backend."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class MacroTotals:
    """Carbohydrate, protein and fat grams."""

    carbs: float
    protein: float
    fat: float


ZERO_MACROS = MacroTotals(carbs=0.0, protein=0.0, fat=0.0)


@dataclass(frozen=True)
class FoodItem:
    """Single food entry of a meal."""

    name: str
    qty: str
    kcal: float
    macros: MacroTotals | None = None


@dataclass(frozen=True)
class AnalysisResult:
    """Interpretation of a meal description returned by the backend."""

    meal_type: MealType
    total_kcal: float
    message: str
    food_items: list[FoodItem]
    eaten_at: datetime | None = None
    macros: MacroTotals | None = None
    suggestions: list[FoodItem] = field(default_factory=list)
    confidence: float | None = None


@dataclass(frozen=True)
class PendingMeal:
    """Client-side meal being reviewed before it is committed.

    ``total_kcal`` and ``macros`` always match a re-sum of ``food_items``.
    """

    meal_type: MealType
    eaten_at: datetime
    raw_text: str
    food_items: list[FoodItem]
    total_kcal: float
    ai_summary: str
    macros: MacroTotals | None = None
    suggestions: list[FoodItem] = field(default_factory=list)
    confidence: float | None = None


@dataclass(frozen=True)
class CreatedMeal:
    """Acknowledgment of a persisted meal."""

    id: int | str
    created_at: datetime
    message: str


@dataclass(frozen=True)
class MealRecord:
    """Meal as stored by the backend."""

    id: int | str
    raw_text: str
    meal_type: MealType
    eaten_at: datetime
    total_kcal: float
    items: list[FoodItem]
    ai_summary: str = ""
    macros: MacroTotals | None = None
    created_at: datetime | None = None
