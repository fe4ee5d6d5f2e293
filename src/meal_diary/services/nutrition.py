"""Calorie and macro aggregation over food items."""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from meal_diary.domain.meals import FoodItem, MacroTotals


def round_half_up(value: float | Decimal, digits: int = 1) -> float:
    """Round ``value`` to ``digits`` decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(value.quantize(quantum, rounding=ROUND_HALF_UP))


def sum_kcal(items: Sequence[FoodItem]) -> float:
    """Return the calorie total of ``items`` without rounding."""
    return sum((item.kcal for item in items), 0.0)


def sum_macros(items: Sequence[FoodItem]) -> MacroTotals | None:
    """Return per-axis macro sums, or ``None`` when no item carries macros.

    Items without macros contribute nothing. Each axis is summed in decimal
    and rounded to one decimal place afterwards.
    """
    with_macros = [item.macros for item in items if item.macros is not None]
    if not with_macros:
        return None
    return MacroTotals(
        carbs=round_half_up(_decimal_sum(macros.carbs for macros in with_macros)),
        protein=round_half_up(_decimal_sum(macros.protein for macros in with_macros)),
        fat=round_half_up(_decimal_sum(macros.fat for macros in with_macros)),
    )


def _decimal_sum(values: Iterable[float]) -> Decimal:
    return sum((Decimal(str(value)) for value in values), Decimal(0))
