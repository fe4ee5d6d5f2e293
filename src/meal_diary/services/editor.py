"""Editing operations on a pending meal.

Every operation returns a new ``PendingMeal``; totals are always recomputed
from the full item list so they never drift from a fresh re-sum.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from meal_diary.domain.errors import AnalysisFailed, RateLimited, ValidationFailed
from meal_diary.domain.meals import (
    ZERO_MACROS,
    AnalysisResult,
    FoodItem,
    MacroTotals,
    MealType,
    PendingMeal,
)
from meal_diary.services.nutrition import sum_kcal, sum_macros

if TYPE_CHECKING:
    from meal_diary.services.analysis import AnalysisGateway

DEFAULT_QTY = "1 serving"

_logger = logging.getLogger(__name__)


def pending_meal_from_analysis(
    result: AnalysisResult, raw_text: str, analyzed_at: datetime
) -> PendingMeal:
    """Build the editable meal for an analysis result."""
    food_items = list(result.food_items)
    total_kcal = sum_kcal(food_items)
    if total_kcal != result.total_kcal:
        _logger.debug(
            "Analysis total %s differs from item sum %s", result.total_kcal, total_kcal
        )
    return PendingMeal(
        meal_type=result.meal_type,
        eaten_at=result.eaten_at or analyzed_at,
        raw_text=raw_text,
        food_items=food_items,
        total_kcal=total_kcal,
        ai_summary=result.message,
        macros=sum_macros(food_items),
        suggestions=list(result.suggestions),
        confidence=result.confidence,
    )


def add_item(
    meal: PendingMeal, item: FoodItem, from_suggestion: bool = False
) -> PendingMeal:
    """Append ``item`` and recompute totals.

    When the item was taken from the suggestions, the first suggestion with
    the same name is dropped.
    """
    _validate_item(item)
    food_items = [*meal.food_items, item]
    suggestions = list(meal.suggestions)
    if from_suggestion:
        suggestions = _without_first_named(suggestions, item.name)
    return _with_items(meal, food_items, suggestions=suggestions)


def accept_suggestion(meal: PendingMeal, index: int) -> PendingMeal:
    """Move ``suggestions[index]`` into the meal."""
    if not 0 <= index < len(meal.suggestions):
        raise ValidationFailed(f"No suggestion at index {index}")
    return add_item(meal, meal.suggestions[index], from_suggestion=True)


def remove_item(meal: PendingMeal, index: int) -> PendingMeal:
    """Remove the item at ``index`` and recompute totals."""
    if not 0 <= index < len(meal.food_items):
        raise ValidationFailed(f"No food item at index {index}")
    food_items = [item for i, item in enumerate(meal.food_items) if i != index]
    updated = _with_items(meal, food_items)
    macros = updated.macros
    if macros is not None:
        macros = MacroTotals(
            carbs=max(0.0, macros.carbs),
            protein=max(0.0, macros.protein),
            fat=max(0.0, macros.fat),
        )
    return replace(updated, total_kcal=max(0.0, updated.total_kcal), macros=macros)


async def add_manual_item(
    meal: PendingMeal,
    name: str,
    gateway: "AnalysisGateway",
    client_local_time: datetime,
    explicit_kcal: float | None = None,
) -> PendingMeal:
    """Add a user-typed item, estimating its nutrition when no kcal is given."""
    cleaned = name.strip()
    if not cleaned:
        raise ValidationFailed("Item name must not be empty")
    if explicit_kcal:
        item = FoodItem(name=cleaned, qty=DEFAULT_QTY, kcal=float(explicit_kcal))
    else:
        item = await _estimate_item(cleaned, gateway, client_local_time)
    return add_item(meal, item)


def change_meal_type(meal: PendingMeal, meal_type: MealType) -> PendingMeal:
    """Replace the meal type."""
    return replace(meal, meal_type=meal_type)


def change_eaten_at(meal: PendingMeal, eaten_at: datetime) -> PendingMeal:
    """Replace the time the meal was eaten."""
    return replace(meal, eaten_at=eaten_at)


async def _estimate_item(
    name: str, gateway: "AnalysisGateway", client_local_time: datetime
) -> FoodItem:
    fallback = FoodItem(name=name, qty=DEFAULT_QTY, kcal=0.0, macros=ZERO_MACROS)
    try:
        result = await gateway.analyze_term(name, client_local_time)
    except (AnalysisFailed, RateLimited) as exc:
        _logger.warning("Manual item estimate failed for %r: %s", name, exc)
        return fallback
    if not result.food_items:
        _logger.info("Manual item estimate returned no items for %r", name)
        return fallback
    estimate = result.food_items[0]
    return FoodItem(
        name=name,
        qty=estimate.qty or DEFAULT_QTY,
        kcal=estimate.kcal,
        macros=estimate.macros or ZERO_MACROS,
    )


def _with_items(
    meal: PendingMeal,
    food_items: list[FoodItem],
    suggestions: list[FoodItem] | None = None,
) -> PendingMeal:
    return replace(
        meal,
        food_items=food_items,
        total_kcal=sum_kcal(food_items),
        macros=sum_macros(food_items),
        suggestions=list(meal.suggestions) if suggestions is None else suggestions,
    )


def _without_first_named(items: list[FoodItem], name: str) -> list[FoodItem]:
    for index, candidate in enumerate(items):
        if candidate.name == name:
            return items[:index] + items[index + 1 :]
    return items


def _validate_item(item: FoodItem) -> None:
    if not math.isfinite(item.kcal) or item.kcal < 0:
        raise ValidationFailed(f"Invalid kcal for {item.name!r}: {item.kcal}")
