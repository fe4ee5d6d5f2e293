"""Pydantic request bodies for the HTTP API."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from meal_diary.domain.meals import FoodItem, MacroTotals, MealType
from meal_diary.domain.wire import MacrosPayload
from meal_diary.services.recipes import Preference


class SubmitMessageRequest(BaseModel):
    """New user utterance."""

    text: str = Field(min_length=1)
    meal_type_hint: MealType | None = None


class FoodItemRequest(BaseModel):
    """Food item added by the user."""

    name: str = Field(min_length=1)
    qty: str = "1 serving"
    kcal: float = Field(ge=0.0, allow_inf_nan=False)
    macros: MacrosPayload | None = None

    def to_domain(self) -> FoodItem:
        """Convert to a domain food item."""
        macros = None
        if self.macros is not None:
            macros = MacroTotals(
                carbs=self.macros.carbs,
                protein=self.macros.protein,
                fat=self.macros.fat,
            )
        return FoodItem(name=self.name, qty=self.qty, kcal=self.kcal, macros=macros)


class ManualItemRequest(BaseModel):
    """Item typed by name, with optional explicit calories."""

    name: str = Field(min_length=1)
    kcal: float | None = Field(default=None, ge=0.0, allow_inf_nan=False)


class MealUpdateRequest(BaseModel):
    """Field replacements on a pending meal."""

    meal_type: MealType | None = None
    eaten_at: datetime | None = None


class DuplicateRequest(BaseModel):
    """Target day for copying a meal."""

    day: date


class RecipeRequest(BaseModel):
    """Ingredients and preference for a recipe ticket."""

    ingredients: list[str]
    preference: Preference = Preference.BALANCED
