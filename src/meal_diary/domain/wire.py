"""Pydantic models for meal backend payloads."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from meal_diary.domain.meals import MealType


class MacrosPayload(BaseModel):
    """Macro grams as sent by the backend."""

    carbs: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)


class FoodItemPayload(BaseModel):
    """Food item as sent by the backend."""

    name: str
    qty: str = "1 serving"
    kcal: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    macros: MacrosPayload | None = None


class AnalysisPayload(BaseModel):
    """Response body of ``POST /v1/meals/analyze``."""

    meal_type: MealType = MealType.SNACK
    eaten_at: datetime | None = None
    total_kcal: float = Field(default=0.0, ge=0.0)
    macros: MacrosPayload | None = None
    message: str = ""
    food_items: list[FoodItemPayload] = Field(default_factory=list)
    suggestions: list[FoodItemPayload] | None = None
    confidence: float | None = None


class CreatedMealPayload(BaseModel):
    """Response body of ``POST /v1/meals/create``."""

    id: int | str
    created_at: datetime
    message: str = ""


class MealRecordPayload(BaseModel):
    """Persisted meal as listed by the backend."""

    model_config = ConfigDict(extra="ignore")

    id: int | str
    raw_text: str = ""
    meal_type: MealType = MealType.SNACK
    eaten_at: datetime
    total_kcal: float = 0.0
    macros: MacrosPayload | None = None
    ai_summary: str | None = None
    items: list[FoodItemPayload] | None = Field(
        default_factory=list,
        validation_alias=AliasChoices("items_json", "items"),
    )
    created_at: datetime | None = None
