"""Gateway to the meal analysis and persistence backend."""

import logging
from dataclasses import dataclass
from datetime import date, datetime

import httpx
from pydantic import ValidationError

from meal_diary.adapters.meal_api_client import MealApiClient
from meal_diary.domain.errors import (
    AnalysisFailed,
    FetchFailed,
    PersistFailed,
    RateLimited,
)
from meal_diary.domain.meals import (
    AnalysisResult,
    CreatedMeal,
    FoodItem,
    MacroTotals,
    MealRecord,
    MealType,
    PendingMeal,
)
from meal_diary.domain.wire import (
    AnalysisPayload,
    CreatedMealPayload,
    FoodItemPayload,
    MacrosPayload,
    MealRecordPayload,
)

RATE_LIMIT_STATUS = 503

_logger = logging.getLogger(__name__)


@dataclass
class AnalysisGateway:
    """Classifies backend failures and maps payloads to domain types."""

    client: MealApiClient
    user_id: int = 1
    persona: str | None = None
    rate_limit_cooldown_seconds: int = 60

    async def analyze(
        self,
        text: str,
        client_local_time: datetime,
        meal_type_hint: MealType | None = None,
        persona: str | None = None,
    ) -> AnalysisResult:
        """Interpret a meal description."""
        payload: dict[str, object] = {
            "text": text,
            "client_local_time": client_local_time.isoformat(),
        }
        if meal_type_hint is not None:
            payload["meal_type_hint"] = str(meal_type_hint)
        resolved_persona = persona or self.persona
        if resolved_persona:
            payload["persona"] = resolved_persona
        try:
            raw = await self.client.analyze(payload)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code == RATE_LIMIT_STATUS:
                _logger.warning("Meal analysis rate limited")
                raise RateLimited(self.rate_limit_cooldown_seconds) from exc
            _logger.warning("Meal analysis failed with status %s", status_code)
            raise AnalysisFailed(f"Analysis failed with status {status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            _logger.warning("Meal analysis request failed: %s", exc)
            raise AnalysisFailed(f"Analysis request failed: {exc}") from exc
        try:
            parsed = AnalysisPayload.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Meal analysis returned a malformed body: %s", exc)
            raise AnalysisFailed("Analysis returned a malformed response") from exc
        return AnalysisResult(
            meal_type=parsed.meal_type,
            eaten_at=parsed.eaten_at,
            total_kcal=parsed.total_kcal,
            macros=_macros_from_payload(parsed.macros),
            message=parsed.message,
            food_items=[_item_from_payload(item) for item in parsed.food_items],
            suggestions=[_item_from_payload(item) for item in parsed.suggestions or []],
            confidence=parsed.confidence,
        )

    async def analyze_term(
        self, name: str, client_local_time: datetime
    ) -> AnalysisResult:
        """Estimate nutrition for a single food name."""
        return await self.analyze(name, client_local_time)

    async def create(self, meal: PendingMeal) -> CreatedMeal:
        """Persist a pending meal."""
        payload: dict[str, object] = {
            "user_id": self.user_id,
            "raw_text": meal.raw_text,
            "meal_type": str(meal.meal_type),
            "eaten_at": meal.eaten_at.isoformat(),
            "items": [_item_to_payload(item) for item in meal.food_items],
            "total_kcal": meal.total_kcal,
            "macros": _macros_to_payload(meal.macros),
            "ai_summary": meal.ai_summary,
        }
        if meal.confidence is not None:
            payload["confidence"] = meal.confidence
        try:
            raw = await self.client.create(payload)
            parsed = CreatedMealPayload.model_validate(raw)
        except (httpx.HTTPError, ValueError) as exc:
            _logger.warning("Meal save failed: %s", exc)
            raise PersistFailed(f"Saving the meal failed: {exc}") from exc
        return CreatedMeal(
            id=parsed.id, created_at=parsed.created_at, message=parsed.message
        )

    async def list_recent(self, limit: int) -> list[MealRecord]:
        """Return the most recent meals."""
        try:
            raw = await self.client.list_recent(limit)
            return [_record_from_payload(entry) for entry in raw]
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            _logger.warning("Listing recent meals failed: %s", exc)
            raise FetchFailed(f"Loading meals failed: {exc}") from exc

    async def list_range(self, start_date: date, end_date: date) -> list[MealRecord]:
        """Return meals eaten between two dates, inclusive."""
        try:
            raw = await self.client.list_range(start_date, end_date)
            return [_record_from_payload(entry) for entry in raw]
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            _logger.warning(
                "Listing meals %s..%s failed: %s", start_date, end_date, exc
            )
            raise FetchFailed(f"Loading meals failed: {exc}") from exc

    async def delete(self, meal_id: int | str) -> None:
        """Delete a persisted meal."""
        try:
            await self.client.delete(meal_id)
        except httpx.HTTPError as exc:
            _logger.warning("Deleting meal %s failed: %s", meal_id, exc)
            raise PersistFailed(f"Deleting meal {meal_id} failed: {exc}") from exc

    async def duplicate(self, meal_id: int | str, new_eaten_at: datetime) -> MealRecord:
        """Copy a persisted meal to a new time."""
        try:
            raw = await self.client.duplicate(
                meal_id, {"new_eaten_at": new_eaten_at.isoformat()}
            )
            return _record_from_payload(raw)
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            _logger.warning("Duplicating meal %s failed: %s", meal_id, exc)
            raise PersistFailed(f"Duplicating meal {meal_id} failed: {exc}") from exc


def _macros_from_payload(payload: MacrosPayload | None) -> MacroTotals | None:
    if payload is None:
        return None
    return MacroTotals(carbs=payload.carbs, protein=payload.protein, fat=payload.fat)


def _item_from_payload(payload: FoodItemPayload) -> FoodItem:
    return FoodItem(
        name=payload.name,
        qty=payload.qty,
        kcal=payload.kcal,
        macros=_macros_from_payload(payload.macros),
    )


def _macros_to_payload(macros: MacroTotals | None) -> dict[str, float] | None:
    if macros is None:
        return None
    return {"carbs": macros.carbs, "protein": macros.protein, "fat": macros.fat}


def _item_to_payload(item: FoodItem) -> dict[str, object]:
    return {
        "name": item.name,
        "qty": item.qty,
        "kcal": item.kcal,
        "macros": _macros_to_payload(item.macros),
    }


def _record_from_payload(raw: object) -> MealRecord:
    parsed = MealRecordPayload.model_validate(raw)
    return MealRecord(
        id=parsed.id,
        raw_text=parsed.raw_text,
        meal_type=parsed.meal_type,
        eaten_at=parsed.eaten_at,
        total_kcal=parsed.total_kcal,
        items=[_item_from_payload(item) for item in parsed.items or []],
        ai_summary=parsed.ai_summary or "",
        macros=_macros_from_payload(parsed.macros),
        created_at=parsed.created_at,
    )
